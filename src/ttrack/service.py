"""Activity service: storage operations plus the overlap policy."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from ttrack.activity import Activity, OngoingActivity, intersect, overlap
from ttrack.errors import AmbiguousStateError, OverlapError
from ttrack.storage import ActivityId, ActivityWithId, OngoingActivityWithId, Storage

logger = logging.getLogger(__name__)


def time_intersections(
    activities: list[ActivityWithId], instant: datetime
) -> list[Activity]:
    """Finished activities that strictly contain `instant`."""
    return [hit for _, a in activities if (hit := intersect(a, instant)) is not None]


def activity_intersections(
    activities: list[ActivityWithId], activity: Activity
) -> list[Activity]:
    """Finished activities overlapping `activity`."""
    return [hit for _, a in activities if (hit := overlap(a, activity)) is not None]


class ActivityService:
    """Starts, stops and records activities on top of a `Storage`.

    Every check reads storage before the single mutation it guards, so a
    rejected operation leaves storage untouched.
    """

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def start_activity(
        self, activity: OngoingActivity, deny_overlapping: bool = True
    ) -> tuple[OngoingActivity, Activity | None]:
        """Start `activity`.

        When exactly one activity is ongoing and overlapping is denied, it is
        stopped at the new activity's start time.

        Returns:
            The started activity and the implicitly stopped one, if any.

        Raises:
            OverlapError: If the start time lies inside a finished activity.
            AmbiguousStateError: If several activities are ongoing.
        """
        finished = self.storage.get_finished_activities()
        intersections = time_intersections(finished, activity.start_time)
        if deny_overlapping and intersections:
            logger.info("Rejected start of %s", activity.describe())
            raise OverlapError(activity, intersections)

        stopped = None
        if deny_overlapping:
            ongoing = self.storage.get_ongoing_activities()
            if len(ongoing) > 1:
                raise AmbiguousStateError(len(ongoing))
            if ongoing:
                ongoing_id, current = ongoing[0]
                logger.debug("Stopping %s implicitly", current.describe())
                stopped = self.stop_ongoing_activity(
                    activity.start_time, ongoing_id, deny_overlapping
                )
        self.storage.add_ongoing_activity(activity)
        return activity, stopped

    def stop_ongoing_activity(
        self,
        time: datetime,
        activity_id: ActivityId,
        deny_overlapping: bool = True,
    ) -> Activity | None:
        """Stop the ongoing activity `activity_id` at `time`.

        Returns:
            The finished activity, or None if no ongoing activity has that id.

        Raises:
            InvalidIntervalError: If `time` is before the activity start.
            OverlapError: If the finished activity would overlap another one.
        """
        current = self.storage.get_ongoing_activity(activity_id)
        if current is None:
            return None
        stopped = current.into_activity(time)
        if deny_overlapping:
            finished = self.storage.get_finished_activities()
            intersections = activity_intersections(finished, stopped)
            if intersections:
                logger.info("Rejected stop of %s", stopped.describe())
                raise OverlapError(stopped, intersections)
        self.storage.write_activity(stopped)
        self.storage.remove_ongoing_activity(activity_id)
        return stopped

    def cancel_ongoing_activity(self, activity_id: ActivityId) -> OngoingActivity | None:
        """Discard an ongoing activity without recording it."""
        return self.storage.remove_ongoing_activity(activity_id)

    def track_activity(self, activity: Activity, deny_overlapping: bool = True) -> Activity:
        """Record an already finished activity.

        Raises:
            OverlapError: If the activity would overlap a finished one.
        """
        if deny_overlapping:
            finished = self.storage.get_finished_activities()
            intersections = activity_intersections(finished, activity)
            if intersections:
                logger.info("Rejected tracking of %s", activity.describe())
                raise OverlapError(activity, intersections)
        self.storage.write_activity(activity)
        return activity

    def resolve_ongoing_activity(
        self, activity_id: ActivityId | None = None
    ) -> OngoingActivityWithId | None:
        """Select the ongoing activity a command should act on.

        Without an id, the single ongoing activity is selected.

        Returns:
            (id, activity), or None if nothing matches.

        Raises:
            AmbiguousStateError: If no id is given and several activities are ongoing.
        """
        if activity_id is not None:
            current = self.storage.get_ongoing_activity(activity_id)
            return None if current is None else (activity_id, current)
        ongoing = self.storage.get_ongoing_activities()
        if len(ongoing) > 1:
            raise AmbiguousStateError(len(ongoing))
        return ongoing[0] if ongoing else None

    def delete_activity(self, activity_id: ActivityId) -> Activity | None:
        return self.storage.delete_activity(activity_id)

    def filter_activities(
        self, predicate: Callable[[ActivityWithId], bool]
    ) -> list[ActivityWithId]:
        return self.storage.filter_activities(predicate)

    def get_finished_activities(self) -> list[ActivityWithId]:
        return self.storage.get_finished_activities()

    def get_ongoing_activities(self) -> list[OngoingActivityWithId]:
        return self.storage.get_ongoing_activities()

    def get_ongoing_activity(self, activity_id: ActivityId) -> OngoingActivity | None:
        return self.storage.get_ongoing_activity(activity_id)
