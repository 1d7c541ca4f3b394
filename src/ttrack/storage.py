"""Activity storage backends.

Activity ids are not stored. They are derived from position every time the
activities are read:

- finished activities are sorted by start time and numbered in reverse, so id 0
  is always the most recently started finished activity;
- ongoing activities are sorted by start time and numbered from 0.

Ids are only valid until the next mutation.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Iterable

from pydantic import TypeAdapter, ValidationError

from ttrack.activity import Activity, OngoingActivity
from ttrack.errors import StorageError

logger = logging.getLogger(__name__)

ActivityId = int
ActivityWithId = tuple[ActivityId, Activity]
OngoingActivityWithId = tuple[ActivityId, OngoingActivity]

FINISHED_FILENAME = "finished.json"
ONGOING_FILENAME = "ongoing.json"

_activities_adapter = TypeAdapter(list[Activity])
_ongoing_adapter = TypeAdapter(list[OngoingActivity])


def number_finished(activities: Iterable[Activity]) -> list[ActivityWithId]:
    """Sort by start time and assign ids count-1 .. 0."""
    ordered = sorted(activities, key=lambda a: a.start_time)
    return list(zip(range(len(ordered) - 1, -1, -1), ordered))


def number_ongoing(activities: Iterable[OngoingActivity]) -> list[OngoingActivityWithId]:
    """Sort by start time and assign ids 0 .. count-1."""
    return list(enumerate(sorted(activities, key=lambda a: a.start_time)))


class Storage(ABC):
    """Persists finished activities and the ongoing ones.

    Backends only implement loading and saving of both collections; id
    assignment and lookups are shared.
    """

    @abstractmethod
    def _load_finished(self) -> list[Activity]:
        ...

    @abstractmethod
    def _save_finished(self, activities: list[Activity]) -> None:
        ...

    @abstractmethod
    def _load_ongoing(self) -> list[OngoingActivity]:
        ...

    @abstractmethod
    def _save_ongoing(self, activities: list[OngoingActivity]) -> None:
        ...

    def write_activity(self, activity: Activity) -> None:
        """Append a finished activity."""
        activities = self._load_finished()
        activities.append(activity)
        self._save_finished(activities)

    def get_finished_activities(self) -> list[ActivityWithId]:
        """Return finished activities sorted by start time (id 0 = most recent)."""
        return number_finished(self._load_finished())

    def filter_activities(
        self, predicate: Callable[[ActivityWithId], bool]
    ) -> list[ActivityWithId]:
        return [item for item in self.get_finished_activities() if predicate(item)]

    def delete_activity(self, activity_id: ActivityId) -> Activity | None:
        """Delete the finished activity with `activity_id`.

        Returns:
            The deleted activity, or None if no activity has that id.
        """
        numbered = self.get_finished_activities()
        removed = [a for i, a in numbered if i == activity_id]
        if not removed:
            return None
        self._save_finished([a for i, a in numbered if i != activity_id])
        return removed[0]

    def get_ongoing_activities(self) -> list[OngoingActivityWithId]:
        return number_ongoing(self._load_ongoing())

    def get_ongoing_activity(self, activity_id: ActivityId) -> OngoingActivity | None:
        for ongoing_id, ongoing in self.get_ongoing_activities():
            if ongoing_id == activity_id:
                return ongoing
        return None

    def add_ongoing_activity(self, activity: OngoingActivity) -> None:
        ongoing = [a for _, a in self.get_ongoing_activities()]
        ongoing.append(activity)
        self._save_ongoing(ongoing)

    def remove_ongoing_activity(self, activity_id: ActivityId) -> OngoingActivity | None:
        """Remove the ongoing activity with `activity_id`.

        Returns:
            The removed activity, or None if no ongoing activity has that id.
        """
        numbered = self.get_ongoing_activities()
        removed = [a for i, a in numbered if i == activity_id]
        if not removed:
            return None
        self._save_ongoing([a for i, a in numbered if i != activity_id])
        return removed[0]


class MemoryStorage(Storage):
    """In-process storage, mostly useful for testing."""

    def __init__(
        self,
        finished: Iterable[Activity] = (),
        ongoing: Iterable[OngoingActivity] = (),
    ) -> None:
        self._finished = list(finished)
        self._ongoing = list(ongoing)

    def _load_finished(self) -> list[Activity]:
        return list(self._finished)

    def _save_finished(self, activities: list[Activity]) -> None:
        self._finished = list(activities)

    def _load_ongoing(self) -> list[OngoingActivity]:
        return list(self._ongoing)

    def _save_ongoing(self, activities: list[OngoingActivity]) -> None:
        self._ongoing = list(activities)


class JsonStorage(Storage):
    """Stores activities in two JSON documents.

    Every mutation rewrites the whole document. Missing files are read as
    empty collections. There is no locking: concurrent writers race.
    """

    def __init__(self, ongoing_path: Path, finished_path: Path) -> None:
        self.ongoing_path = ongoing_path
        self.finished_path = finished_path

    @classmethod
    def in_directory(cls, directory: Path) -> JsonStorage:
        """Open the store kept in `directory`."""
        return cls(directory / ONGOING_FILENAME, directory / FINISHED_FILENAME)

    def _read(self, path: Path) -> Any:
        if not path.exists():
            return None
        logger.debug("Reading %s", path)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise StorageError(path, f"cannot read: {e}") from e
        except json.JSONDecodeError as e:
            raise StorageError(path, f"invalid JSON: {e}") from e

    def _write(self, path: Path, data: Any) -> None:
        logger.debug("Rewriting %s", path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            raise StorageError(path, f"cannot write: {e}") from e

    def _load_finished(self) -> list[Activity]:
        data = self._read(self.finished_path)
        if data is None:
            return []
        try:
            return _activities_adapter.validate_python(data)
        except ValidationError as e:
            raise StorageError(self.finished_path, f"invalid activity: {e}") from e

    def _save_finished(self, activities: list[Activity]) -> None:
        self._write(
            self.finished_path,
            _activities_adapter.dump_python(activities, mode="json", exclude_none=True),
        )

    def _load_ongoing(self) -> list[OngoingActivity]:
        data = self._read(self.ongoing_path)
        if data is None:
            return []
        # Older layouts hold a single activity or {"ongoing": [...]}.
        if isinstance(data, dict):
            data = data["ongoing"] if "ongoing" in data else [data]
        try:
            return _ongoing_adapter.validate_python(data)
        except ValidationError as e:
            raise StorageError(self.ongoing_path, f"invalid ongoing activity: {e}") from e

    def _save_ongoing(self, activities: list[OngoingActivity]) -> None:
        self._write(
            self.ongoing_path,
            _ongoing_adapter.dump_python(activities, mode="json", exclude_none=True),
        )
