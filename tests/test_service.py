"""Tests for the activity service and its overlap policy."""

import pytest

from ttrack.activity import Activity, OngoingActivity
from ttrack.errors import AmbiguousStateError, InvalidIntervalError, OverlapError
from ttrack.service import ActivityService
from ttrack.storage import JsonStorage, MemoryStorage
from ttrack.times import parse_datetime


def at(clock: str) -> object:
    """2020-12-25 at HH:MM."""
    return parse_datetime(f"2020-12-25T{clock}:00")


def ongoing(start: str, tag: str = "a") -> OngoingActivity:
    return OngoingActivity(start_time=at(start), tags=[tag])


def finished(start: str, stop: str, tag: str = "a") -> Activity:
    return ongoing(start, tag).into_activity(at(stop))


@pytest.fixture
def service():
    return ActivityService(MemoryStorage())


class TestStartActivity:
    """Tests for starting activities."""

    def test_start_with_nothing_ongoing(self, service):
        """The new activity becomes ongoing activity 0."""
        started, stopped = service.start_activity(ongoing("09:00"))
        assert started.title == "a"
        assert stopped is None
        assert [(i, a.title) for i, a in service.get_ongoing_activities()] == [(0, "a")]

    def test_start_stops_current_activity(self, service):
        """The previous activity stops exactly when the new one starts."""
        service.start_activity(ongoing("09:00", "a"))
        started, stopped = service.start_activity(ongoing("10:00", "b"))

        assert stopped is not None
        assert stopped.title == "a"
        assert stopped.stop_time == started.start_time
        assert [a.title for _, a in service.get_ongoing_activities()] == ["b"]
        assert [a.title for _, a in service.get_finished_activities()] == ["a"]

    def test_start_inside_finished_activity(self, service):
        """Starting inside a finished activity is rejected with the conflict."""
        service.track_activity(finished("09:00", "10:00"))
        with pytest.raises(OverlapError) as exc_info:
            service.start_activity(ongoing("09:30"))
        assert len(exc_info.value.conflicts) == 1
        assert "2020-12-25T09:00:00" in str(exc_info.value)
        assert service.get_ongoing_activities() == []

    def test_start_inside_finished_activity_allowed(self, service):
        """With overlap allowed, the start is accepted."""
        service.track_activity(finished("09:00", "10:00"))
        started, stopped = service.start_activity(ongoing("09:30"), deny_overlapping=False)
        assert stopped is None
        assert len(service.get_ongoing_activities()) == 1

    def test_start_at_end_of_finished_activity(self, service):
        """Starting exactly when a finished activity stops is fine."""
        service.track_activity(finished("09:00", "10:00"))
        service.start_activity(ongoing("10:00"))
        assert len(service.get_ongoing_activities()) == 1

    def test_overlap_allowed_keeps_ongoing_activities(self, service):
        """With overlap allowed, nothing is stopped implicitly."""
        service.start_activity(ongoing("09:00", "a"), deny_overlapping=False)
        service.start_activity(ongoing("10:00", "b"), deny_overlapping=False)
        assert [a.title for _, a in service.get_ongoing_activities()] == ["a", "b"]
        assert service.get_finished_activities() == []

    def test_several_ongoing_is_ambiguous(self, service):
        """Which activity to stop is unclear when several are ongoing."""
        service.start_activity(ongoing("09:00", "a"), deny_overlapping=False)
        service.start_activity(ongoing("10:00", "b"), deny_overlapping=False)
        with pytest.raises(AmbiguousStateError):
            service.start_activity(ongoing("11:00", "c"))
        assert len(service.get_ongoing_activities()) == 2

    def test_implicit_stop_before_start_fails_without_writes(self, service):
        """Starting before the current activity leaves storage untouched."""
        service.start_activity(ongoing("10:00", "a"))
        with pytest.raises(InvalidIntervalError):
            service.start_activity(ongoing("09:00", "b"))
        assert [a.title for _, a in service.get_ongoing_activities()] == ["a"]
        assert service.get_finished_activities() == []


class TestStopActivity:
    """Tests for stopping ongoing activities."""

    def test_stop_nothing(self, service):
        """Stopping an unknown id returns None."""
        assert service.stop_ongoing_activity(at("10:00"), 0) is None

    def test_stop(self, service):
        """The stopped activity moves to the finished ones."""
        service.start_activity(ongoing("09:00"))
        stopped = service.stop_ongoing_activity(at("10:00"), 0)
        assert stopped == finished("09:00", "10:00")
        assert service.get_ongoing_activities() == []
        assert [a for _, a in service.get_finished_activities()] == [stopped]

    def test_stop_before_start(self, service):
        """An invalid stop time keeps the activity ongoing."""
        service.start_activity(ongoing("09:00"))
        with pytest.raises(InvalidIntervalError):
            service.stop_ongoing_activity(at("08:00"), 0)
        assert len(service.get_ongoing_activities()) == 1

    def test_stop_overlapping(self, service):
        """A stop that would overlap a finished activity is rejected."""
        service.track_activity(finished("09:00", "10:00"))
        service.start_activity(ongoing("08:30"))
        with pytest.raises(OverlapError):
            service.stop_ongoing_activity(at("09:30"), 0)
        assert len(service.get_ongoing_activities()) == 1
        assert len(service.get_finished_activities()) == 1

    def test_stop_overlapping_allowed(self, service):
        """With overlap allowed, the stop is recorded."""
        service.track_activity(finished("09:00", "10:00"))
        service.start_activity(ongoing("08:30"))
        stopped = service.stop_ongoing_activity(at("09:30"), 0, deny_overlapping=False)
        assert stopped is not None
        assert len(service.get_finished_activities()) == 2


class TestCancelActivity:
    """Tests for cancelling ongoing activities."""

    def test_cancel_discards(self, service):
        """A cancelled activity is not recorded."""
        service.start_activity(ongoing("09:00"))
        cancelled = service.cancel_ongoing_activity(0)
        assert cancelled.title == "a"
        assert service.get_ongoing_activities() == []
        assert service.get_finished_activities() == []

    def test_cancel_nothing(self, service):
        """Cancelling with nothing ongoing returns None."""
        assert service.cancel_ongoing_activity(0) is None


class TestTrackActivity:
    """Tests for tracking finished activities."""

    def test_track_overlapping_denied(self, service):
        """An overlapping finished activity is rejected."""
        service.track_activity(finished("09:00", "10:00"))
        with pytest.raises(OverlapError):
            service.track_activity(finished("09:30", "10:30"))
        assert len(service.get_finished_activities()) == 1

    def test_track_overlapping_allowed(self, service):
        """With overlap allowed, both activities are kept."""
        service.track_activity(finished("09:00", "10:00"))
        service.track_activity(finished("09:30", "10:30"), deny_overlapping=False)
        assert len(service.get_finished_activities()) == 2

    def test_track_adjacent(self, service):
        """Back-to-back activities do not overlap."""
        service.track_activity(finished("09:00", "10:00"))
        service.track_activity(finished("10:00", "11:00"))
        assert len(service.get_finished_activities()) == 2


class TestResolveOngoingActivity:
    """Tests for selecting the ongoing activity to act on."""

    def test_nothing_ongoing(self, service):
        """Nothing to select."""
        assert service.resolve_ongoing_activity() is None

    def test_single_ongoing(self, service):
        """The only ongoing activity is selected without an id."""
        service.start_activity(ongoing("09:00"))
        activity_id, activity = service.resolve_ongoing_activity()
        assert activity_id == 0
        assert activity.title == "a"

    def test_several_ongoing_without_id(self, service):
        """An id is required when several activities are ongoing."""
        service.start_activity(ongoing("09:00", "a"), deny_overlapping=False)
        service.start_activity(ongoing("10:00", "b"), deny_overlapping=False)
        with pytest.raises(AmbiguousStateError, match="provide an id"):
            service.resolve_ongoing_activity()

    def test_several_ongoing_with_id(self, service):
        """An explicit id selects one activity, or nothing if unknown."""
        service.start_activity(ongoing("09:00", "a"), deny_overlapping=False)
        service.start_activity(ongoing("10:00", "b"), deny_overlapping=False)
        assert service.resolve_ongoing_activity(1)[1].title == "b"
        assert service.resolve_ongoing_activity(5) is None


class TestQueries:
    """Tests for delegated queries."""

    def test_delete_then_most_recent_is_zero(self, service):
        """After a deletion, id 0 is still the most recent activity."""
        service.track_activity(finished("09:00", "10:00", "a"))
        service.track_activity(finished("10:00", "11:00", "b"))
        service.track_activity(finished("11:00", "12:00", "c"))

        assert service.delete_activity(1).title == "b"
        remaining = service.get_finished_activities()
        assert len(remaining) == 2
        assert dict(remaining)[0].title == "c"

    def test_summary_range(self, tmp_path):
        """Track 09:00-10:00 then query 08:00-11:00."""
        service = ActivityService(JsonStorage.in_directory(tmp_path))
        service.track_activity(finished("09:00", "10:00", "foo"))
        activities = service.filter_activities(
            lambda item: at("08:00") <= item[1].start_time <= at("11:00")
        )
        assert len(activities) == 1
        assert activities[0][1].title == "foo"
        assert str(activities[0][1].duration) == "1:00:00"

    def test_summary_not_in_range(self, service):
        """Activities starting before the range are left out."""
        service.track_activity(finished("08:30", "08:45"))
        activities = service.filter_activities(
            lambda item: at("09:00") <= item[1].start_time <= at("10:00")
        )
        assert activities == []
