"""Ongoing and finished activities."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from ttrack.errors import InvalidIntervalError
from ttrack.times import format_datetime, parse_datetime, to_local


class _TaggedActivity(BaseModel):
    """Fields and helpers shared by ongoing and finished activities."""

    model_config = ConfigDict(frozen=True)

    @field_validator("start_time", "stop_time", mode="before", check_fields=False)
    @classmethod
    def _localize(cls, value: Any) -> Any:
        """Read stored `YYYY-MM-DDTHH:MM:SS` strings; localize datetimes."""
        if isinstance(value, str):
            return parse_datetime(value)
        if isinstance(value, datetime):
            return to_local(value)
        return value

    @field_validator("tags", check_fields=False)
    @classmethod
    def _check_tags(cls, tags: list[str]) -> list[str]:
        if any(not tag for tag in tags):
            raise ValueError("tags must be non-empty strings")
        return tags

    @field_serializer("start_time", "stop_time", check_fields=False)
    def _serialize_time(self, value: datetime) -> str:
        return format_datetime(value)

    @property
    def title(self) -> str:
        """Tags joined by a space."""
        return " ".join(self.tags)  # type: ignore[attr-defined]


class OngoingActivity(_TaggedActivity):
    """A started and unfinished activity (no stop time)."""

    start_time: datetime
    tags: list[str] = Field(default_factory=list)
    description: str | None = None

    def into_activity(self, stop_time: datetime) -> Activity:
        """Convert to a finished activity stopped at `stop_time`.

        Raises:
            InvalidIntervalError: If `stop_time` is before the start time.
        """
        stop_time = to_local(stop_time)
        if stop_time < self.start_time:
            raise InvalidIntervalError(self.start_time, stop_time)
        return Activity(
            start_time=self.start_time,
            stop_time=stop_time,
            tags=list(self.tags),
            description=self.description,
        )

    def describe(self) -> str:
        return f"{self.title!r} (started {format_datetime(self.start_time)})"


class Activity(_TaggedActivity):
    """A finished activity; `start_time <= stop_time`.

    Activities are ordered by start time.
    """

    start_time: datetime
    stop_time: datetime
    tags: list[str] = Field(default_factory=list)
    description: str | None = None

    @model_validator(mode="after")
    def _check_interval(self) -> Activity:
        if self.stop_time < self.start_time:
            raise ValueError(
                f"stop time ({format_datetime(self.stop_time)}) < "
                f"start time ({format_datetime(self.start_time)})"
            )
        return self

    def __lt__(self, other: Activity) -> bool:
        return self.start_time < other.start_time

    @property
    def duration(self) -> timedelta:
        return self.stop_time - self.start_time

    def describe(self) -> str:
        return (
            f"{self.title!r} ({format_datetime(self.start_time)} - "
            f"{format_datetime(self.stop_time)})"
        )


def intersect(activity: Activity, instant: datetime) -> Activity | None:
    """Return a copy of `activity` if `instant` lies strictly inside it."""
    if activity.start_time < instant < activity.stop_time:
        return activity.model_copy()
    return None


def overlap(activity: Activity, other: Activity) -> Activity | None:
    """Return a copy of `activity` if it overlaps `other`, else None.

    Two activities overlap when the start of one lies strictly inside the
    other. Activities sharing a start time overlap when both have a non-zero
    duration. Sharing only an endpoint is not an overlap.
    """
    if activity.start_time == other.start_time:
        if activity.duration and other.duration:
            return activity.model_copy()
        return None
    earlier, later = (activity, other) if activity < other else (other, activity)
    if intersect(earlier, later.start_time) is not None:
        return activity.model_copy()
    return None
