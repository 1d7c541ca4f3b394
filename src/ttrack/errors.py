"""Exceptions raised by ttrack."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from ttrack.times import format_datetime

if TYPE_CHECKING:
    from datetime import datetime

    from ttrack.activity import Activity, OngoingActivity


class TrackerError(Exception):
    """Base exception for time tracking errors."""

    pass


class InvalidIntervalError(TrackerError):
    """Raised when an activity would stop before it starts."""

    def __init__(self, start_time: datetime, stop_time: datetime) -> None:
        self.start_time = start_time
        self.stop_time = stop_time
        super().__init__(
            f"stop time ({format_datetime(stop_time)}) < start time ({format_datetime(start_time)})"
        )


class OverlapError(TrackerError):
    """Raised when an activity would overlap finished activities."""

    def __init__(
        self, activity: Activity | OngoingActivity, conflicts: Sequence[Activity]
    ) -> None:
        self.activity = activity
        self.conflicts = list(conflicts)
        listed = "; ".join(c.describe() for c in self.conflicts)
        super().__init__(f"{activity.describe()} would overlap {listed}")


class AmbiguousStateError(TrackerError):
    """Raised when several activities are ongoing and none was selected."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(
            f"{count} ongoing activities, please provide an id (e.g. --id 0)."
        )


class StorageError(TrackerError):
    """Raised when the activity store cannot be read or written."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class TimelineError(TrackerError):
    """Raised when a timeline cannot be laid out."""

    pass


class ConfigError(TrackerError):
    """Raised when a configuration file is invalid."""

    pass


class TimeParseError(TrackerError):
    """Raised when a time clue cannot be understood."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"invalid time: {text!r}")
