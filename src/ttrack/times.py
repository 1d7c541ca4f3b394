"""Instant and duration helpers.

Instants are timezone-aware datetimes in the local zone. They are persisted and
displayed as local wall-clock time without an offset.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

# e.g. 2019-12-25T18:43:00
DATETIME_FMT = "%Y-%m-%dT%H:%M:%S"


def to_local(dt: datetime) -> datetime:
    """Return `dt` as an aware datetime in the local zone.

    Naive datetimes are interpreted as local wall-clock time.
    """
    return dt.astimezone()


def local_now() -> datetime:
    """Current local time, truncated to whole seconds."""
    return datetime.now().astimezone().replace(microsecond=0)


def format_datetime(dt: datetime) -> str:
    return to_local(dt).strftime(DATETIME_FMT)


def parse_datetime(value: str) -> datetime:
    """Parse a `YYYY-MM-DDTHH:MM:SS` local timestamp.

    Raises:
        ValueError: If the string is not in the expected format.
    """
    return to_local(datetime.strptime(value, DATETIME_FMT))


def format_duration(delta: timedelta) -> str:
    """Format a duration as 'HH:MM:SS' (hours may exceed 24).

    Args:
        delta: Duration to format. Negative durations are shown with a leading '-'.

    Returns:
        Formatted duration string, rounded to the nearest second.
    """
    seconds = round(delta.total_seconds())
    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    return f"{sign}{seconds // 3600:02d}:{(seconds // 60) % 60:02d}:{seconds % 60:02d}"


def total_duration(durations: Iterable[timedelta]) -> timedelta:
    return sum(durations, timedelta(0))


def format_relative(delta: timedelta) -> str:
    """Format a duration in words (e.g., '5 minutes', '2 hours').

    Args:
        delta: Elapsed time. Negative values are treated as their magnitude.

    Returns:
        Human-readable duration.
    """
    seconds = abs(delta.total_seconds())
    if seconds < 60:
        return "a few seconds"
    elif seconds < 3600:
        minutes = int(seconds / 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    elif seconds < 86400:
        hours = int(seconds / 3600)
        return f"{hours} hour{'s' if hours != 1 else ''}"
    else:
        days = int(seconds / 86400)
        return f"{days} day{'s' if days != 1 else ''}"
