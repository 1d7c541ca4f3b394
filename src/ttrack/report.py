"""Text output for summaries, reports and status lines."""

from __future__ import annotations

from datetime import datetime, timedelta

from ttrack.activity import OngoingActivity
from ttrack.storage import ActivityWithId, OngoingActivityWithId
from ttrack.times import format_datetime, format_duration, format_relative

DEFAULT_STATUS_FORMAT = "{ongoing}"


def in_range(item: ActivityWithId, start: datetime, end: datetime) -> bool:
    """True if the activity starts within [start, end]."""
    _, activity = item
    return start <= activity.start_time <= end


def summary_lines(
    activities: list[ActivityWithId],
    *,
    display_id: bool = False,
    display_description: bool = False,
) -> list[str]:
    """One line per activity: title, start, stop and duration."""
    width = max((len(a.title) for _, a in activities), default=0)
    lines = []
    for activity_id, activity in activities:
        line = (
            f"{activity.title:<{width}} {format_datetime(activity.start_time)} "
            f"{format_datetime(activity.stop_time)} {format_duration(activity.duration)}"
        )
        if display_id:
            line = f"{activity_id:>2} {line}"
        lines.append(line)
        if display_description and activity.description:
            lines.append(f"    {activity.description}")
    return lines


def aggregate_by_title(activities: list[ActivityWithId]) -> list[tuple[str, timedelta]]:
    """Sum durations of activities with the exact same title.

    Titles keep their order of first appearance. Tags in a different order
    make a different title.
    """
    totals: dict[str, timedelta] = {}
    for _, activity in activities:
        totals[activity.title] = totals.get(activity.title, timedelta(0)) + activity.duration
    return list(totals.items())


def report_lines(activities: list[ActivityWithId]) -> list[str]:
    totals = aggregate_by_title(activities)
    width = max((len(title) for title, _ in totals), default=0)
    return [f"{title:<{width}} {format_duration(total)}" for title, total in totals]


def format_status(
    ongoing: list[OngoingActivityWithId],
    now: datetime,
    format_string: str | None = None,
) -> str:
    """Format ongoing activities for shell prompts and status bars.

    Placeholders: {id}, {ongoing} (title), {start}, {duration} (HH:MM:SS)
    and {human_duration} (e.g. '5 minutes ago').
    """
    template = format_string or DEFAULT_STATUS_FORMAT
    return " ".join(_status_entry(template, activity_id, activity, now) for activity_id, activity in ongoing)


def _status_entry(template: str, activity_id: int, activity: OngoingActivity, now: datetime) -> str:
    elapsed = now - activity.start_time
    return (
        template.replace("{id}", str(activity_id))
        .replace("{ongoing}", activity.title)
        .replace("{start}", format_datetime(activity.start_time))
        .replace("{human_duration}", f"{format_relative(elapsed)} ago")
        .replace("{duration}", format_duration(elapsed))
    )
