"""Render finished activities as a colored, day-by-day terminal timeline.

Each day produces two rows: a legend row with the `HH:MM-HH:MM` bounds of
every activity followed by the date, and a data row with the activity titles
on their palette color followed by the day total. A row is scaled so that the
day's earliest start and latest stop span the available width.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Callable, Sequence

import click

from ttrack.activity import Activity
from ttrack.errors import TimelineError
from ttrack.storage import ActivityId
from ttrack.times import format_duration, to_local, total_duration

RGB = tuple[int, int, int]
Interval = tuple[ActivityId, Activity]
Label = tuple[str, RGB]

DEFAULT_TERMINAL_WIDTH = 90
SECONDS_PER_DAY = 86_400
BLACK: RGB = (0, 0, 0)
END_OF_DAY = time(23, 59, 59, 999_000)


def terminal_width() -> int:
    return shutil.get_terminal_size((DEFAULT_TERMINAL_WIDTH, 24)).columns


def _midnight(day: date) -> datetime:
    return to_local(datetime.combine(day, time()))


def split_by_day(intervals: Sequence[Interval]) -> list[Interval]:
    """Split activities spanning midnight into one piece per calendar day.

    Pieces keep the id of the activity they come from. A piece ends at
    23:59:59.999 of its day and the next one starts at 00:00:00. Empty
    remainders (an activity stopping exactly at midnight) are dropped.
    """
    pieces: list[Interval] = []
    for activity_id, activity in intervals:
        start = activity.start_time
        while start.date() != activity.stop_time.date():
            day_end = to_local(datetime.combine(start.date(), END_OF_DAY))
            pieces.append(
                (activity_id, activity.model_copy(update={"start_time": start, "stop_time": day_end}))
            )
            start = _midnight(start.date() + timedelta(days=1))
        if start == activity.start_time or start < activity.stop_time:
            pieces.append(
                (activity_id, activity.model_copy(update={"start_time": start}))
            )
    return pieces


def seconds_of_day(dt: datetime) -> float:
    return (dt - _midnight(dt.date())).total_seconds()


def bounds(interval: Interval) -> tuple[float, float]:
    _, activity = interval
    return seconds_of_day(activity.start_time), seconds_of_day(activity.stop_time)


def day_bounds(intervals: Sequence[Interval]) -> tuple[float, float]:
    """Earliest start and latest stop, in seconds from midnight."""
    if not intervals:
        return 0.0, float(SECONDS_PER_DAY)
    return (
        min(bounds(i)[0] for i in intervals),
        max(bounds(i)[1] for i in intervals),
    )


def color(activity_id: ActivityId, colors: Sequence[RGB]) -> RGB:
    if not colors:
        return BLACK
    return colors[activity_id % len(colors)]


def activity_label(interval: Interval, colors: Sequence[RGB]) -> Label:
    activity_id, activity = interval
    return activity.title, color(activity_id, colors)


def legend_label(interval: Interval) -> Label:
    _, activity = interval
    return (
        f"{activity.start_time:%H:%M}-{activity.stop_time:%H:%M}",
        BLACK,
    )


def chunkify(text: str, size: int) -> list[str]:
    """Cut `text` into lines of exactly `size` characters, padding the last one."""
    if size <= 0:
        return [""]
    chunks = [text[i : i + size] for i in range(0, len(text), size)] or [""]
    chunks[-1] = chunks[-1].ljust(size)
    return chunks


@dataclass
class _Block:
    """A run of columns: blank when `label` is None."""

    width: int
    label: Label | None = None

    def render(self) -> list[str]:
        if self.label is None:
            return [" " * self.width]
        text, rgb = self.label
        return [
            click.style(chunk, bg=rgb) if chunk else chunk
            for chunk in chunkify(text, self.width)
        ]


def _describe(interval: Interval) -> str:
    activity_id, activity = interval
    return f"{activity_id}: {activity.describe()}"


def layout(
    intervals: Sequence[Interval],
    label: Callable[[Interval], Label],
    width: int,
    boundaries: tuple[float, float],
) -> list[str]:
    """Place `intervals` on `width` columns and render them as lines.

    Seconds in `boundaries` map linearly onto columns 0..width. Labels wider
    than their segment wrap onto extra lines.

    Raises:
        TimelineError: If two intervals claim the same columns.
    """
    low, high = boundaries
    span = high - low if high > low else 1.0

    def column(second: float) -> int:
        return min(width, max(0, int((second - low) * width / span)))

    placed = []
    for interval in intervals:
        start, stop = bounds(interval)
        placed.append((column(start), column(stop), interval))
    placed.sort(key=lambda p: (p[0], p[1]))
    for (_, previous_end, previous), (start, _, current) in zip(placed, placed[1:]):
        if start < previous_end:
            raise TimelineError(
                "failed to create timeline: overlapping activities "
                f"{_describe(previous)} and {_describe(current)}"
            )

    blocks: list[_Block] = []
    cursor = 0
    for start, stop, interval in placed:
        if start > cursor:
            blocks.append(_Block(start - cursor))
        blocks.append(_Block(stop - start, label(interval)))
        cursor = stop
    if cursor < width:
        blocks.append(_Block(width - cursor))

    rendered = [block.render() for block in blocks]
    height = max((len(lines) for lines in rendered), default=0)
    return [
        "".join(
            lines[row] if row < len(lines) else " " * block.width
            for block, lines in zip(blocks, rendered)
        )
        for row in range(height)
    ]


def render_days(
    intervals: Sequence[Interval],
    colors: Sequence[RGB],
    width: int | None = None,
) -> list[str]:
    """Render activities as a timeline, one legend row and one data row per day.

    Args:
        intervals: (id, activity) pairs; the id selects the palette color.
        colors: Background palette.
        width: Terminal width; detected when omitted.

    Returns:
        Lines to print. Empty if there are no activities.

    Raises:
        TimelineError: If activities of the same day overlap.
    """
    if width is None:
        width = terminal_width()
    pieces = split_by_day(intervals)
    rendered: list[str] = []
    for day in sorted({activity.start_time.date() for _, activity in pieces}):
        day_pieces = [p for p in pieces if p[1].start_time.date() == day]
        total = format_duration(total_duration(a.duration for _, a in day_pieces))
        # The date/total column is dropped when it does not fit.
        trailing = len(total) + 1 if width >= len(total) + 1 else 0
        available = max(0, width - trailing)
        boundaries = day_bounds(day_pieces)

        legend = layout(day_pieces, legend_label, available, boundaries)
        for row, line in enumerate(legend):
            day_month = f"{day:%d/%m}" if row == 0 and trailing else ""
            rendered.append(line + day_month.rjust(trailing))

        timeline = layout(day_pieces, lambda i: activity_label(i, colors), available, boundaries)
        for row, line in enumerate(timeline):
            day_total = f" {total}" if row == 0 and trailing else ""
            rendered.append(line + day_total.ljust(trailing))
    return rendered
