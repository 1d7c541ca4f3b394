"""Parse time clues given on the command line.

Clues are read by dateparser relative to the current time, e.g.:

    now
    2019-12-25T18:43:00, 2019-12-25 18:43
    09:00, 09:00:30                    (today)
    yesterday 14:30
    4 min ago, 2 hours ago, 1 day ago
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

import dateparser

from ttrack.errors import TimeParseError
from ttrack.times import to_local

LANGUAGES = ["en"]


def parse_time(text: str, now: datetime) -> datetime:
    """Resolve a time clue relative to `now`.

    Raises:
        TimeParseError: If `text` is not a recognizable time.
    """
    clue = " ".join(text.split())
    if not clue:
        raise TimeParseError(text)
    if clue.lower() == "now":
        return now

    # dateparser works on naive local wall-clock times.
    parsed = dateparser.parse(
        clue,
        languages=LANGUAGES,
        settings={"RELATIVE_BASE": to_local(now).replace(tzinfo=None)},
    )
    if parsed is None:
        raise TimeParseError(text)
    return to_local(parsed)


def split_time_clue(tokens: Sequence[str], now: datetime) -> tuple[datetime, list[str]]:
    """Split leading time clue from tags.

    The longest run of leading tokens that parses as a time is the clue;
    without one, the time is `now`.

    e.g. ['09:00', 'foo'] -> (09:00, ['foo']); ['foo'] -> (now, ['foo'])
    """
    for at in range(len(tokens), 0, -1):
        try:
            return parse_time(" ".join(tokens[:at]), now), list(tokens[at:])
        except TimeParseError:
            continue
    return now, list(tokens)


def split_time_range(
    tokens: Sequence[str], now: datetime
) -> tuple[datetime, datetime, list[str]]:
    """Split 'START - [END] [TAGS...]' into its parts.

    A missing END means `now`.

    Raises:
        TimeParseError: If the ' - ' separator is missing or START is invalid.
    """
    if "-" not in tokens:
        raise TimeParseError(" ".join(tokens) + " (missing ' - ' between range start and end?)")
    separator = list(tokens).index("-")
    start = parse_time(" ".join(tokens[:separator]), now)
    stop, tags = split_time_clue(tokens[separator + 1 :], now)
    return start, stop, tags
