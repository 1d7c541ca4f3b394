"""Tests for time helpers, the clock and time clue parsing."""

from datetime import date, datetime, timedelta

import pytest

from ttrack.clock import FixedClock
from ttrack.errors import TimeParseError
from ttrack.timeparse import parse_time, split_time_clue, split_time_range
from ttrack.times import (
    format_datetime,
    format_duration,
    format_relative,
    parse_datetime,
    total_duration,
)

# A Friday.
NOW = parse_datetime("2020-12-25T15:30:00")


class TestFormatDuration:
    """Tests for HH:MM:SS formatting."""

    def test_zero(self):
        """A zero duration is all zeros."""
        assert format_duration(timedelta(0)) == "00:00:00"

    def test_hours_minutes_seconds(self):
        """Each unit is zero-padded to two digits."""
        assert format_duration(timedelta(hours=1, minutes=2, seconds=3)) == "01:02:03"

    def test_more_than_a_day(self):
        """Hours keep counting past 24."""
        assert format_duration(timedelta(hours=30)) == "30:00:00"

    def test_rounds_to_nearest_second(self):
        """A millisecond short of two hours displays as two hours."""
        assert format_duration(timedelta(hours=2) - timedelta(milliseconds=1)) == "02:00:00"

    def test_total_duration(self):
        """Durations add up, starting from zero."""
        assert total_duration([]) == timedelta(0)
        assert total_duration([timedelta(minutes=30), timedelta(minutes=45)]) == timedelta(minutes=75)


class TestFormatRelative:
    """Tests for human durations."""

    @pytest.mark.parametrize(
        "delta,expected",
        [
            (timedelta(seconds=30), "a few seconds"),
            (timedelta(minutes=1), "1 minute"),
            (timedelta(minutes=5), "5 minutes"),
            (timedelta(hours=2), "2 hours"),
            (timedelta(days=3), "3 days"),
            (timedelta(minutes=-5), "5 minutes"),
        ],
    )
    def test_format_relative(self, delta, expected):
        """Largest whole unit, singular or plural."""
        assert format_relative(delta) == expected


class TestDatetimeFormat:
    """Tests for the persisted timestamp format."""

    def test_roundtrip_string(self):
        """Formatting a parsed timestamp gives back the same string."""
        assert format_datetime(parse_datetime("2019-12-25T18:43:00")) == "2019-12-25T18:43:00"

    def test_parse_is_aware(self):
        """Parsed timestamps carry the local timezone."""
        assert parse_datetime("2019-12-25T18:43:00").tzinfo is not None

    def test_invalid(self):
        """Other layouts are rejected."""
        with pytest.raises(ValueError):
            parse_datetime("25/12/2019")


class TestClock:
    """Tests for named ranges."""

    def test_today_range(self):
        """Today runs from midnight to 23:59:59."""
        start, end = FixedClock(NOW).today_range()
        assert format_datetime(start) == "2020-12-25T00:00:00"
        assert format_datetime(end) == "2020-12-25T23:59:59"

    def test_yesterday_range(self):
        """Yesterday is the whole previous day."""
        start, end = FixedClock(NOW).yesterday_range()
        assert format_datetime(start) == "2020-12-24T00:00:00"
        assert format_datetime(end) == "2020-12-24T23:59:59"

    def test_this_week_starts_monday(self):
        """The week runs from Monday to Sunday."""
        start, end = FixedClock(NOW).this_week_range()
        assert format_datetime(start) == "2020-12-21T00:00:00"
        assert format_datetime(end) == "2020-12-27T23:59:59"

    def test_last_week(self):
        """Last week is the Monday-to-Sunday before this one."""
        start, end = FixedClock(NOW).last_week_range()
        assert format_datetime(start) == "2020-12-14T00:00:00"
        assert format_datetime(end) == "2020-12-20T23:59:59"

    def test_fixed_clock(self):
        """A naive instant is read as local time."""
        assert FixedClock(datetime(2020, 12, 25, 15, 30)).now() == NOW


class TestParseTime:
    """Tests for time clues."""

    @pytest.mark.parametrize(
        "clue,expected",
        [
            ("now", "2020-12-25T15:30:00"),
            ("2019-12-25T18:43:00", "2019-12-25T18:43:00"),
            ("2019-12-25 18:43", "2019-12-25T18:43:00"),
            ("09:00", "2020-12-25T09:00:00"),
            ("9:05:30", "2020-12-25T09:05:30"),
            ("4 min ago", "2020-12-25T15:26:00"),
            ("2 hours ago", "2020-12-25T13:30:00"),
            ("1 day ago", "2020-12-24T15:30:00"),
        ],
    )
    def test_valid(self, clue, expected):
        """Clues resolve relative to the current time."""
        assert format_datetime(parse_time(clue, NOW)) == expected

    def test_yesterday(self):
        """Day names resolve relative to the current day."""
        assert parse_time("yesterday 14:30", NOW).date() == date(2020, 12, 24)

    def test_result_is_aware(self):
        """Parsed clues carry the local timezone."""
        assert parse_time("09:00", NOW).tzinfo is not None

    @pytest.mark.parametrize("clue", ["", "   ", "foo", "foo bar", "12 parsecs ago"])
    def test_invalid(self, clue):
        """Anything that is not a time is rejected."""
        with pytest.raises(TimeParseError):
            parse_time(clue, NOW)


class TestSplitTimeClue:
    """Tests for separating time clues from tags."""

    def test_no_clue(self):
        """Without a clue, the time is now and every token is a tag."""
        assert split_time_clue(["foo", "bar"], NOW) == (NOW, ["foo", "bar"])

    def test_clock_clue(self):
        """A leading clock time is the start time."""
        time, tags = split_time_clue(["09:00", "foo"], NOW)
        assert format_datetime(time) == "2020-12-25T09:00:00"
        assert tags == ["foo"]

    def test_multi_word_clue(self):
        """The longest leading run of tokens forming a time is the clue."""
        time, tags = split_time_clue(["4", "min", "ago", "foo"], NOW)
        assert format_datetime(time) == "2020-12-25T15:26:00"
        assert tags == ["foo"]

    def test_range(self):
        """START - END is followed by the tags."""
        start, stop, tags = split_time_range(["09:00", "-", "10:00", "foo", "bar"], NOW)
        assert format_datetime(start) == "2020-12-25T09:00:00"
        assert format_datetime(stop) == "2020-12-25T10:00:00"
        assert tags == ["foo", "bar"]

    def test_range_open_end(self):
        """A missing end means now."""
        start, stop, tags = split_time_range(["09:00", "-"], NOW)
        assert stop == NOW
        assert tags == []

    def test_range_missing_separator(self):
        """A range needs the ' - ' separator."""
        with pytest.raises(TimeParseError, match="missing"):
            split_time_range(["09:00", "foo"], NOW)
