"""Current time and named date ranges."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from ttrack.times import local_now, to_local


class Clock:
    """Supplies the current instant and day/week ranges around it.

    Ranges are inclusive: they run from 00:00:00 of the first day to 23:59:59
    of the last one. Weeks start on Monday (ISO 8601).
    """

    def now(self) -> datetime:
        return local_now()

    def today(self) -> date:
        return self.now().date()

    @staticmethod
    def days_range(first: date, last: date) -> tuple[datetime, datetime]:
        return (
            to_local(datetime.combine(first, time(0, 0, 0))),
            to_local(datetime.combine(last, time(23, 59, 59))),
        )

    def today_range(self) -> tuple[datetime, datetime]:
        today = self.today()
        return self.days_range(today, today)

    def yesterday_range(self) -> tuple[datetime, datetime]:
        yesterday = self.today() - timedelta(days=1)
        return self.days_range(yesterday, yesterday)

    def this_week_range(self) -> tuple[datetime, datetime]:
        monday = self.today() - timedelta(days=self.today().weekday())
        return self.days_range(monday, monday + timedelta(days=6))

    def last_week_range(self) -> tuple[datetime, datetime]:
        monday = self.today() - timedelta(days=self.today().weekday() + 7)
        return self.days_range(monday, monday + timedelta(days=6))


class FixedClock(Clock):
    """A clock stopped at a given instant."""

    def __init__(self, instant: datetime) -> None:
        self.instant = to_local(instant)

    def now(self) -> datetime:
        return self.instant
