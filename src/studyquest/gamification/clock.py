"""Calendar-day helpers for streak evaluation.

Streaks compare calendar dates, never elapsed hours: activity at 23:59 and
again at 00:01 counts as two consecutive days.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from studyquest.config import get_settings


def is_same_day(a: date, b: date) -> bool:
    """True if both dates fall on the same calendar day."""
    return a == b


def is_yesterday(day: date, today: date) -> bool:
    """True if `day` is the calendar day before `today`."""
    return day == today - timedelta(days=1)


def days_between(earlier: date, later: date) -> int:
    """Whole calendar days from `earlier` to `later` (negative if reversed)."""
    return (later - earlier).days


def last_n_days(today: date, n: int = 7) -> list[date]:
    """The `n` calendar days ending at `today`, oldest first."""
    return [today - timedelta(days=offset) for offset in range(n - 1, -1, -1)]


class Clock:
    """Resolves "today" in the app-defined streak timezone."""

    def __init__(self, tz_name: str | None = None) -> None:
        self.tz = ZoneInfo(tz_name or get_settings().streak_timezone)

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    def date_of(self, moment: datetime) -> date:
        """Calendar day of an instant. Naive datetimes are taken as UTC."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz).date()


def get_clock() -> Clock:
    """Clock for the configured streak timezone."""
    return Clock()
