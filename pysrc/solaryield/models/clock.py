"""Simulated clock and calendar helpers.

The clock holds the engine's notion of "current simulated time" in local
solar time. It is injected into a scheduler, never shared implicitly.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta


def day_of_year(when: date | datetime) -> int:
    """One-based day of the year."""
    return when.timetuple().tm_yday


def days_in_year(when: date | datetime) -> int:
    return 366 if date(when.year, 12, 31).timetuple().tm_yday == 366 else 365


def days_in_month(year: int, month: int) -> int:
    """Number of days in a zero-based month of ``year``."""
    return calendar.monthrange(year, month + 1)[1]


def minutes_into_day(when: datetime) -> float:
    """Minutes since midnight, including fractional seconds."""
    return when.hour * 60 + when.minute + (when.second + when.microsecond / 1e6) / 60.0


def hour_bucket(when: datetime) -> int:
    """
    Hourly slot for a sample time.

    Samples at minute 30 or later belong to the next hour, so each slot is
    centred on the full hour. Hour 24 wraps to slot 0.
    """
    hour = when.hour
    if when.minute >= 30:
        hour += 1
    return hour % 24


class SimulatedClock:
    """
    Mutable simulated time.

    Example:
        clock = SimulatedClock(datetime(2024, 6, 21, 12))
        saved = clock.snapshot()
        clock.advance(15)
        clock.restore(saved)
    """

    __slots__ = ("_now",)

    def __init__(self, now: datetime):
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now

    def set(self, when: datetime) -> None:
        self._now = when

    def advance(self, minutes: float) -> datetime:
        self._now = self._now + timedelta(minutes=minutes)
        return self._now

    def set_minutes_into_day(self, minutes: float, day: date | None = None) -> datetime:
        """Move to ``minutes`` after midnight of ``day`` (default: the current day)."""
        day = day or self._now.date()
        midnight = datetime(day.year, day.month, day.day, tzinfo=self._now.tzinfo)
        self._now = midnight + timedelta(minutes=minutes)
        return self._now

    def snapshot(self) -> datetime:
        return self._now

    def restore(self, saved: datetime) -> None:
        self._now = saved

    @property
    def day_of_year(self) -> int:
        return day_of_year(self._now)

    @property
    def month(self) -> int:
        """Zero-based month."""
        return self._now.month - 1

    @property
    def minutes_into_day(self) -> float:
        return minutes_into_day(self._now)

    def __repr__(self) -> str:
        return f"SimulatedClock({self._now.isoformat()})"
