"""
Calendar-day keys and injectable clocks.

Due dates are compared at day granularity. A DateKey is the ISO
``YYYY-MM-DD`` string of a local calendar day; lexicographic order of
keys matches chronological order.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Protocol

DateKey = str


def date_key(day: date) -> DateKey:
    """Format a calendar day as a DateKey."""
    return day.isoformat()


def parse_date_key(key: DateKey) -> date:
    """Parse a DateKey back into a date."""
    return date.fromisoformat(key)


def add_days(day: date, days: int) -> date:
    """
    Shift a day forward, saturating at the last representable date.

    Review intervals are uncapped, so very large ease factors may push a
    schedule past year 9999.
    """
    try:
        return day + timedelta(days=days)
    except OverflowError:
        return date.max if days > 0 else date.min


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall-clock time in the local timezone."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return date.today()


class FixedClock:
    """Manually controlled clock for tests and simulations."""

    def __init__(self, now: datetime | None = None):
        self._now = now or datetime(2025, 1, 1, 9, 0, 0)

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def advance(self, **kwargs) -> None:
        """Move the clock forward (accepts ``timedelta`` keyword arguments)."""
        self._now = self._now + timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self._now = now

