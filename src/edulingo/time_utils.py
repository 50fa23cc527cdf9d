"""Clock helpers in the school's time zone.

Calendar-day rules (streaks, reminder due dates, reminder hours) are
evaluated in the school's local time, not UTC.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from zoneinfo import ZoneInfo

from edulingo.config import get_settings


def school_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


def school_now() -> datetime:
    """Current aware datetime in the school's time zone."""
    return datetime.now(school_tz())


def school_today() -> date:
    return school_now().date()


def clamp_day(year: int, month: int, day: int) -> date:
    """Date for ``day`` in the given month, clamped to the month's last day."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def add_months(d: date, months: int, day: int | None = None) -> date:
    """Shift ``d`` by whole months keeping ``day`` (default d.day), clamped."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    return clamp_day(year, month, day if day is not None else d.day)
