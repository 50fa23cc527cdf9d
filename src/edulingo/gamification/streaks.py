"""Daily activity streaks.

A streak counts consecutive calendar days with at least one point-earning
event. Several events on the same day count once.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from sqlalchemy import case

from edulingo.db.models import UserProgress


def next_streak(current_streak: int, last_activity_date: date | None, today: date) -> int:
    """Streak value after an activity event happening ``today``."""
    if last_activity_date is None:
        return 1
    if last_activity_date >= today:
        # Same day (or a clock-skewed future date): no extra increment.
        return max(current_streak, 1)
    if last_activity_date == today - timedelta(days=1):
        return current_streak + 1
    return 1


def next_longest_streak(longest_streak: int, new_streak: int) -> int:
    return max(longest_streak, new_streak)


def streak_update_expressions(today: date) -> tuple[Any, Any]:
    """SQL expressions computing (current_streak, longest_streak) from the stored row.

    Mirrors ``next_streak`` / ``next_longest_streak`` so the update can run as a
    single statement against the row's current values.
    """
    yesterday = today - timedelta(days=1)
    new_streak = case(
        (UserProgress.last_activity_date.is_(None), 1),
        (
            UserProgress.last_activity_date >= today,
            case((UserProgress.current_streak < 1, 1), else_=UserProgress.current_streak),
        ),
        (UserProgress.last_activity_date == yesterday, UserProgress.current_streak + 1),
        else_=1,
    )
    new_longest = case(
        (UserProgress.longest_streak < new_streak, new_streak),
        else_=UserProgress.longest_streak,
    )
    return new_streak, new_longest
