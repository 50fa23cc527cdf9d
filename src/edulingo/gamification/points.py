"""Point values per activity source."""

from __future__ import annotations

from decimal import Decimal

ACTIVITY_POINTS: dict[str, int] = {
    "assignment_complete": 10,
    "assignment_early": 5,
    "class_attend": 5,
    "perfect_attendance": 20,
    "grade_90_plus": 15,
    "grade_80_plus": 10,
    "daily_login": 2,
    "streak_bonus": 5,
}


def points_for_grade(score: float | Decimal) -> int:
    """Bonus points for a graded assignment."""
    if score >= 90:
        return ACTIVITY_POINTS["grade_90_plus"]
    if score >= 80:
        return ACTIVITY_POINTS["grade_80_plus"]
    return 0


def points_for_activity(source: str, score: float | Decimal | None = None) -> int:
    """Default points for an activity source.

    ``grade`` events are scored from the grade itself.

    Raises:
        ValueError: If the source has no default point value.
    """
    if source == "grade":
        if score is None:
            msg = "A score is required to derive points for a grade"
            raise ValueError(msg)
        return points_for_grade(score)
    try:
        return ACTIVITY_POINTS[source]
    except KeyError:
        msg = f"No default point value for source: {source}"
        raise ValueError(msg) from None
