"""Badge catalog and award rules.

The catalog is static reference data; only ``user_badges`` rows are stored.
Rules are pure predicates over a user's progress and activity aggregates so
they can be evaluated (and tested) without a database.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

BADGES: list[dict] = [
    {
        "id": "first_assignment",
        "name": "First Steps",
        "description": "Complete your first assignment",
        "icon": "\U0001f3af",
        "requirement": "Complete 1 assignment",
    },
    {
        "id": "perfect_attendance",
        "name": "Perfect Attendance",
        "description": "Attend 10 classes without missing",
        "icon": "⭐",
        "requirement": "10 consecutive classes",
    },
    {
        "id": "top_student",
        "name": "Top Student",
        "description": "Achieve 90% average grade",
        "icon": "\U0001f3c6",
        "requirement": "90% average grade",
    },
    {
        "id": "week_warrior",
        "name": "Week Warrior",
        "description": "7-day activity streak",
        "icon": "\U0001f525",
        "requirement": "7 day streak",
    },
    {
        "id": "month_master",
        "name": "Month Master",
        "description": "30-day activity streak",
        "icon": "\U0001f48e",
        "requirement": "30 day streak",
    },
    {
        "id": "assignment_king",
        "name": "Assignment King",
        "description": "Complete 50 assignments",
        "icon": "\U0001f451",
        "requirement": "50 assignments",
    },
    # Awarded by staff, no automatic rule.
    {
        "id": "early_bird",
        "name": "Early Bird",
        "description": "Submit 10 assignments early",
        "icon": "\U0001f426",
        "requirement": "10 early submissions",
    },
    {
        "id": "helper",
        "name": "Helper",
        "description": "Help 5 classmates",
        "icon": "\U0001f91d",
        "requirement": "Help 5 classmates",
    },
]

BADGES_BY_ID: dict[str, dict] = {b["id"]: b for b in BADGES}

ATTENDANCE_WINDOW = 10
BADGE_ATTENDANCE_STATUSES = frozenset({"present", "late"})
RATE_ATTENDANCE_STATUSES = frozenset({"present", "late", "excused"})


def get_badge(badge_id: str) -> dict | None:
    return BADGES_BY_ID.get(badge_id)


@dataclass(frozen=True)
class ActivitySnapshot:
    """Aggregates the rules look at, fetched fresh for every evaluation."""

    current_streak: int = 0
    submitted_files: int = 0
    recent_attendance: Sequence[str] = ()  # newest first, at most ATTENDANCE_WINDOW
    grade_scores: Sequence[float | Decimal] = ()
    attendance_statuses: frozenset[str] = field(default=BADGE_ATTENDANCE_STATUSES)


def _first_assignment(s: ActivitySnapshot) -> bool:
    return s.submitted_files >= 1


def _perfect_attendance(s: ActivitySnapshot) -> bool:
    if len(s.recent_attendance) < ATTENDANCE_WINDOW:
        return False
    window = s.recent_attendance[:ATTENDANCE_WINDOW]
    return all(status in s.attendance_statuses for status in window)


def _top_student(s: ActivitySnapshot) -> bool:
    if not s.grade_scores:
        return False
    average = sum(Decimal(str(score)) for score in s.grade_scores) / len(s.grade_scores)
    return average >= 90


def _week_warrior(s: ActivitySnapshot) -> bool:
    return s.current_streak >= 7


def _month_master(s: ActivitySnapshot) -> bool:
    return s.current_streak >= 30


def _assignment_king(s: ActivitySnapshot) -> bool:
    return s.submitted_files >= 50


BADGE_RULES: dict[str, Callable[[ActivitySnapshot], bool]] = {
    "first_assignment": _first_assignment,
    "perfect_attendance": _perfect_attendance,
    "top_student": _top_student,
    "week_warrior": _week_warrior,
    "month_master": _month_master,
    "assignment_king": _assignment_king,
}


def evaluate_badges(snapshot: ActivitySnapshot, held: Iterable[str] = ()) -> list[str]:
    """Return badge ids the snapshot qualifies for and that are not held yet.

    Every rule runs exactly once, in catalog order.
    """
    already = set(held)
    qualifying = []
    for badge_id, rule in BADGE_RULES.items():
        if rule(snapshot) and badge_id not in already:
            qualifying.append(badge_id)
    return qualifying


def badge_notification(badge_id: str) -> tuple[str, str]:
    """(title, message) of the achievement notification for a new badge."""
    badge = BADGES_BY_ID[badge_id]
    return (
        "New Badge Earned!",
        f'Congratulations! You earned the "{badge["name"]}" badge: {badge["description"]}',
    )
