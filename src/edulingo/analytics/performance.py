"""Per-group student performance summary and at-risk screening."""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from edulingo.db.models import Assignment, Attendance, Grade, GroupStudent
from edulingo.gamification.badges import RATE_ATTENDANCE_STATUSES

logger = logging.getLogger(__name__)

LOW_GRADE_BELOW = 60
POOR_ATTENDANCE_BELOW = 70
MISSING_ASSIGNMENTS_BELOW = 50


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole > 0 else 0.0


async def calculate_student_performance(db: AsyncSession, student_id: int, group_id: int) -> dict:
    """Average grade, assignment completion and attendance of a student in a group.

    Completion counts graded assignments against all group assignments.
    Attendance counts present, late and excused records as attended.
    """
    grades_result = await db.execute(
        select(func.count(Grade.id), func.avg(Grade.score)).where(
            Grade.student_id == student_id, Grade.group_id == group_id,
        )
    )
    grade_count, grade_avg = grades_result.one()

    assignments_total = (await db.execute(
        select(func.count()).select_from(Assignment).where(Assignment.group_id == group_id)
    )).scalar_one()

    assignments_submitted = (await db.execute(
        select(func.count(func.distinct(Grade.assignment_id))).where(
            Grade.student_id == student_id,
            Grade.group_id == group_id,
            Grade.assignment_id.is_not(None),
        )
    )).scalar_one()

    attendance_result = await db.execute(
        select(Attendance.status, func.count())
        .where(Attendance.student_id == student_id, Attendance.group_id == group_id)
        .group_by(Attendance.status)
    )
    by_status = {status: count for status, count in attendance_result.all()}
    classes_total = sum(by_status.values())
    classes_attended = sum(c for s, c in by_status.items() if s in RATE_ATTENDANCE_STATUSES)

    average = float(round(Decimal(str(grade_avg)), 2)) if grade_count else 0.0
    return {
        "student_id": student_id,
        "group_id": group_id,
        "average_grade": average,
        "grades_count": grade_count,
        "assignment_completion_rate": min(_rate(assignments_submitted, assignments_total), 100.0),
        "assignments_submitted": assignments_submitted,
        "assignments_total": assignments_total,
        "attendance_rate": _rate(classes_attended, classes_total),
        "classes_attended": classes_attended,
        "classes_total": classes_total,
    }


def assess_risk(performance: dict) -> dict | None:
    """Risk level of a performance summary, or None when no factor applies."""
    factors: list[str] = []
    score = 0
    if performance["average_grade"] < LOW_GRADE_BELOW:
        factors.append("Low grades")
        score += 30
    if performance["attendance_rate"] < POOR_ATTENDANCE_BELOW:
        factors.append("Poor attendance")
        score += 25
    if performance["assignment_completion_rate"] < MISSING_ASSIGNMENTS_BELOW:
        factors.append("Missing assignments")
        score += 20

    if score == 0:
        return None

    if score >= 70:
        level = "critical"
    elif score >= 50:
        level = "high"
    elif score >= 30:
        level = "medium"
    else:
        level = "low"
    return {"risk_level": level, "risk_score": score, "factors": factors}


async def identify_at_risk_students(db: AsyncSession, group_id: int) -> list[dict]:
    """Students of a group with at least one risk factor, highest risk first."""
    result = await db.execute(
        select(GroupStudent.student_id).where(GroupStudent.group_id == group_id).order_by(GroupStudent.student_id)
    )
    at_risk = []
    for student_id in result.scalars().all():
        risk = assess_risk(await calculate_student_performance(db, student_id, group_id))
        if risk is not None:
            at_risk.append({"student_id": student_id, **risk})

    logger.debug("Group %s: %d students at risk", group_id, len(at_risk))
    return sorted(at_risk, key=lambda r: (-r["risk_score"], r["student_id"]))
