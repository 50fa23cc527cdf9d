"""Badge evaluation and award service with duplicate prevention and notification."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from edulingo.config import get_settings
from edulingo.db.dialect import upsert
from edulingo.db.models import AssignmentFile, Attendance, Grade, UserBadge, UserProgress
from edulingo.gamification.badges import (
    ATTENDANCE_WINDOW,
    BADGE_ATTENDANCE_STATUSES,
    RATE_ATTENDANCE_STATUSES,
    ActivitySnapshot,
    badge_notification,
    evaluate_badges,
    get_badge,
)
from edulingo.notifications.service import create_notification

logger = logging.getLogger(__name__)


async def get_held_badge_ids(db: AsyncSession, user_id: int) -> set[str]:
    result = await db.execute(select(UserBadge.badge_id).where(UserBadge.user_id == user_id))
    return set(result.scalars().all())


async def load_activity_snapshot(db: AsyncSession, user_id: int, current_streak: int) -> ActivitySnapshot:
    """Fetch the aggregates the badge rules need, fresh from the database."""
    files_result = await db.execute(
        select(func.count()).select_from(AssignmentFile).where(AssignmentFile.uploaded_by == user_id)
    )
    attendance_result = await db.execute(
        select(Attendance.status)
        .where(Attendance.student_id == user_id)
        .order_by(Attendance.created_at.desc(), Attendance.id.desc())
        .limit(ATTENDANCE_WINDOW)
    )
    grades_result = await db.execute(
        select(Grade.score).where(Grade.student_id == user_id, Grade.score.is_not(None))
    )

    if get_settings().perfect_attendance_counts_excused:
        statuses = RATE_ATTENDANCE_STATUSES
    else:
        statuses = BADGE_ATTENDANCE_STATUSES

    return ActivitySnapshot(
        current_streak=current_streak,
        submitted_files=files_result.scalar_one(),
        recent_attendance=tuple(attendance_result.scalars().all()),
        grade_scores=tuple(grades_result.scalars().all()),
        attendance_statuses=statuses,
    )


async def award_badge(db: AsyncSession, user_id: int, badge_id: str) -> bool:
    """Insert the user_badges row. Returns True if newly awarded.

    Returns False if the badge is unknown or the user already holds it
    (including when a concurrent evaluation inserted it first).
    """
    if get_badge(badge_id) is None:
        logger.warning("Badge not found: %s", badge_id)
        return False

    stmt = (
        upsert(db, UserBadge)
        .values(user_id=user_id, badge_id=badge_id, earned_at=datetime.now(timezone.utc))
        .on_conflict_do_nothing(index_elements=["user_id", "badge_id"])
        .returning(UserBadge.id)
    )
    return (await db.execute(stmt)).scalar_one_or_none() is not None


async def check_and_award_badges(db: AsyncSession, user_id: int, redis: object | None = None) -> list[str]:
    """Evaluate every automatic badge rule for a user and award the new ones.

    Best effort: a failure is logged and yields no awards, it never
    propagates to the caller. Returns the badge ids awarded by this call.
    """
    try:
        progress_result = await db.execute(
            select(UserProgress.current_streak).where(UserProgress.user_id == user_id)
        )
        current_streak = progress_result.scalar_one_or_none()
        if current_streak is None:
            return []

        snapshot = await load_activity_snapshot(db, user_id, current_streak)
        held = await get_held_badge_ids(db, user_id)

        awarded = []
        for badge_id in evaluate_badges(snapshot, held):
            if await award_badge(db, user_id, badge_id):
                awarded.append(badge_id)
        await db.commit()
    except Exception:
        logger.exception("Badge evaluation failed for user %s", user_id)
        await db.rollback()
        return []

    for badge_id in awarded:
        logger.info("Badge %s awarded to user %s", badge_id, user_id)
        await _emit_badge_earned(db, redis, user_id, badge_id)

    return awarded


async def grant_badge(db: AsyncSession, user_id: int, badge_id: str, redis: object | None = None) -> bool:
    """Staff award of any catalog badge (used for badges with no automatic rule)."""
    awarded = await award_badge(db, user_id, badge_id)
    await db.commit()
    if awarded:
        await _emit_badge_earned(db, redis, user_id, badge_id)
    return awarded


async def _emit_badge_earned(db: AsyncSession, redis: object | None, user_id: int, badge_id: str) -> None:
    """Achievement notification for a new badge. Failures are logged only."""
    title, message = badge_notification(badge_id)
    try:
        await create_notification(
            db,
            user_id,
            "achievement",
            title=title,
            message=message,
            action_url="/dashboard/student",
            redis=redis,
        )
        await db.commit()
    except Exception:
        logger.warning("Failed to create badge notification for user %s", user_id, exc_info=True)
        await db.rollback()
