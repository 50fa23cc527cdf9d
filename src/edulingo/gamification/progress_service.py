"""Points awarding with an atomic progress upsert and level-up detection."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from edulingo.db.dialect import upsert
from edulingo.db.models import PointsHistory, UserBadge, UserProgress
from edulingo.gamification.badge_service import check_and_award_badges
from edulingo.gamification.levels import calculate_level, get_level_name
from edulingo.gamification.streaks import streak_update_expressions
from edulingo.notifications.service import create_notification
from edulingo.time_utils import school_today

logger = logging.getLogger(__name__)


async def get_progress(db: AsyncSession, user_id: int) -> UserProgress | None:
    """Fetch the user's progress row, refreshed from the database."""
    result = await db.execute(
        select(UserProgress)
        .where(UserProgress.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def award_points(
    db: AsyncSession,
    user_id: int,
    points: int,
    source: str,
    source_id: str | None = None,
    description: str | None = None,
    idempotency_key: str | None = None,
    today: date | None = None,
    redis: object | None = None,
) -> UserProgress | None:
    """Award points to a user. Returns the refreshed progress, or None if duplicate.

    Steps:
    1. Append the points_history entry (skipped as duplicate on a reused idempotency_key)
    2. Upsert user_progress in one statement: total, streak and longest streak
       are computed by the database from the stored row
    3. Store the level for the returned total (compare-and-set on total_points)
    4. Commit, then run the best-effort side effects: level-up notification
       and badge evaluation

    Raises:
        ValueError: If points is negative or source is empty.
    """
    if points < 0:
        msg = "points must be >= 0"
        raise ValueError(msg)
    if not source:
        msg = "source is required"
        raise ValueError(msg)

    if today is None:
        today = school_today()
    now = datetime.now(timezone.utc)

    ledger = upsert(db, PointsHistory).values(
        user_id=user_id,
        points=points,
        source=source,
        source_id=source_id,
        description=description,
        idempotency_key=idempotency_key,
        created_at=now,
    )
    if idempotency_key is not None:
        ledger = ledger.on_conflict_do_nothing(index_elements=["idempotency_key"])
    entry_id = (await db.execute(ledger.returning(PointsHistory.id))).scalar_one_or_none()
    if entry_id is None:
        logger.info("Duplicate points award ignored: %s", idempotency_key)
        return None

    new_streak, new_longest = streak_update_expressions(today)
    stmt = upsert(db, UserProgress).values(
        user_id=user_id,
        total_points=points,
        current_level=calculate_level(points),
        current_streak=1,
        longest_streak=1,
        last_activity_date=today,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={
            "total_points": UserProgress.total_points + stmt.excluded.total_points,
            "current_streak": new_streak,
            "longest_streak": new_longest,
            "last_activity_date": today,
            "updated_at": now,
        },
    ).returning(UserProgress.total_points, UserProgress.current_level)

    row = (await db.execute(stmt)).one()
    total_points, old_level = row.total_points, row.current_level

    new_level = calculate_level(total_points)
    if new_level != old_level:
        # Only valid while nobody else has moved the total since our upsert.
        await db.execute(
            update(UserProgress)
            .where(
                UserProgress.user_id == user_id,
                UserProgress.total_points == total_points,
            )
            .values(current_level=new_level)
        )

    await db.commit()
    logger.info(
        "Awarded %d points to user %s (source=%s, total=%d, level=%d)",
        points, user_id, source, total_points, new_level,
    )

    if new_level > old_level:
        await _emit_level_up(db, redis, user_id, new_level)

    await check_and_award_badges(db, user_id, redis=redis)

    return await get_progress(db, user_id)


async def _emit_level_up(db: AsyncSession, redis: object | None, user_id: int, new_level: int) -> None:
    """Level-up notification. Failures are logged, the awarded points stay."""
    try:
        await create_notification(
            db,
            user_id,
            "level_up",
            title="Level Up!",
            message=f"You reached level {new_level}: {get_level_name(new_level)}",
            action_url="/dashboard/student",
            redis=redis,
        )
        await db.commit()
    except Exception:
        logger.warning("Failed to create level_up notification for user %s", user_id, exc_info=True)
        await db.rollback()


async def get_points_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[PointsHistory], int]:
    """Points ledger for a user, newest first."""
    total_result = await db.execute(
        select(func.count()).select_from(PointsHistory).where(PointsHistory.user_id == user_id)
    )
    total = total_result.scalar_one()

    result = await db.execute(
        select(PointsHistory)
        .where(PointsHistory.user_id == user_id)
        .order_by(PointsHistory.created_at.desc(), PointsHistory.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def get_user_badges(db: AsyncSession, user_id: int) -> list[UserBadge]:
    result = await db.execute(
        select(UserBadge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_at.desc(), UserBadge.id.desc())
    )
    return list(result.scalars().all())
