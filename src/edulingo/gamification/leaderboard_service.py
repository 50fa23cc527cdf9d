"""Leaderboard service: rank a cohort of users by total points.

Ranks are read straight from ``user_progress``; cohorts are small (one
group), so there is no cached sorted set to keep in sync.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from edulingo.db.models import GroupStudent, User, UserProgress

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


async def build_leaderboard(
    db: AsyncSession,
    user_ids: Iterable[int],
    limit: int = DEFAULT_LIMIT,
) -> list[dict]:
    """Top ``limit`` users of the cohort by total points.

    Ties are broken by user id ascending. Users without a progress row are
    not ranked.
    """
    if limit < 1:
        msg = "limit must be >= 1"
        raise ValueError(msg)

    ids = list(dict.fromkeys(user_ids))
    if not ids:
        return []

    result = await db.execute(
        select(UserProgress, User.full_name)
        .join(User, User.id == UserProgress.user_id, isouter=True)
        .where(UserProgress.user_id.in_(ids))
        .order_by(UserProgress.total_points.desc(), UserProgress.user_id.asc())
        .limit(limit)
    )

    entries = []
    for rank, (progress, full_name) in enumerate(result.all(), start=1):
        entries.append({
            "rank": rank,
            "user_id": progress.user_id,
            "user_name": full_name or f"User {progress.user_id}",
            "points": progress.total_points,
            "level": progress.current_level,
            "streak": progress.current_streak,
        })
    return entries


async def get_group_leaderboard(
    db: AsyncSession,
    group_id: int,
    limit: int = DEFAULT_LIMIT,
) -> list[dict]:
    """Leaderboard of the students enrolled in a group."""
    result = await db.execute(
        select(GroupStudent.student_id).where(GroupStudent.group_id == group_id)
    )
    student_ids = list(result.scalars().all())
    logger.debug("Group %s leaderboard over %d students", group_id, len(student_ids))
    return await build_leaderboard(db, student_ids, limit)
