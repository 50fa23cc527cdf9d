"""Gamification API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from edulingo.config import get_settings
from edulingo.database import get_session
from edulingo.db.models import UserProgress
from edulingo.dependencies import get_redis_dep, require_internal_token
from edulingo.gamification.badge_service import grant_badge
from edulingo.gamification.badges import BADGES, get_badge
from edulingo.gamification.leaderboard_service import get_group_leaderboard
from edulingo.gamification.levels import LEVELS, level_info
from edulingo.gamification.points import points_for_activity
from edulingo.gamification.progress_service import (
    award_points,
    get_points_history,
    get_progress,
    get_user_badges,
)
from edulingo.gamification.schemas import (
    AllBadgesResponse,
    AllLevelsResponse,
    AwardPointsRequest,
    AwardPointsResponse,
    BadgeDefinitionResponse,
    EarnedBadgeResponse,
    GrantBadgeResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    LevelEntry,
    PointsHistoryEntry,
    PointsHistoryResponse,
    ProgressResponse,
    UserBadgesResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


def _progress_response(progress: UserProgress) -> ProgressResponse:
    info = level_info(progress.total_points)
    return ProgressResponse(
        user_id=progress.user_id,
        total_points=progress.total_points,
        current_level=progress.current_level,
        level_name=info["name"],
        points_into_level=info["points_into_level"],
        points_to_next_level=info["points_to_next_level"],
        next_level=info["next_level"],
        next_name=info["next_name"],
        current_streak=progress.current_streak,
        longest_streak=progress.longest_streak,
        last_activity_date=progress.last_activity_date,
    )


# ── Catalog ──


@router.get("/gamification/badges", response_model=AllBadgesResponse)
async def list_badges():
    """Get the badge catalog."""
    return AllBadgesResponse(badges=[BadgeDefinitionResponse(**b) for b in BADGES])


@router.get("/gamification/levels", response_model=AllLevelsResponse)
async def list_levels():
    """Get all level definitions."""
    return AllLevelsResponse(levels=[LevelEntry(**entry) for entry in LEVELS])


# ── Awards (server-to-server) ──


@router.post(
    "/gamification/points",
    response_model=AwardPointsResponse,
    dependencies=[Depends(require_internal_token)],
)
async def post_award_points(
    body: AwardPointsRequest,
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
):
    """Award points for an activity event and return the updated progress."""
    try:
        points = body.points if body.points is not None else points_for_activity(body.source, body.score)
        progress = await award_points(
            db,
            body.user_id,
            points,
            body.source,
            source_id=body.source_id,
            description=body.description,
            idempotency_key=body.idempotency_key,
            redis=redis,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    if progress is None:
        return AwardPointsResponse(awarded=False, duplicate=True, points=points)
    return AwardPointsResponse(awarded=True, points=points, progress=_progress_response(progress))


@router.post(
    "/gamification/users/{user_id}/badges/{badge_id}",
    response_model=GrantBadgeResponse,
    dependencies=[Depends(require_internal_token)],
)
async def post_grant_badge(
    user_id: int,
    badge_id: str,
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
):
    """Staff award of a catalog badge (e.g. early_bird, helper)."""
    if get_badge(badge_id) is None:
        raise HTTPException(status_code=404, detail="Badge not found")
    awarded = await grant_badge(db, user_id, badge_id, redis=redis)
    return GrantBadgeResponse(badge_id=badge_id, awarded=awarded)


# ── Per-user views ──


@router.get("/gamification/users/{user_id}/progress", response_model=ProgressResponse)
async def get_user_progress(user_id: int, db: AsyncSession = Depends(get_session)):
    """Get a user's points, level and streak."""
    progress = await get_progress(db, user_id)
    if progress is None:
        raise HTTPException(status_code=404, detail="No progress for this user")
    return _progress_response(progress)


@router.get("/gamification/users/{user_id}/badges", response_model=UserBadgesResponse)
async def get_user_badge_list(user_id: int, db: AsyncSession = Depends(get_session)):
    """Get a user's earned badges, newest first."""
    earned = []
    for user_badge in await get_user_badges(db, user_id):
        badge = get_badge(user_badge.badge_id)
        if badge is None:
            continue
        earned.append(EarnedBadgeResponse(
            badge=BadgeDefinitionResponse(**badge),
            earned_at=user_badge.earned_at,
        ))
    return UserBadgesResponse(earned=earned, total_available=len(BADGES), total_earned=len(earned))


@router.get("/gamification/users/{user_id}/points-history", response_model=PointsHistoryResponse)
async def get_user_points_history(
    user_id: int,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """Get the points ledger (paginated)."""
    entries, total = await get_points_history(db, user_id, page, per_page)
    return PointsHistoryResponse(
        entries=[
            PointsHistoryEntry(
                points=e.points,
                source=e.source,
                source_id=e.source_id,
                description=e.description,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
        page=page,
        per_page=per_page,
    )


# ── Leaderboard ──


@router.get("/groups/{group_id}/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    group_id: int,
    limit: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """Group leaderboard ranked by total points."""
    if limit is None:
        limit = get_settings().leaderboard_default_limit
    entries = await get_group_leaderboard(db, group_id, limit)
    return LeaderboardResponse(
        group_id=group_id,
        entries=[LeaderboardEntry(**e) for e in entries],
    )
