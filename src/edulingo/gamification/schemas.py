"""Pydantic request/response models for gamification endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

# --- Points ---


class AwardPointsRequest(BaseModel):
    user_id: int
    source: str = Field(min_length=1, max_length=64)
    points: int | None = Field(default=None, ge=0)  # Derived from source when omitted
    score: float | None = Field(default=None, ge=0, le=100)  # Only for source="grade"
    source_id: str | None = None
    description: str | None = None
    idempotency_key: str | None = Field(default=None, max_length=200)


class ProgressResponse(BaseModel):
    user_id: int
    total_points: int
    current_level: int
    level_name: str
    points_into_level: int
    points_to_next_level: int
    next_level: int
    next_name: str
    current_streak: int
    longest_streak: int
    last_activity_date: date | None = None


class AwardPointsResponse(BaseModel):
    awarded: bool
    points: int
    duplicate: bool = False
    progress: ProgressResponse | None = None


class PointsHistoryEntry(BaseModel):
    points: int
    source: str
    source_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


class PointsHistoryResponse(BaseModel):
    entries: list[PointsHistoryEntry]
    total: int
    page: int
    per_page: int


# --- Badges ---


class BadgeDefinitionResponse(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    requirement: str


class AllBadgesResponse(BaseModel):
    badges: list[BadgeDefinitionResponse]


class EarnedBadgeResponse(BaseModel):
    badge: BadgeDefinitionResponse
    earned_at: datetime


class UserBadgesResponse(BaseModel):
    earned: list[EarnedBadgeResponse]
    total_available: int
    total_earned: int


class GrantBadgeResponse(BaseModel):
    badge_id: str
    awarded: bool


# --- Levels ---


class LevelEntry(BaseModel):
    level: int
    name: str
    points_required: int


class AllLevelsResponse(BaseModel):
    levels: list[LevelEntry]


# --- Leaderboard ---


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    user_name: str
    points: int
    level: int
    streak: int


class LeaderboardResponse(BaseModel):
    group_id: int
    entries: list[LeaderboardEntry]
