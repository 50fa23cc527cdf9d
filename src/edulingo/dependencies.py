"""Shared FastAPI dependencies."""

from __future__ import annotations

import secrets
from collections.abc import AsyncGenerator

from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from edulingo.config import get_settings
from edulingo.redis_client import get_redis_or_none

_bearer = HTTPBearer(auto_error=False)


async def get_redis_dep() -> AsyncGenerator[object | None, None]:
    """Yield the Redis client (None when not initialized) as a FastAPI dependency."""
    yield get_redis_or_none()


def _check_bearer(credentials: HTTPAuthorizationCredentials | None, expected: str) -> None:
    """Enforce ``Authorization: Bearer <expected>`` when a token is configured."""
    if not expected:
        return
    if credentials is None or not secrets.compare_digest(credentials.credentials, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


async def require_cron_token(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> None:
    """Gate the batch job endpoints with the cron secret."""
    _check_bearer(credentials, get_settings().cron_secret)


async def require_internal_token(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> None:
    """Gate server-to-server endpoints (points and badge awards)."""
    _check_bearer(credentials, get_settings().internal_api_token)
