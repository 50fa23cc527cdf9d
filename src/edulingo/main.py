"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from edulingo.analytics.router import router as analytics_router
from edulingo.config import get_settings
from edulingo.database import close_db, init_db
from edulingo.gamification.router import router as gamification_router
from edulingo.health.router import router as health_router
from edulingo.messaging.router import router as messaging_router
from edulingo.middleware import setup_middleware
from edulingo.notifications.router import router as notifications_router
from edulingo.redis_client import close_redis, init_redis
from edulingo.reminders.router import router as reminders_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_url:
        await init_redis(settings.redis_url)
    else:
        logger.warning("Redis URL not set: rate limiting and realtime notifications are disabled")

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="EduLingo Engine API",
        description="Gamification, reminders and notification delivery for the EduLingo school platform",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(gamification_router)
    app.include_router(notifications_router)
    app.include_router(analytics_router)
    app.include_router(messaging_router)
    app.include_router(reminders_router)

    return app


app = create_app()
