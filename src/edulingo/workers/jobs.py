"""Scheduled batch jobs run by the arq worker.

Each job opens its own session and returns the job summary, which arq
stores as the job result.
"""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from edulingo.config import get_settings
from edulingo.database import close_db, get_session_factory, init_db
from edulingo.redis_client import close_redis, get_redis_or_none, init_redis
from edulingo.reminders.class_reports import process_class_reports
from edulingo.reminders.payment_service import run_payment_reminders
from edulingo.reminders.salary_service import run_salary_reminders
from edulingo.time_utils import school_now

logger = logging.getLogger(__name__)


async def payment_reminders_job(ctx: dict) -> dict:  # type: ignore[type-arg]
    """Runs at the payment reminder hours."""
    async with get_session_factory()() as db:
        summary = await run_payment_reminders(db, now=school_now())
    logger.info("payment_reminders_job: %s", summary["message"])
    return summary


async def salary_reminders_job(ctx: dict) -> dict:  # type: ignore[type-arg]
    """Runs at the salary reminder hour."""
    async with get_session_factory()() as db:
        summary = await run_salary_reminders(db, now=school_now(), redis=get_redis_or_none())
    logger.info("salary_reminders_job: %s", summary["message"])
    return summary


async def class_reports_job(ctx: dict) -> dict:  # type: ignore[type-arg]
    """Runs every hour. A failed run is reported in the result, not raised."""
    async with get_session_factory()() as db:
        try:
            return await process_class_reports(db)
        except Exception as e:
            logger.exception("class_reports_job failed")
            await db.rollback()
            return {"success": False, "error": "Failed to process ended classes", "details": str(e)}


async def jobs_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize DB and Redis connections on worker startup."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_url:
        await init_redis(settings.redis_url)
    logger.info("Job worker started (timezone %s)", ZoneInfo(settings.timezone))


async def jobs_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    await close_redis()
    await close_db()
    logger.info("Job worker shut down")
