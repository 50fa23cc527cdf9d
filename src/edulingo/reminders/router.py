"""Batch job endpoints, triggered by an external scheduler or the arq worker."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from edulingo.database import get_session
from edulingo.dependencies import get_redis_dep, require_cron_token
from edulingo.reminders.class_reports import process_class_reports
from edulingo.reminders.payment_service import run_payment_reminders
from edulingo.reminders.salary_service import run_salary_reminders

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Jobs"], dependencies=[Depends(require_cron_token)])


@router.post("/payment-reminders")
async def payment_reminders(db: AsyncSession = Depends(get_session)):
    """Send due/overdue tuition payment reminders for the current hour."""
    return await run_payment_reminders(db)


@router.post("/salary-reminders")
async def salary_reminders(
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
):
    """Send due/overdue salary reminders to the main teacher."""
    return await run_salary_reminders(db, redis=redis)


@router.api_route("/cron/class-reports", methods=["GET", "POST"])
async def class_reports(db: AsyncSession = Depends(get_session)):
    """Process classes that have ended since the last run."""
    try:
        return await process_class_reports(db)
    except Exception as e:
        logger.exception("Failed to process ended classes")
        await db.rollback()
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to process ended classes", "details": str(e)},
        )
