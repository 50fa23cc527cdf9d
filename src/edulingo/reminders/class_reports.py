"""Hourly processing of ended classes.

The report generation itself lives in the ``process_ended_classes()``
database function; this job only triggers it and reports the counts.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def process_class_reports(db: AsyncSession) -> dict:
    """Run ``process_ended_classes()`` and return its counts.

    Database errors propagate; the caller reports them as a failed run.
    """
    result = await db.execute(text("SELECT * FROM process_ended_classes()"))
    row = result.mappings().first()
    await db.commit()

    counts = dict(row) if row is not None else {}
    summary = {
        "success": True,
        "message": "Class reports processed",
        "processed": counts.get("processed_count", 0),
        "successful": counts.get("success_count", 0),
        "errors": counts.get("error_count", 0),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    logger.info(
        "Class reports: processed=%s successful=%s errors=%s",
        summary["processed"], summary["successful"], summary["errors"],
    )
    return summary
