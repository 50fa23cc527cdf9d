"""Student analytics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from edulingo.analytics.performance import calculate_student_performance, identify_at_risk_students
from edulingo.database import get_session

router = APIRouter(prefix="/api/v1", tags=["Analytics"])


@router.get("/analytics/students/{student_id}/performance")
async def get_student_performance(
    student_id: int,
    group_id: int = Query(...),
    db: AsyncSession = Depends(get_session),
):
    """Performance summary of a student within one group."""
    return await calculate_student_performance(db, student_id, group_id)


@router.get("/groups/{group_id}/at-risk")
async def get_at_risk_students(group_id: int, db: AsyncSession = Depends(get_session)):
    """Students of a group flagged by grade, attendance or completion thresholds."""
    return {"group_id": group_id, "students": await identify_at_risk_students(db, group_id)}
