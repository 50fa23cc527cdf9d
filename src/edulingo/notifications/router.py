"""Notification and web push API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from edulingo.database import get_session
from edulingo.db.models import Notification
from edulingo.dependencies import get_redis_dep, require_internal_token
from edulingo.notifications.push import get_push_service, subscribe, unsubscribe
from edulingo.notifications.schemas import (
    CreateNotificationRequest,
    NotificationListResponse,
    NotificationResponse,
    PushSendRequest,
    PushSubscribeRequest,
    PushUnsubscribeRequest,
    UnreadCountResponse,
)
from edulingo.notifications.service import (
    create_notification,
    get_notifications,
    get_unread_count,
    mark_all_as_read,
    mark_as_read,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notifications"])


def _notification_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=str(n.id),
        type=n.type,
        title=n.title,
        message=n.message,
        timestamp=n.created_at,
        read=n.read,
        action_url=n.action_url,
    )


@router.get("/api/v1/users/{user_id}/notifications", response_model=NotificationListResponse)
async def list_notifications(
    user_id: int,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """List a user's notifications (paginated)."""
    notifications, total = await get_notifications(db, user_id, page, per_page)
    return NotificationListResponse(
        notifications=[_notification_response(n) for n in notifications],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/api/v1/users/{user_id}/notifications/unread-count", response_model=UnreadCountResponse)
async def get_unread_notification_count(user_id: int, db: AsyncSession = Depends(get_session)):
    """Get unread notification count."""
    return UnreadCountResponse(unread_count=await get_unread_count(db, user_id))


@router.post("/api/v1/users/{user_id}/notifications/{notification_id}/read", status_code=200)
async def mark_notification_read(
    user_id: int,
    notification_id: int,
    db: AsyncSession = Depends(get_session),
):
    """Mark a notification as read."""
    found = await mark_as_read(db, user_id, notification_id)
    if not found:
        raise HTTPException(status_code=404, detail="Notification not found")
    await db.commit()
    return {"detail": "Notification marked as read"}


@router.post("/api/v1/users/{user_id}/notifications/read-all", status_code=200)
async def mark_all_read(user_id: int, db: AsyncSession = Depends(get_session)):
    """Mark all notifications as read."""
    count = await mark_all_as_read(db, user_id)
    await db.commit()
    return {"detail": f"Marked {count} notifications as read"}


@router.post(
    "/api/v1/notifications",
    response_model=NotificationResponse,
    status_code=201,
    dependencies=[Depends(require_internal_token)],
)
async def post_notification(
    body: CreateNotificationRequest,
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
):
    """Create an in-app notification, optionally mirrored as a web push."""
    try:
        notification = await create_notification(
            db, body.user_id, body.type, body.title, body.message, body.action_url, redis=redis,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    response = _notification_response(notification)

    if body.push:
        try:
            await get_push_service().send(db, body.user_id, body.title, body.message, body.action_url)
        except Exception:
            logger.warning("Push delivery failed for notification %s", response.id, exc_info=True)
    return response


# ── Web push ──


@router.post("/api/push/send")
async def push_send(body: PushSendRequest, db: AsyncSession = Depends(get_session)):
    """Send a web push to all of a user's subscriptions."""
    return await get_push_service().send(
        db, body.user_id, body.title, body.message, body.action_url, body.priority,
    )


@router.post("/api/push/subscribe")
async def push_subscribe(body: PushSubscribeRequest, db: AsyncSession = Depends(get_session)):
    """Store a browser push subscription."""
    await subscribe(
        db,
        body.user_id,
        body.subscription.endpoint,
        body.subscription.keys.p256dh,
        body.subscription.keys.auth,
    )
    return {"success": True}


@router.post("/api/push/unsubscribe")
async def push_unsubscribe(body: PushUnsubscribeRequest, db: AsyncSession = Depends(get_session)):
    """Remove a browser push subscription."""
    removed = await unsubscribe(db, body.user_id, body.endpoint)
    return {"success": True, "removed": removed}
