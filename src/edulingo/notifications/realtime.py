"""Publish in-app notifications over Redis pub/sub for realtime delivery."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from edulingo.db.models import Notification

logger = logging.getLogger(__name__)


def user_channel(user_id: int) -> str:
    return f"ws:user:{user_id}"


async def publish_notification(redis: object | None, notification: "Notification") -> None:
    """Publish a formatted notification dict to ws:user:{user_id}.

    The notification must already be flushed (have an ``id``). Subscribers
    (the realtime gateway in front of the dashboard) route it to the user's
    open sessions.
    """
    if redis is None:
        return

    payload = {
        "event": "notification",
        "data": {
            "id": str(notification.id),
            "type": notification.type,
            "title": notification.title,
            "message": notification.message,
            "timestamp": (
                notification.created_at.isoformat()
                if notification.created_at
                else None
            ),
            "read": False,
            "actionUrl": notification.action_url,
        },
    }
    try:
        await redis.publish(  # type: ignore[union-attr]
            user_channel(notification.user_id),
            json.dumps(payload),
        )
    except Exception:
        logger.warning(
            "Failed to publish notification via %s",
            user_channel(notification.user_id),
            exc_info=True,
        )
