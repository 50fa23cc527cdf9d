"""Web Push delivery (VAPID) to every browser subscription of a user.

pywebpush is synchronous, so each delivery runs in a worker thread.
Subscriptions whose endpoint answers 404 or 410 are gone for good and are
deleted.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog
from pywebpush import WebPushException, webpush
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from edulingo.config import get_settings
from edulingo.db.dialect import upsert
from edulingo.db.models import PushSubscription

logger = structlog.get_logger()

GONE_STATUSES = frozenset({404, 410})
DEFAULT_ACTION_URL = "/dashboard/notifications"


@dataclass(frozen=True)
class _Target:
    id: int
    endpoint: str
    p256dh: str
    auth: str


class PushService:
    """Fan out one notification to all of a user's push subscriptions."""

    def __init__(
        self,
        public_key: str | None = None,
        private_key: str | None = None,
        subject: str | None = None,
        sender: Callable[..., Any] = webpush,
    ) -> None:
        settings = get_settings()
        self.public_key = public_key if public_key is not None else settings.vapid_public_key
        self.private_key = private_key if private_key is not None else settings.vapid_private_key
        self.subject = subject or settings.vapid_subject
        self._sender = sender

    @property
    def is_configured(self) -> bool:
        return bool(self.public_key and self.private_key)

    async def send(
        self,
        db: AsyncSession,
        user_id: int,
        title: str,
        message: str,
        action_url: str | None = None,
        priority: str = "normal",
    ) -> dict:
        """Send to every subscription of the user. Returns ``{sent, failed, total}`` counts."""
        if not self.is_configured:
            logger.warning("push_not_configured", user_id=user_id)
            return {
                "success": False,
                "message": "Push notifications not configured",
                "note": "VAPID keys are required",
                "sent": 0,
                "failed": 0,
                "total": 0,
            }

        result = await db.execute(
            select(PushSubscription).where(PushSubscription.user_id == user_id).order_by(PushSubscription.id)
        )
        targets = [
            _Target(id=s.id, endpoint=s.endpoint, p256dh=s.p256dh_key, auth=s.auth_key)
            for s in result.scalars().all()
        ]
        if not targets:
            return {
                "success": True,
                "message": "No push subscriptions found for user",
                "sent": 0,
                "failed": 0,
                "total": 0,
            }

        payload = json.dumps({
            "title": title,
            "message": message,
            "action_url": action_url or DEFAULT_ACTION_URL,
            "id": f"notification-{int(time.time() * 1000)}",
            "priority": priority or "normal",
        })

        outcomes = await asyncio.gather(*(self._deliver(t, payload) for t in targets))

        gone = [t.id for t, (_, is_gone) in zip(targets, outcomes) if is_gone]
        if gone:
            await db.execute(delete(PushSubscription).where(PushSubscription.id.in_(gone)))
            await db.commit()
            logger.info("push_subscriptions_removed", user_id=user_id, count=len(gone))

        sent = sum(1 for ok, _ in outcomes if ok)
        return {"success": True, "sent": sent, "failed": len(targets) - sent, "total": len(targets)}

    async def _deliver(self, target: _Target, payload: str) -> tuple[bool, bool]:
        """Returns (delivered, subscription_gone)."""
        try:
            await asyncio.to_thread(
                self._sender,
                subscription_info={
                    "endpoint": target.endpoint,
                    "keys": {"p256dh": target.p256dh, "auth": target.auth},
                },
                data=payload,
                vapid_private_key=self.private_key,
                vapid_claims={"sub": self.subject},
            )
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            logger.warning("push_send_failed", endpoint=target.endpoint, status=status)
            return False, status in GONE_STATUSES
        except Exception:
            logger.exception("push_send_failed", endpoint=target.endpoint)
            return False, False
        return True, False


async def subscribe(db: AsyncSession, user_id: int, endpoint: str, p256dh_key: str, auth_key: str) -> None:
    """Store a browser subscription; an existing endpoint is re-bound to the user."""
    stmt = upsert(db, PushSubscription).values(
        user_id=user_id,
        endpoint=endpoint,
        p256dh_key=p256dh_key,
        auth_key=auth_key,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["endpoint"],
        set_={
            "user_id": stmt.excluded.user_id,
            "p256dh_key": stmt.excluded.p256dh_key,
            "auth_key": stmt.excluded.auth_key,
        },
    )
    await db.execute(stmt)
    await db.commit()


async def unsubscribe(db: AsyncSession, user_id: int, endpoint: str) -> bool:
    """Remove a subscription. Returns True if one was deleted."""
    result = await db.execute(
        delete(PushSubscription).where(
            PushSubscription.user_id == user_id,
            PushSubscription.endpoint == endpoint,
        )
    )
    await db.commit()
    return result.rowcount > 0


_push_service: PushService | None = None


def get_push_service() -> PushService:
    """Get or create the push service singleton."""
    global _push_service  # noqa: PLW0603
    if _push_service is None:
        _push_service = PushService()
    return _push_service


def reset_push_service() -> None:
    """Reset the push service singleton (for testing)."""
    global _push_service  # noqa: PLW0603
    _push_service = None
