"""Concurrent best-effort delivery of one reminder to several recipients."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from edulingo.messaging.email import EmailService
from edulingo.messaging.sms import SmsService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    user_id: int
    name: str
    email: str | None
    phone: str | None = None


async def deliver(
    recipient: Recipient,
    subject: str,
    content: str,
    sender_name: str,
    email_service: EmailService,
    sms_service: SmsService,
    platform_url: str | None = None,
    sms_content: str | None = None,
) -> list[dict]:
    """Email (and SMS when a phone is known) one recipient. Returns channel errors."""
    errors: list[dict] = []

    if recipient.email:
        try:
            result = await email_service.send_message(
                recipient.email, recipient.name, sender_name, subject, content, platform_url,
            )
        except Exception as e:
            logger.warning("Failed to send email to %s", recipient.email, exc_info=True)
            errors.append({"recipient": recipient.email, "type": "email", "error": str(e)})
        else:
            if result.failed:
                errors.append({"recipient": recipient.email, "type": "email", "error": result.error})

    if recipient.phone:
        try:
            result = await sms_service.send(recipient.phone, sms_content or content, sender_name)
        except Exception as e:
            logger.warning("Failed to send SMS to %s", recipient.phone, exc_info=True)
            errors.append({"recipient": recipient.phone, "type": "sms", "error": str(e)})
        else:
            if result.failed:
                errors.append({"recipient": recipient.phone, "type": "sms", "error": result.error})

    return errors


async def deliver_all(
    recipients: list[Recipient],
    subject: str,
    content: str,
    sender_name: str,
    email_service: EmailService,
    sms_service: SmsService,
    platform_url: str | None = None,
    sms_content: str | None = None,
) -> list[dict]:
    """Deliver to every recipient concurrently; one failure never blocks the others."""
    results = await asyncio.gather(
        *(
            deliver(r, subject, content, sender_name, email_service, sms_service, platform_url, sms_content)
            for r in recipients
        ),
        return_exceptions=True,
    )

    errors: list[dict] = []
    for recipient, result in zip(recipients, results):
        if isinstance(result, BaseException):
            logger.error("Reminder delivery to user %s failed: %s", recipient.user_id, result)
            errors.append({"recipient": recipient.email or recipient.phone, "error": str(result)})
        else:
            errors.extend(result)
    return errors
