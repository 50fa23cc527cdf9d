"""Email and SMS relay endpoints.

Delivery problems never fail the request: an unconfigured or failing
channel answers 200 with ``success: false`` so the caller's own flow
(e.g. sending a platform message) goes on.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from edulingo.dependencies import get_redis_dep
from edulingo.messaging.email import get_email_service
from edulingo.messaging.schemas import SendEmailRequest, SendSmsRequest
from edulingo.messaging.sms import get_sms_service

router = APIRouter(prefix="/api", tags=["Messaging"])


@router.post("/send-email")
async def send_email(body: SendEmailRequest, redis: object | None = Depends(get_redis_dep)):
    """Send a platform message notification by email."""
    try:
        result = await get_email_service(redis).send_message(
            body.recipient_email,
            body.recipient_name,
            body.sender_name,
            body.subject,
            body.content,
            body.platform_url,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return result.to_response()


@router.post("/send-sms")
async def send_sms(body: SendSmsRequest):
    """Send a text message. Malformed numbers are rejected with 400."""
    try:
        result = await get_sms_service().send(body.phone_number, body.message, body.sender_name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return result.to_response()
