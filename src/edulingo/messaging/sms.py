"""SMS delivery through the Twilio Messages REST API."""

from __future__ import annotations

import re

import httpx
import structlog

from edulingo.config import get_settings
from edulingo.messaging.base import DeliveryResult

logger = structlog.get_logger()

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"

_SEPARATORS = re.compile(r"[\s\-()]")


class InvalidPhoneNumberError(ValueError):
    """Destination number that cannot be turned into a valid international number."""


def normalize_phone_number(raw: str, country_code: str = "998") -> str:
    """Normalize a phone number to ``+<country><subscriber>`` form.

    Accepts ``+998XXXXXXXXX``, ``998XXXXXXXXX`` and the local ``9XXXXXXXX``
    form. Numbers with another ``+`` prefix are kept as they are.

    Raises:
        InvalidPhoneNumberError: If a home-country number does not have
            exactly 9 subscriber digits.
    """
    phone = _SEPARATORS.sub("", raw.strip())
    if not phone:
        msg = "Phone number is required"
        raise InvalidPhoneNumberError(msg)

    if phone.startswith("9") and len(phone) == 9:
        phone = f"+{country_code}{phone}"
    elif phone.startswith(country_code) and len(phone) == len(country_code) + 9:
        phone = f"+{phone}"
    elif not phone.startswith("+"):
        phone = f"+{country_code}{phone}"

    if phone.startswith(f"+{country_code}") and not re.fullmatch(rf"\+{country_code}\d{{9}}", phone):
        msg = f"Invalid phone number format. Expected: +{country_code}XXXXXXXXX (9 digits after +{country_code})"
        raise InvalidPhoneNumberError(msg)
    return phone


class SmsService:
    """Send text messages with Twilio. Unconfigured credentials make sends a no-op."""

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        country_code: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.account_sid = account_sid if account_sid is not None else settings.twilio_account_sid
        self.auth_token = auth_token if auth_token is not None else settings.twilio_auth_token
        self.from_number = from_number if from_number is not None else settings.twilio_phone_number
        self.country_code = country_code or settings.sms_country_code
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    async def send(self, phone_number: str, message: str, sender_name: str | None = None) -> DeliveryResult:
        """
        Send one SMS.

        Raises:
            InvalidPhoneNumberError: If the destination number is malformed.
            ValueError: If the message is empty.
        """
        if not message:
            msg = "Missing required fields"
            raise ValueError(msg)
        to_number = normalize_phone_number(phone_number, self.country_code)

        if not self.is_configured:
            logger.warning("sms_not_configured", to=to_number)
            return DeliveryResult.not_configured("SMS", "Twilio")

        body = f"Message from {sender_name}: {message}" if sender_name else message
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    TWILIO_MESSAGES_URL.format(sid=self.account_sid),
                    auth=(self.account_sid, self.auth_token),
                    data={"To": to_number, "From": self.from_number, "Body": body},
                    timeout=10.0,
                )
        except httpx.HTTPError as e:
            logger.exception("sms_send_failed", to=to_number)
            return DeliveryResult(delivered=False, message="SMS not sent", error=str(e) or "Failed to send SMS")

        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.is_error:
            logger.error("sms_provider_error", to=to_number, status=response.status_code, detail=data)
            return DeliveryResult(
                delivered=False,
                message="SMS not sent",
                error=data.get("message") or "Failed to send SMS",
            )

        logger.info("sms_sent", to=to_number, sid=data.get("sid"))
        return DeliveryResult(delivered=True, message="SMS sent successfully", provider_id=data.get("sid"))


_sms_service: SmsService | None = None


def get_sms_service() -> SmsService:
    """Get or create the SMS service singleton."""
    global _sms_service  # noqa: PLW0603
    if _sms_service is None:
        _sms_service = SmsService()
    return _sms_service


def reset_sms_service() -> None:
    """Reset the SMS service singleton (for testing)."""
    global _sms_service  # noqa: PLW0603
    _sms_service = None
