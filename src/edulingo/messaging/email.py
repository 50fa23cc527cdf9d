"""
Email service with provider abstraction.

Supports the Resend API (default) and SMTP.
Provider is selected via configuration. A provider without credentials
makes every send a soft no-op.
"""

from __future__ import annotations

import hashlib
import ssl
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import TYPE_CHECKING

import aiosmtplib
import httpx
import structlog

from edulingo.config import get_settings
from edulingo.messaging.base import DeliveryResult
from edulingo.messaging.templates import message_email

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = structlog.get_logger()

RESEND_API_URL = "https://api.resend.com/emails"


class BaseEmailProvider(ABC):
    """Abstract base class for email delivery providers."""

    name = "base"
    requirement = ""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str | None:
        """Send an email. Returns the provider message id, raises on failure."""
        ...


class SMTPProvider(BaseEmailProvider):
    """Send emails via SMTP using aiosmtplib."""

    name = "smtp"
    requirement = "SMTP host"

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str,
        use_tls: bool = True,
        reply_to: str = "",
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.from_name = from_name
        self.use_tls = use_tls
        self.reply_to = reply_to

    @property
    def is_configured(self) -> bool:
        return bool(self.host)

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str | None:
        """Send via SMTP."""
        msg = MIMEMultipart("alternative")
        msg["From"] = f"{self.from_name} <{self.from_address}>"
        msg["To"] = to_email
        msg["Subject"] = subject
        if self.reply_to:
            msg["Reply-To"] = self.reply_to
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        tls_context = ssl.create_default_context() if self.use_tls else None
        await aiosmtplib.send(
            msg,
            hostname=self.host,
            port=self.port,
            username=self.username or None,
            password=self.password or None,
            start_tls=self.use_tls,
            tls_context=tls_context,
        )
        return None


class ResendProvider(BaseEmailProvider):
    """Send emails via Resend API."""

    name = "resend"
    requirement = "Resend API key"

    def __init__(
        self,
        api_key: str,
        from_address: str,
        from_name: str,
        reply_to: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name
        self.reply_to = reply_to
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str | None:
        """Send via Resend HTTP API."""
        payload: dict = {
            "from": f"{self.from_name} <{self.from_address}>",
            "to": [to_email],
            "subject": subject,
            "html": html_body,
            "text": text_body,
        }
        if self.reply_to:
            payload["reply_to"] = self.reply_to

        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.post(
                RESEND_API_URL,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=10.0,
            )
            response.raise_for_status()
            return response.json().get("id")


def _create_provider() -> BaseEmailProvider:
    """Create email provider based on configuration."""
    settings = get_settings()
    provider_name = settings.email_provider.lower()

    if provider_name == "smtp":
        return SMTPProvider(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
            reply_to=settings.email_reply_to,
        )
    if provider_name == "resend":
        return ResendProvider(
            api_key=settings.resend_api_key,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            reply_to=settings.email_reply_to,
        )
    msg = f"Unsupported email provider: {provider_name}"
    raise ValueError(msg)


class EmailService:
    """
    High-level email service for EduLingo.

    Handles rate limiting and template rendering. Never raises on delivery
    problems: the outcome is reported as a DeliveryResult.
    """

    RATE_LIMIT_WINDOW = 3600

    def __init__(
        self,
        provider: BaseEmailProvider | None = None,
        redis: Redis | None = None,
        rate_limit_per_hour: int | None = None,
    ) -> None:
        self.provider = provider or _create_provider()
        self._redis = redis
        self.rate_limit_max = (
            rate_limit_per_hour if rate_limit_per_hour is not None else get_settings().email_rate_limit_per_hour
        )

    @property
    def is_configured(self) -> bool:
        return self.provider.is_configured

    async def _check_rate_limit(self, email: str) -> bool:
        """Check if we can send another email to this address."""
        if self._redis is None:
            return True
        key = f"email_rate:{hashlib.sha256(email.lower().encode()).hexdigest()}"
        try:
            count = await self._redis.incr(key)
            if count == 1:
                await self._redis.expire(key, self.RATE_LIMIT_WINDOW)
        except Exception:
            logger.warning("email_rate_limit_unavailable", exc_info=True)
            return True
        return count <= self.rate_limit_max

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> DeliveryResult:
        """Send a rendered email with rate limiting."""
        if not self.provider.is_configured:
            logger.warning("email_not_configured", to=to, provider=self.provider.name)
            return DeliveryResult.not_configured("Email", self.provider.requirement)

        if not await self._check_rate_limit(to):
            logger.warning("email_rate_limited", to=to, subject=subject)
            return DeliveryResult(delivered=False, message="Email not sent", error="Rate limit exceeded")

        try:
            provider_id = await self.provider.send(to, subject, html_body, text_body)
        except Exception as e:
            logger.exception("email_send_failed", to=to, provider=self.provider.name)
            return DeliveryResult(
                delivered=False,
                message="Email not sent",
                error=str(e) or "Failed to send email",
                note="Email sending failed but message was saved in platform",
            )

        logger.info("email_sent", to=to, subject=subject, provider=self.provider.name)
        return DeliveryResult(delivered=True, message="Email sent successfully", provider_id=provider_id)

    async def send_message(
        self,
        recipient_email: str,
        recipient_name: str | None,
        sender_name: str,
        subject: str | None,
        content: str,
        platform_url: str | None = None,
    ) -> DeliveryResult:
        """
        Render the message template and send it.

        Raises:
            ValueError: If recipient_email, sender_name or content is missing.
        """
        if not recipient_email or not sender_name or not content:
            msg = "Missing required fields"
            raise ValueError(msg)

        email_subject, html_body, text_body = message_email(
            recipient_name, sender_name, subject, content, platform_url,
        )
        return await self.send_email(recipient_email, email_subject, html_body, text_body)


# Module-level singleton
_email_service: EmailService | None = None


def get_email_service(redis: Redis | None = None) -> EmailService:
    """Get or create the email service singleton."""
    global _email_service  # noqa: PLW0603
    if _email_service is None:
        _email_service = EmailService(redis=redis)
    return _email_service


def reset_email_service() -> None:
    """Reset the email service singleton (for testing)."""
    global _email_service  # noqa: PLW0603
    _email_service = None
