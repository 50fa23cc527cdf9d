"""Email service tests over a mocked Resend transport."""

from __future__ import annotations

import json

import httpx
import pytest

from edulingo.config import get_settings
from edulingo.messaging.email import EmailService, ResendProvider, SMTPProvider, _create_provider


class FakeRedis:
    def __init__(self) -> None:
        self.counts: dict[str, int] = {}

    async def incr(self, key: str) -> int:
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def expire(self, key: str, seconds: int) -> bool:
        return True


def _resend(handler, api_key: str = "re_test") -> ResendProvider:
    return ResendProvider(
        api_key=api_key,
        from_address="noreply@edulingo.example",
        from_name="EduLingo",
        reply_to="support@edulingo.example",
        transport=httpx.MockTransport(handler),
    )


class TestResendDelivery:
    @pytest.mark.asyncio
    async def test_send_message(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "email-123"})

        service = EmailService(provider=_resend(handler))
        result = await service.send_message(
            "ali@example.com", "Ali", "Teacher Anna", "Homework", "Read chapter 3", "https://edu.example.com",
        )

        assert result.delivered is True
        assert result.provider_id == "email-123"
        assert result.to_response() == {"success": True, "message": "Email sent successfully", "id": "email-123"}
        assert requests[0].headers["Authorization"] == "Bearer re_test"
        payload = json.loads(requests[0].content)
        assert payload["to"] == ["ali@example.com"]
        assert payload["subject"] == "Homework"
        assert payload["from"] == "EduLingo <noreply@edulingo.example>"
        assert payload["reply_to"] == "support@edulingo.example"
        assert "Read chapter 3" in payload["text"]

    @pytest.mark.asyncio
    async def test_provider_error_is_a_failed_result(self):
        service = EmailService(provider=_resend(lambda _req: httpx.Response(500, json={"message": "down"})))

        result = await service.send_message("ali@example.com", "Ali", "Anna", None, "Hi")

        assert result.delivered is False
        assert result.failed is True
        assert result.error
        assert result.note == "Email sending failed but message was saved in platform"

    @pytest.mark.asyncio
    async def test_not_configured_is_soft(self):
        service = EmailService(provider=_resend(lambda _req: httpx.Response(200), api_key=""))

        result = await service.send_message("ali@example.com", "Ali", "Anna", None, "Hi")

        assert result.configured is False
        assert result.failed is False
        assert result.to_response()["message"] == "Email service not configured"

    @pytest.mark.asyncio
    async def test_missing_fields(self):
        service = EmailService(provider=_resend(lambda _req: httpx.Response(200)))
        with pytest.raises(ValueError, match="Missing required fields"):
            await service.send_message("", "Ali", "Anna", None, "Hi")
        with pytest.raises(ValueError, match="Missing required fields"):
            await service.send_message("ali@example.com", "Ali", "Anna", None, "")


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_limit_per_recipient(self):
        service = EmailService(
            provider=_resend(lambda _req: httpx.Response(200, json={"id": "x"})),
            redis=FakeRedis(),
            rate_limit_per_hour=1,
        )

        first = await service.send_message("ali@example.com", "Ali", "Anna", None, "Hi")
        second = await service.send_message("ALI@example.com", "Ali", "Anna", None, "Hi again")
        other = await service.send_message("vali@example.com", "Vali", "Anna", None, "Hi")

        assert first.delivered is True
        assert second.delivered is False
        assert second.error == "Rate limit exceeded"
        assert other.delivered is True


class TestProviderSelection:
    def test_default_is_resend(self):
        assert isinstance(_create_provider(), ResendProvider)

    def test_smtp(self, monkeypatch):
        monkeypatch.setenv("EDU_EMAIL_PROVIDER", "smtp")
        monkeypatch.setenv("EDU_SMTP_HOST", "smtp.example.com")
        get_settings.cache_clear()

        provider = _create_provider()

        assert isinstance(provider, SMTPProvider)
        assert provider.is_configured

    def test_unknown_provider(self, monkeypatch):
        monkeypatch.setenv("EDU_EMAIL_PROVIDER", "pigeon")
        get_settings.cache_clear()

        with pytest.raises(ValueError, match="Unsupported email provider"):
            _create_provider()
