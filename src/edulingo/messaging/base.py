"""Common result type of the outbound delivery channels."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class DeliveryResult:
    """Outcome of one outbound message.

    A channel without credentials is not an error: ``configured`` is False
    and ``note`` says why nothing was sent, so callers never fail on an
    optional channel.
    """

    delivered: bool
    message: str = ""
    configured: bool = True
    note: str | None = None
    error: str | None = None
    provider_id: str | None = None

    @property
    def failed(self) -> bool:
        return self.configured and not self.delivered

    @classmethod
    def not_configured(cls, channel: str, requirement: str) -> DeliveryResult:
        return cls(
            delivered=False,
            configured=False,
            message=f"{channel} service not configured",
            note=f"{channel} functionality requires {requirement} configuration",
        )

    def to_response(self) -> dict:
        body: dict = {"success": self.delivered, "message": self.message}
        if self.note:
            body["note"] = self.note
        if self.error:
            body["error"] = self.error
        if self.provider_id:
            body["id"] = self.provider_id
        return body
