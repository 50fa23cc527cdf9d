"""Request models of the email/SMS relay endpoints (camelCase on the wire)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendEmailRequest(_CamelModel):
    recipient_email: str = ""
    recipient_name: str | None = None
    sender_name: str = ""
    subject: str | None = None
    content: str = ""
    platform_url: str | None = None


class SendSmsRequest(_CamelModel):
    phone_number: str = ""
    message: str = ""
    sender_name: str | None = None
