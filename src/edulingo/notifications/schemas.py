"""Pydantic request/response models for notification and push endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class NotificationResponse(BaseModel):
    id: str
    type: str
    title: str
    message: str
    timestamp: datetime | None = None
    read: bool
    action_url: str | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    total: int
    page: int
    per_page: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class CreateNotificationRequest(BaseModel):
    user_id: int
    type: str = "system"
    title: str = Field(min_length=1, max_length=256)
    message: str = Field(min_length=1)
    action_url: str | None = None
    push: bool = False  # Also deliver as a web push


# --- Push ---


class PushSendRequest(BaseModel):
    user_id: int
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    action_url: str | None = None
    priority: str = "normal"


class PushKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscriptionData(BaseModel):
    endpoint: str = Field(min_length=1)
    keys: PushKeys


class PushSubscribeRequest(BaseModel):
    user_id: int
    subscription: PushSubscriptionData


class PushUnsubscribeRequest(BaseModel):
    user_id: int
    endpoint: str = Field(min_length=1)
