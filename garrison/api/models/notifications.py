"""Request and response models for notification endpoints."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from garrison.api.models.base import CamelModel
from garrison.notifications import (
    Notification,
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)


class NotificationCreateRequest(CamelModel):
    """Body of POST /api/notifications."""

    type: NotificationType
    recipient_id: str = Field(..., min_length=1)
    title_ar: str = Field(..., min_length=1)
    title_en: str = Field(..., min_length=1)
    message_ar: str = Field(..., min_length=1)
    message_en: str = Field(..., min_length=1)
    priority: NotificationPriority | None = None
    channels: list[NotificationChannel] | None = Field(default=None, min_length=1)
    metadata: dict[str, Any] | None = None
    scheduled_at: datetime | None = None
    expires_at: datetime | None = None


class TemplateNotificationRequest(CamelModel):
    """Body of POST /api/notifications/templates/{type}."""

    recipient_id: str = Field(..., min_length=1)
    variables: dict[str, str] = Field(default_factory=dict)
    priority: NotificationPriority | None = None
    channels: list[NotificationChannel] | None = Field(default=None, min_length=1)
    metadata: dict[str, Any] | None = None
    scheduled_at: datetime | None = None
    expires_at: datetime | None = None


class NotificationResponse(CamelModel):
    """A notification as returned by the API."""

    id: UUID
    type: NotificationType
    recipient_id: str
    sender_id: str | None
    title_ar: str
    title_en: str
    message_ar: str
    message_en: str
    priority: NotificationPriority
    channels: list[NotificationChannel]
    metadata: dict[str, Any] | None
    is_read: bool
    read_at: datetime | None
    scheduled_at: datetime | None
    expires_at: datetime | None
    sent_at: datetime | None
    created_at: datetime

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        return cls.model_validate(notification.model_dump())


class NotificationPageResponse(CamelModel):
    """A page of notifications."""

    notifications: list[NotificationResponse]
    total: int
    has_more: bool


class CountResponse(CamelModel):
    count: int


class SuccessResponse(CamelModel):
    success: bool
