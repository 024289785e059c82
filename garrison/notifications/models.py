"""Notification domain models."""

from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from garrison.notifications.enums import (
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)

Locale = Literal["ar", "en"]


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class NotificationCreate(BaseModel):
    """Fields a caller supplies to create a notification.

    Priority and channels fall back to service defaults when unset.
    """

    type: NotificationType
    recipient_id: str = Field(..., min_length=1, description="User receiving the notification")
    sender_id: str | None = Field(default=None, description="User who triggered it")
    title_ar: str = Field(..., description="Arabic title")
    title_en: str = Field(..., description="English title")
    message_ar: str = Field(..., description="Arabic body")
    message_en: str = Field(..., description="English body")
    priority: NotificationPriority | None = None
    channels: list[NotificationChannel] | None = Field(default=None, min_length=1)
    metadata: dict[str, Any] | None = None
    scheduled_at: datetime | None = Field(
        default=None, description="Deliver later instead of immediately"
    )
    expires_at: datetime | None = None


class Notification(BaseModel):
    """A persisted notification."""

    id: UUID = Field(default_factory=uuid4)
    type: NotificationType
    recipient_id: str
    sender_id: str | None = None
    title_ar: str
    title_en: str
    message_ar: str
    message_en: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    channels: list[NotificationChannel] = Field(
        default_factory=lambda: [NotificationChannel.IN_APP]
    )
    metadata: dict[str, Any] | None = None
    is_read: bool = False
    read_at: datetime | None = None
    scheduled_at: datetime | None = None
    expires_at: datetime | None = None
    sent_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)

    def title_for(self, locale: Locale) -> str:
        return self.title_ar if locale == "ar" else self.title_en

    def message_for(self, locale: Locale) -> str:
        return self.message_ar if locale == "ar" else self.message_en


class NotificationPage(BaseModel):
    """One page of a user's notifications."""

    notifications: list[Notification]
    total: int
    has_more: bool


class Recipient(BaseModel):
    """Contact details used by outbound channels."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str | None = None
    phone: str | None = None
    locale: Locale = "ar"


class RenderedNotification(BaseModel):
    """Bilingual text produced from a template."""

    model_config = ConfigDict(frozen=True)

    title_ar: str
    title_en: str
    message_ar: str
    message_en: str


class NotificationTemplate(RenderedNotification):
    """Bilingual text containing {placeholders}."""
