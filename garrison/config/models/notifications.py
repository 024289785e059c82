"""Notification configuration."""

from pydantic import BaseModel, Field

from garrison.notifications.enums import NotificationChannel, NotificationPriority


class NotificationsConfig(BaseModel):
    """Notification defaults and listing limits."""

    default_priority: NotificationPriority = Field(
        default=NotificationPriority.MEDIUM,
        description="Priority used when the caller does not set one",
    )
    default_channels: list[NotificationChannel] = Field(
        default_factory=lambda: [NotificationChannel.IN_APP],
        min_length=1,
        description="Channels used when the caller does not set any",
    )
    default_page_size: int = Field(default=20, gt=0, description="Default listing size")
    max_page_size: int = Field(default=50, gt=0, description="Upper bound for limit")
