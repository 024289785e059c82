"""Bilingual notifications.

Notifications carry Arabic and English text and are delivered in-app,
by email or by SMS. Predefined templates cover the common training
events.
"""

from garrison.notifications.enums import (
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)
from garrison.notifications.models import (
    Notification,
    NotificationCreate,
    NotificationPage,
    NotificationTemplate,
    Recipient,
    RenderedNotification,
)
from garrison.notifications.service import NotificationService
from garrison.notifications.templates import TEMPLATES, render, substitute

__all__ = [
    "TEMPLATES",
    "Notification",
    "NotificationChannel",
    "NotificationCreate",
    "NotificationPage",
    "NotificationPriority",
    "NotificationService",
    "NotificationTemplate",
    "NotificationType",
    "Recipient",
    "RenderedNotification",
    "render",
    "substitute",
]
