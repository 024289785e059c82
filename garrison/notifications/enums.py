"""Notification enums."""

from enum import Enum


class NotificationType(str, Enum):
    """What a notification is about."""

    COURSE_ENROLLMENT = "COURSE_ENROLLMENT"
    COURSE_COMPLETION = "COURSE_COMPLETION"
    EXAM_AVAILABLE = "EXAM_AVAILABLE"
    EXAM_SUBMITTED = "EXAM_SUBMITTED"
    EXAM_GRADED = "EXAM_GRADED"
    CERTIFICATE_ISSUED = "CERTIFICATE_ISSUED"
    SESSION_REMINDER = "SESSION_REMINDER"
    SYSTEM_ANNOUNCEMENT = "SYSTEM_ANNOUNCEMENT"
    CUSTOM_MESSAGE = "CUSTOM_MESSAGE"


class NotificationChannel(str, Enum):
    """Delivery channels."""

    IN_APP = "IN_APP"
    EMAIL = "EMAIL"
    SMS = "SMS"


class NotificationPriority(str, Enum):
    """Notification urgency."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"
