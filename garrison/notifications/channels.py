"""Outbound notification channels.

In-app notifications are delivered by being stored, so that sender does
nothing. Email and SMS have no provider wired in yet; they log what
would be sent in the recipient's locale.
"""

from abc import ABC, abstractmethod

from garrison.notifications.enums import NotificationChannel
from garrison.notifications.models import Notification, Recipient
from garrison.observability.logging import get_logger

logger = get_logger(__name__)


class ChannelSender(ABC):
    """Delivers a notification over one channel."""

    channel: NotificationChannel

    @abstractmethod
    async def send(self, notification: Notification, recipient: Recipient | None) -> None:
        """Deliver notification to recipient."""
        pass


class InAppSender(ChannelSender):
    """Stored notifications are picked up by the client."""

    channel = NotificationChannel.IN_APP

    async def send(self, notification: Notification, recipient: Recipient | None) -> None:
        return None


class EmailSender(ChannelSender):
    """Logs the localized email instead of sending it."""

    channel = NotificationChannel.EMAIL

    async def send(self, notification: Notification, recipient: Recipient | None) -> None:
        if recipient is None or not recipient.email:
            logger.warning(
                "email_notification_skipped",
                notification_id=str(notification.id),
                reason="no_address",
            )
            return

        logger.info(
            "email_notification_would_be_sent",
            notification_id=str(notification.id),
            to=recipient.email,
            subject=notification.title_for(recipient.locale),
            message=notification.message_for(recipient.locale),
        )


class SmsSender(ChannelSender):
    """Logs the localized SMS instead of sending it."""

    channel = NotificationChannel.SMS

    async def send(self, notification: Notification, recipient: Recipient | None) -> None:
        if recipient is None or not recipient.phone:
            logger.warning(
                "sms_notification_skipped",
                notification_id=str(notification.id),
                reason="no_address",
            )
            return

        logger.info(
            "sms_notification_would_be_sent",
            notification_id=str(notification.id),
            to=recipient.phone,
            message=notification.message_for(recipient.locale),
        )


def default_senders() -> dict[NotificationChannel, ChannelSender]:
    """One sender per channel."""
    return {
        sender.channel: sender
        for sender in (InAppSender(), EmailSender(), SmsSender())
    }
