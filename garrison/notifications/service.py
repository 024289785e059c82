"""Notification service.

Creates bilingual notifications, fans them out over their channels and
manages read state. Outbound channels are wrapped in a per-channel
circuit breaker with retries inside it.
"""

import asyncio
import time
from collections.abc import Callable
from typing import Any
from uuid import UUID

from garrison.errors import NotFoundError
from garrison.notifications.channels import ChannelSender, default_senders
from garrison.notifications.enums import (
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)
from garrison.notifications.models import (
    Notification,
    NotificationCreate,
    NotificationPage,
    Recipient,
    utc_now,
)
from garrison.notifications.store import NotificationStore, RecipientDirectory
from garrison.notifications.templates import render
from garrison.observability.logging import get_logger
from garrison.observability.metrics import NOTIFICATION_DELIVERIES, NOTIFICATIONS_CREATED
from garrison.resilience import CircuitBreaker, with_retry
from garrison.resilience.retry import Sleeper

logger = get_logger(__name__)


class NotificationService:
    """Creates, delivers and tracks notifications."""

    def __init__(
        self,
        store: NotificationStore,
        recipients: RecipientDirectory,
        *,
        senders: dict[NotificationChannel, ChannelSender] | None = None,
        default_priority: NotificationPriority = NotificationPriority.MEDIUM,
        default_channels: list[NotificationChannel] | None = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        breaker_failure_threshold: int = 5,
        breaker_timeout: float = 60.0,
        sleep: Sleeper = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the service.

        Args:
            store: Notification persistence
            recipients: Contact lookup for outbound channels
            senders: Channel senders; defaults to in-app, email and SMS
            default_priority: Priority when the caller sets none
            default_channels: Channels when the caller sets none
            max_retries: Attempts per outbound send
            retry_delay: Base backoff delay in seconds
            breaker_failure_threshold: Failures that open a channel's breaker
            breaker_timeout: Seconds before an open breaker allows a trial
            sleep: Backoff sleep, injectable for tests
            clock: Breaker clock, injectable for tests
        """
        self._store = store
        self._recipients = recipients
        self._senders = senders if senders is not None else default_senders()
        self._default_priority = default_priority
        self._default_channels = default_channels or [NotificationChannel.IN_APP]
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._sleep = sleep
        self._breakers = {
            channel: CircuitBreaker(
                breaker_failure_threshold,
                breaker_timeout,
                name=f"notifications_{channel.value.lower()}",
                clock=clock,
            )
            for channel in NotificationChannel
            if channel != NotificationChannel.IN_APP
        }

    def breaker(self, channel: NotificationChannel) -> CircuitBreaker:
        """The breaker guarding an outbound channel."""
        return self._breakers[channel]

    async def create_notification(self, data: NotificationCreate) -> Notification:
        """Persist a notification and send it unless it is scheduled.

        Raises:
            Whatever the store or delivery raised, after logging it
        """
        try:
            notification = Notification(
                type=data.type,
                recipient_id=data.recipient_id,
                sender_id=data.sender_id,
                title_ar=data.title_ar,
                title_en=data.title_en,
                message_ar=data.message_ar,
                message_en=data.message_en,
                priority=(
                    data.priority if data.priority is not None else self._default_priority
                ),
                channels=(
                    data.channels if data.channels is not None else list(self._default_channels)
                ),
                metadata=data.metadata,
                scheduled_at=data.scheduled_at,
                expires_at=data.expires_at,
            )
            notification = await self._store.save(notification)

            NOTIFICATIONS_CREATED.labels(
                type=notification.type.value,
                priority=notification.priority.value,
            ).inc()
            logger.info(
                "notification_created",
                notification_id=str(notification.id),
                type=notification.type.value,
                recipient_id=notification.recipient_id,
            )

            if data.scheduled_at is None:
                notification = await self.send_notification(notification.id)

            return notification
        except Exception as e:
            logger.error(
                "notification_create_failed",
                recipient_id=data.recipient_id,
                type=data.type.value,
                error=str(e),
            )
            raise

    async def create_from_template(
        self,
        template_type: NotificationType | str,
        recipient_id: str,
        variables: dict[str, str],
        **options: Any,
    ) -> Notification:
        """Render a predefined template and create the notification.

        Args:
            template_type: Template to render
            recipient_id: User receiving the notification
            variables: Placeholder values
            **options: Other NotificationCreate fields (priority, channels, ...)

        Raises:
            TemplateNotFoundError: If the type has no template
        """
        rendered = render(template_type, variables)
        data = NotificationCreate(
            type=NotificationType(template_type),
            recipient_id=recipient_id,
            **rendered.model_dump(),
            **options,
        )
        return await self.create_notification(data)

    async def send_notification(self, notification_id: UUID) -> Notification:
        """Deliver a stored notification over each of its channels.

        Raises:
            NotFoundError: If the notification does not exist
            ExternalServiceError: If a channel's breaker is open
        """
        try:
            notification = await self._store.get(notification_id)
            if notification is None:
                raise NotFoundError("Notification", {"notification_id": str(notification_id)})

            recipient = None
            if any(c != NotificationChannel.IN_APP for c in notification.channels):
                recipient = await self._recipients.get(notification.recipient_id)

            for channel in notification.channels:
                await self._deliver(channel, notification, recipient)

            sent_at = utc_now()
            await self._store.mark_sent(notification.id, sent_at)

            logger.info(
                "notification_sent",
                notification_id=str(notification.id),
                channels=[c.value for c in notification.channels],
                recipient_id=notification.recipient_id,
            )
            return notification.model_copy(update={"sent_at": sent_at})
        except Exception as e:
            logger.error(
                "notification_send_failed",
                notification_id=str(notification_id),
                error=str(e),
            )
            raise

    async def _deliver(
        self,
        channel: NotificationChannel,
        notification: Notification,
        recipient: Recipient | None,
    ) -> None:
        sender = self._senders[channel]
        if channel == NotificationChannel.IN_APP:
            await sender.send(notification, recipient)
            NOTIFICATION_DELIVERIES.labels(channel=channel.value, outcome="delivered").inc()
            return

        async def attempt() -> None:
            await with_retry(
                lambda: sender.send(notification, recipient),
                self._max_retries,
                self._retry_delay,
                operation=f"send_{channel.value.lower()}",
                sleep=self._sleep,
                notification_id=str(notification.id),
            )

        try:
            await self._breakers[channel].execute(
                attempt, notification_id=str(notification.id)
            )
        except Exception:
            NOTIFICATION_DELIVERIES.labels(channel=channel.value, outcome="failed").inc()
            raise
        NOTIFICATION_DELIVERIES.labels(channel=channel.value, outcome="delivered").inc()

    async def mark_as_read(self, notification_id: UUID, user_id: str) -> bool:
        """Mark a user's unread notification as read.

        Returns:
            True if the notification changed state
        """
        try:
            changed = await self._store.mark_read(notification_id, user_id, utc_now())
        except Exception as e:
            logger.error(
                "notification_mark_read_failed",
                notification_id=str(notification_id),
                user_id=user_id,
                error=str(e),
            )
            raise

        if changed:
            logger.info(
                "notification_marked_read",
                notification_id=str(notification_id),
                user_id=user_id,
            )
        return changed

    async def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification for a user as read.

        Returns:
            Number of notifications changed
        """
        try:
            count = await self._store.mark_all_read(user_id, utc_now())
        except Exception as e:
            logger.error("notification_mark_all_read_failed", user_id=user_id, error=str(e))
            raise

        logger.info("notifications_marked_read", user_id=user_id, count=count)
        return count

    async def get_user_notifications(
        self,
        user_id: str,
        *,
        limit: int = 20,
        offset: int = 0,
        unread_only: bool = False,
        type: NotificationType | None = None,
    ) -> NotificationPage:
        """Page through a user's notifications, most recent first."""
        try:
            notifications, total = await asyncio.gather(
                self._store.list_for_user(
                    user_id,
                    limit=limit,
                    offset=offset,
                    unread_only=unread_only,
                    type=type,
                ),
                self._store.count_for_user(user_id, unread_only=unread_only, type=type),
            )
        except Exception as e:
            logger.error("notification_list_failed", user_id=user_id, error=str(e))
            raise

        return NotificationPage(
            notifications=notifications,
            total=total,
            has_more=offset + limit < total,
        )

    async def get_unread_count(self, user_id: str) -> int:
        """Count unread notifications; 0 if the store fails."""
        try:
            return await self._store.count_for_user(user_id, unread_only=True)
        except Exception as e:
            logger.error("notification_unread_count_failed", user_id=user_id, error=str(e))
            return 0
