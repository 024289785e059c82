"""In-memory implementations of NotificationStore and RecipientDirectory."""

from datetime import datetime
from uuid import UUID

from garrison.notifications.enums import NotificationType
from garrison.notifications.models import Notification, Recipient
from garrison.notifications.store import NotificationStore, RecipientDirectory


class InMemoryNotificationStore(NotificationStore):
    """In-memory implementation of NotificationStore for testing and development.

    Uses simple dict storage. Not suitable for production use.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._notifications: dict[UUID, Notification] = {}

    async def save(self, notification: Notification) -> Notification:
        """Insert a new notification."""
        self._notifications[notification.id] = notification
        return notification

    async def get(self, notification_id: UUID) -> Notification | None:
        """Get a notification by ID."""
        return self._notifications.get(notification_id)

    async def mark_sent(self, notification_id: UUID, sent_at: datetime) -> None:
        """Stamp the time a notification went out."""
        notification = self._notifications.get(notification_id)
        if notification is not None:
            self._notifications[notification_id] = notification.model_copy(
                update={"sent_at": sent_at}
            )

    async def mark_read(
        self, notification_id: UUID, user_id: str, read_at: datetime
    ) -> bool:
        """Mark one unread notification owned by user_id as read."""
        notification = self._notifications.get(notification_id)
        if (
            notification is None
            or notification.recipient_id != user_id
            or notification.is_read
        ):
            return False
        self._notifications[notification_id] = notification.model_copy(
            update={"is_read": True, "read_at": read_at}
        )
        return True

    async def mark_all_read(self, user_id: str, read_at: datetime) -> int:
        """Mark every unread notification for a user as read."""
        count = 0
        for notification in list(self._notifications.values()):
            if notification.recipient_id == user_id and not notification.is_read:
                self._notifications[notification.id] = notification.model_copy(
                    update={"is_read": True, "read_at": read_at}
                )
                count += 1
        return count

    async def list_for_user(
        self,
        user_id: str,
        *,
        limit: int = 20,
        offset: int = 0,
        unread_only: bool = False,
        type: NotificationType | None = None,
    ) -> list[Notification]:
        """List a user's notifications, most recent first."""
        results = self._filter(user_id, unread_only, type)
        results.sort(key=lambda n: n.created_at, reverse=True)
        return results[offset:offset + limit]

    async def count_for_user(
        self,
        user_id: str,
        *,
        unread_only: bool = False,
        type: NotificationType | None = None,
    ) -> int:
        """Count a user's notifications."""
        return len(self._filter(user_id, unread_only, type))

    def _filter(
        self,
        user_id: str,
        unread_only: bool,
        type: NotificationType | None,
    ) -> list[Notification]:
        return [
            n
            for n in self._notifications.values()
            if n.recipient_id == user_id
            and not (unread_only and n.is_read)
            and (type is None or n.type == type)
        ]


class InMemoryRecipientDirectory(RecipientDirectory):
    """Dict-backed recipient lookup."""

    def __init__(self, recipients: list[Recipient] | None = None) -> None:
        self._recipients = {r.id: r for r in recipients or []}

    def add(self, recipient: Recipient) -> None:
        self._recipients[recipient.id] = recipient

    async def get(self, user_id: str) -> Recipient | None:
        return self._recipients.get(user_id)
