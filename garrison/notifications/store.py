"""NotificationStore and RecipientDirectory abstract interfaces."""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from garrison.notifications.enums import NotificationType
from garrison.notifications.models import Notification, Recipient


class NotificationStore(ABC):
    """Abstract interface for notification persistence."""

    @abstractmethod
    async def save(self, notification: Notification) -> Notification:
        """Insert a new notification."""
        pass

    @abstractmethod
    async def get(self, notification_id: UUID) -> Notification | None:
        """Get a notification by ID."""
        pass

    @abstractmethod
    async def mark_sent(self, notification_id: UUID, sent_at: datetime) -> None:
        """Stamp the time a notification went out."""
        pass

    @abstractmethod
    async def mark_read(
        self, notification_id: UUID, user_id: str, read_at: datetime
    ) -> bool:
        """Mark one unread notification owned by user_id as read.

        Returns:
            True if a notification changed state
        """
        pass

    @abstractmethod
    async def mark_all_read(self, user_id: str, read_at: datetime) -> int:
        """Mark every unread notification for a user as read.

        Returns:
            Number of notifications changed
        """
        pass

    @abstractmethod
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
        pass

    @abstractmethod
    async def count_for_user(
        self,
        user_id: str,
        *,
        unread_only: bool = False,
        type: NotificationType | None = None,
    ) -> int:
        """Count a user's notifications matching the same filters as list_for_user."""
        pass


class RecipientDirectory(ABC):
    """Resolves user ids to contact details."""

    @abstractmethod
    async def get(self, user_id: str) -> Recipient | None:
        """Get a recipient by user id."""
        pass
