"""PostgreSQL implementations of NotificationStore and RecipientDirectory.

Uses asyncpg for async database access.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

import asyncpg

from garrison.db.pool import PostgresPool
from garrison.errors import handle_database_error
from garrison.notifications.enums import (
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)
from garrison.notifications.models import Notification, Recipient
from garrison.notifications.store import NotificationStore, RecipientDirectory
from garrison.observability.logging import get_logger

logger = get_logger(__name__)

_COLUMNS = """
    id, type, recipient_id, sender_id, title_ar, title_en, message_ar,
    message_en, priority, channels, metadata, is_read, read_at,
    scheduled_at, expires_at, sent_at, created_at
"""


class PostgresNotificationStore(NotificationStore):
    """PostgreSQL implementation of NotificationStore."""

    def __init__(self, pool: PostgresPool) -> None:
        """Initialize with connection pool.

        Args:
            pool: PostgreSQL connection pool
        """
        self._pool = pool

    async def save(self, notification: Notification) -> Notification:
        """Insert a new notification."""
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO notifications (
                        id, type, recipient_id, sender_id, title_ar, title_en,
                        message_ar, message_en, priority, channels, metadata,
                        is_read, read_at, scheduled_at, expires_at, sent_at,
                        created_at
                    ) VALUES (
                        $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11,
                        $12, $13, $14, $15, $16, $17
                    )
                    """,
                    notification.id,
                    notification.type.value,
                    notification.recipient_id,
                    notification.sender_id,
                    notification.title_ar,
                    notification.title_en,
                    notification.message_ar,
                    notification.message_en,
                    notification.priority.value,
                    [c.value for c in notification.channels],
                    notification.metadata,
                    notification.is_read,
                    notification.read_at,
                    notification.scheduled_at,
                    notification.expires_at,
                    notification.sent_at,
                    notification.created_at,
                )
        except asyncpg.PostgresError as e:
            raise handle_database_error(
                e, "notification_save", notification_id=str(notification.id)
            ) from e

        logger.debug("notification_saved", notification_id=str(notification.id))
        return notification

    async def get(self, notification_id: UUID) -> Notification | None:
        """Get a notification by ID."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {_COLUMNS} FROM notifications WHERE id = $1",
                    notification_id,
                )
        except asyncpg.PostgresError as e:
            raise handle_database_error(
                e, "notification_get", notification_id=str(notification_id)
            ) from e
        return self._row_to_notification(row) if row else None

    async def mark_sent(self, notification_id: UUID, sent_at: datetime) -> None:
        """Stamp the time a notification went out."""
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    "UPDATE notifications SET sent_at = $2 WHERE id = $1",
                    notification_id,
                    sent_at,
                )
        except asyncpg.PostgresError as e:
            raise handle_database_error(
                e, "notification_mark_sent", notification_id=str(notification_id)
            ) from e

    async def mark_read(
        self, notification_id: UUID, user_id: str, read_at: datetime
    ) -> bool:
        """Mark one unread notification owned by user_id as read."""
        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    """
                    UPDATE notifications SET is_read = true, read_at = $3
                    WHERE id = $1 AND recipient_id = $2 AND is_read = false
                    """,
                    notification_id,
                    user_id,
                    read_at,
                )
        except asyncpg.PostgresError as e:
            raise handle_database_error(
                e,
                "notification_mark_read",
                notification_id=str(notification_id),
                user_id=user_id,
            ) from e
        return _affected(status) > 0

    async def mark_all_read(self, user_id: str, read_at: datetime) -> int:
        """Mark every unread notification for a user as read."""
        try:
            async with self._pool.acquire() as conn:
                status = await conn.execute(
                    """
                    UPDATE notifications SET is_read = true, read_at = $2
                    WHERE recipient_id = $1 AND is_read = false
                    """,
                    user_id,
                    read_at,
                )
        except asyncpg.PostgresError as e:
            raise handle_database_error(
                e, "notification_mark_all_read", user_id=user_id
            ) from e
        return _affected(status)

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
        where, params = self._build_where(user_id, unread_only, type)
        params.append(limit)
        query = f"SELECT {_COLUMNS} FROM notifications{where}"
        query += f" ORDER BY created_at DESC LIMIT ${len(params)}"
        params.append(offset)
        query += f" OFFSET ${len(params)}"

        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(query, *params)
        except asyncpg.PostgresError as e:
            raise handle_database_error(
                e, "notification_list_for_user", user_id=user_id
            ) from e
        return [self._row_to_notification(row) for row in rows]

    async def count_for_user(
        self,
        user_id: str,
        *,
        unread_only: bool = False,
        type: NotificationType | None = None,
    ) -> int:
        """Count a user's notifications."""
        where, params = self._build_where(user_id, unread_only, type)
        try:
            async with self._pool.acquire() as conn:
                return await conn.fetchval(
                    f"SELECT COUNT(*) FROM notifications{where}", *params
                )
        except asyncpg.PostgresError as e:
            raise handle_database_error(
                e, "notification_count_for_user", user_id=user_id
            ) from e

    @staticmethod
    def _build_where(
        user_id: str,
        unread_only: bool,
        type: NotificationType | None,
    ) -> tuple[str, list[Any]]:
        clauses = ["recipient_id = $1"]
        params: list[Any] = [user_id]
        if unread_only:
            clauses.append("is_read = false")
        if type is not None:
            params.append(type.value)
            clauses.append(f"type = ${len(params)}")
        return " WHERE " + " AND ".join(clauses), params

    def _row_to_notification(self, row: asyncpg.Record) -> Notification:
        """Convert database row to Notification."""
        return Notification(
            id=row["id"],
            type=NotificationType(row["type"]),
            recipient_id=row["recipient_id"],
            sender_id=row["sender_id"],
            title_ar=row["title_ar"],
            title_en=row["title_en"],
            message_ar=row["message_ar"],
            message_en=row["message_en"],
            priority=NotificationPriority(row["priority"]),
            channels=[NotificationChannel(c) for c in row["channels"]],
            metadata=row["metadata"],
            is_read=row["is_read"],
            read_at=row["read_at"],
            scheduled_at=row["scheduled_at"],
            expires_at=row["expires_at"],
            sent_at=row["sent_at"],
            created_at=row["created_at"],
        )


class PostgresRecipientDirectory(RecipientDirectory):
    """Looks recipients up in the users table."""

    def __init__(self, pool: PostgresPool) -> None:
        self._pool = pool

    async def get(self, user_id: str) -> Recipient | None:
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT id, email, phone, locale FROM users WHERE id = $1",
                    user_id,
                )
        except asyncpg.PostgresError as e:
            raise handle_database_error(e, "recipient_get", user_id=user_id) from e

        if row is None:
            return None
        locale = row["locale"] if row["locale"] in ("ar", "en") else "ar"
        return Recipient(id=row["id"], email=row["email"], phone=row["phone"], locale=locale)


def _affected(status: str) -> int:
    """Row count from an asyncpg command tag such as 'UPDATE 3'."""
    try:
        return int(status.split()[-1])
    except (IndexError, ValueError):
        return 0
