"""Notification store implementations."""

from garrison.notifications.store import NotificationStore, RecipientDirectory
from garrison.notifications.stores.inmemory import (
    InMemoryNotificationStore,
    InMemoryRecipientDirectory,
)
from garrison.notifications.stores.postgres import (
    PostgresNotificationStore,
    PostgresRecipientDirectory,
)

__all__ = [
    "InMemoryNotificationStore",
    "InMemoryRecipientDirectory",
    "NotificationStore",
    "PostgresNotificationStore",
    "PostgresRecipientDirectory",
    "RecipientDirectory",
]
