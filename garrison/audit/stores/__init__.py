"""Audit store implementations."""

from garrison.audit.store import AuditStore
from garrison.audit.stores.inmemory import InMemoryAuditStore
from garrison.audit.stores.postgres import PostgresAuditStore

__all__ = [
    "AuditStore",
    "InMemoryAuditStore",
    "PostgresAuditStore",
]
