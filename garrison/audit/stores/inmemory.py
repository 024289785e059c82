"""In-memory implementation of AuditStore."""

import asyncio
from collections.abc import AsyncIterator
from uuid import UUID

from garrison.audit.chain import GENESIS_HASH, chain_entry
from garrison.audit.models import AuditDraft, AuditLogEntry, AuditLogFilter
from garrison.audit.store import AuditStore


class InMemoryAuditStore(AuditStore):
    """In-memory implementation of AuditStore for testing and development.

    Entries live in a list in chain order; an asyncio.Lock serializes
    appends. Not suitable for production use.
    """

    def __init__(self, genesis_hash: str = GENESIS_HASH) -> None:
        """Initialize empty storage."""
        self._genesis_hash = genesis_hash
        self._entries: list[AuditLogEntry] = []
        self._by_id: dict[UUID, AuditLogEntry] = {}
        self._lock = asyncio.Lock()

    async def append(self, draft: AuditDraft) -> AuditLogEntry:
        """Chain a draft onto the current head and persist it."""
        async with self._lock:
            head = self._entries[-1] if self._entries else None
            # Yield while holding the lock so concurrent callers queue here
            await asyncio.sleep(0)
            entry = chain_entry(head, draft, genesis_hash=self._genesis_hash)
            self._entries.append(entry)
            self._by_id[entry.id] = entry
            return entry

    async def get_head(self) -> AuditLogEntry | None:
        """Get the most recent entry in the chain."""
        return self._entries[-1] if self._entries else None

    async def get_entry(self, entry_id: UUID) -> AuditLogEntry | None:
        """Get an entry by ID."""
        return self._by_id.get(entry_id)

    async def list_entries(
        self,
        filters: AuditLogFilter | None = None,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditLogEntry]:
        """List entries matching filters, most recent first."""
        filters = filters or AuditLogFilter()
        results = [entry for entry in reversed(self._entries) if filters.matches(entry)]
        return results[offset:offset + limit]

    async def count(self, filters: AuditLogFilter | None = None) -> int:
        """Count entries matching filters."""
        filters = filters or AuditLogFilter()
        return sum(1 for entry in self._entries if filters.matches(entry))

    async def iter_chain(self, *, batch_size: int = 500) -> AsyncIterator[AuditLogEntry]:
        """Yield every entry in ascending sequence order."""
        for start in range(0, len(self._entries), batch_size):
            for entry in self._entries[start:start + batch_size]:
                yield entry
