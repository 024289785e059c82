"""AuditStore abstract interface."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from uuid import UUID

from garrison.audit.models import AuditDraft, AuditLogEntry, AuditLogFilter


class AuditStore(ABC):
    """Abstract interface for the append-only audit chain.

    Implementations must make append atomic: reading the current head,
    chaining the draft onto it and inserting the result happen as one
    step, so concurrent appends never chain onto the same head.
    Entries are never updated or deleted.
    """

    @abstractmethod
    async def append(self, draft: AuditDraft) -> AuditLogEntry:
        """Chain a draft onto the current head and persist it."""
        pass

    @abstractmethod
    async def get_head(self) -> AuditLogEntry | None:
        """Get the most recent entry in the chain."""
        pass

    @abstractmethod
    async def get_entry(self, entry_id: UUID) -> AuditLogEntry | None:
        """Get an entry by ID."""
        pass

    @abstractmethod
    async def list_entries(
        self,
        filters: AuditLogFilter | None = None,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditLogEntry]:
        """List entries matching filters, most recent first."""
        pass

    @abstractmethod
    async def count(self, filters: AuditLogFilter | None = None) -> int:
        """Count entries matching filters."""
        pass

    @abstractmethod
    def iter_chain(self, *, batch_size: int = 500) -> AsyncIterator[AuditLogEntry]:
        """Yield every entry in ascending sequence order."""
        pass
