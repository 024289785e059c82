"""PostgreSQL implementation of AuditStore.

Uses asyncpg for async database access.
"""

from collections.abc import AsyncIterator
from typing import Any
from uuid import UUID

import asyncpg

from garrison.audit.chain import GENESIS_HASH, chain_entry
from garrison.audit.models import AuditDraft, AuditLogEntry, AuditLogFilter
from garrison.audit.store import AuditStore
from garrison.db.pool import PostgresPool
from garrison.errors import handle_database_error
from garrison.observability.logging import get_logger

logger = get_logger(__name__)

# Transaction-scoped advisory lock that serializes appends across processes
APPEND_LOCK_KEY = 0x6761725F61756474

_COLUMNS = """
    id, sequence, actor_id, action, entity, entity_id, ip,
    metadata, ts, previous_hash, immutable_hash
"""


class PostgresAuditStore(AuditStore):
    """PostgreSQL implementation of AuditStore.

    Appends run inside a transaction holding pg_advisory_xact_lock, so
    the head read and the insert are atomic across every writer sharing
    the database. UNIQUE constraints on sequence and previous_hash reject
    a fork even if the lock were bypassed.
    """

    def __init__(self, pool: PostgresPool, genesis_hash: str = GENESIS_HASH) -> None:
        """Initialize with connection pool.

        Args:
            pool: PostgreSQL connection pool
            genesis_hash: Previous-hash marker for the first entry
        """
        self._pool = pool
        self._genesis_hash = genesis_hash

    async def append(self, draft: AuditDraft) -> AuditLogEntry:
        """Chain a draft onto the current head and persist it."""
        try:
            async with self._pool.acquire() as conn, conn.transaction():
                await conn.execute("SELECT pg_advisory_xact_lock($1)", APPEND_LOCK_KEY)
                row = await conn.fetchrow(
                    f"SELECT {_COLUMNS} FROM audit_log ORDER BY sequence DESC LIMIT 1"
                )
                head = self._row_to_entry(row) if row else None
                entry = chain_entry(head, draft, genesis_hash=self._genesis_hash)
                await conn.execute(
                    """
                    INSERT INTO audit_log (
                        id, sequence, actor_id, action, entity, entity_id, ip,
                        metadata, ts, previous_hash, immutable_hash
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                    """,
                    entry.id,
                    entry.sequence,
                    entry.actor_id,
                    entry.action,
                    entry.entity,
                    entry.entity_id,
                    entry.ip,
                    entry.metadata,
                    entry.ts,
                    entry.previous_hash,
                    entry.immutable_hash,
                )
        except asyncpg.PostgresError as e:
            raise handle_database_error(e, "audit_append", action=draft.action) from e

        logger.debug("audit_entry_saved", entry_id=str(entry.id), sequence=entry.sequence)
        return entry

    async def get_head(self) -> AuditLogEntry | None:
        """Get the most recent entry in the chain."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {_COLUMNS} FROM audit_log ORDER BY sequence DESC LIMIT 1"
                )
        except asyncpg.PostgresError as e:
            raise handle_database_error(e, "audit_get_head") from e
        return self._row_to_entry(row) if row else None

    async def get_entry(self, entry_id: UUID) -> AuditLogEntry | None:
        """Get an entry by ID."""
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {_COLUMNS} FROM audit_log WHERE id = $1", entry_id
                )
        except asyncpg.PostgresError as e:
            raise handle_database_error(e, "audit_get_entry", entry_id=str(entry_id)) from e
        return self._row_to_entry(row) if row else None

    async def list_entries(
        self,
        filters: AuditLogFilter | None = None,
        *,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditLogEntry]:
        """List entries matching filters, most recent first."""
        where, params = self._build_where(filters)
        params.append(limit)
        query = f"SELECT {_COLUMNS} FROM audit_log{where} ORDER BY sequence DESC"
        query += f" LIMIT ${len(params)}"
        params.append(offset)
        query += f" OFFSET ${len(params)}"

        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(query, *params)
        except asyncpg.PostgresError as e:
            raise handle_database_error(e, "audit_list_entries") from e
        return [self._row_to_entry(row) for row in rows]

    async def count(self, filters: AuditLogFilter | None = None) -> int:
        """Count entries matching filters."""
        where, params = self._build_where(filters)
        try:
            async with self._pool.acquire() as conn:
                return await conn.fetchval(f"SELECT COUNT(*) FROM audit_log{where}", *params)
        except asyncpg.PostgresError as e:
            raise handle_database_error(e, "audit_count") from e

    async def iter_chain(self, *, batch_size: int = 500) -> AsyncIterator[AuditLogEntry]:
        """Yield every entry in ascending sequence order.

        Pages by sequence (keyset) so a long chain never loads at once.
        """
        after = 0
        while True:
            try:
                async with self._pool.acquire() as conn:
                    rows = await conn.fetch(
                        f"""
                        SELECT {_COLUMNS} FROM audit_log
                        WHERE sequence > $1
                        ORDER BY sequence ASC
                        LIMIT $2
                        """,
                        after,
                        batch_size,
                    )
            except asyncpg.PostgresError as e:
                raise handle_database_error(e, "audit_iter_chain", after=after) from e

            for row in rows:
                yield self._row_to_entry(row)
            if len(rows) < batch_size:
                return
            after = rows[-1]["sequence"]

    @staticmethod
    def _build_where(filters: AuditLogFilter | None) -> tuple[str, list[Any]]:
        if filters is None:
            return "", []

        clauses: list[str] = []
        params: list[Any] = []
        for column, value, op in (
            ("actor_id", filters.actor_id, "="),
            ("action", filters.action, "="),
            ("entity", filters.entity, "="),
            ("ts", filters.start_time, ">="),
            ("ts", filters.end_time, "<="),
        ):
            if value is not None:
                params.append(value)
                clauses.append(f"{column} {op} ${len(params)}")

        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    def _row_to_entry(self, row: asyncpg.Record) -> AuditLogEntry:
        """Convert database row to AuditLogEntry."""
        return AuditLogEntry(
            id=row["id"],
            sequence=row["sequence"],
            actor_id=row["actor_id"],
            action=row["action"],
            entity=row["entity"],
            entity_id=row["entity_id"],
            ip=row["ip"],
            metadata=row["metadata"],
            ts=row["ts"],
            previous_hash=row["previous_hash"],
            immutable_hash=row["immutable_hash"],
        )
