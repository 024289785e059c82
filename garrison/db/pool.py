"""asyncpg connection pool shared by the PostgreSQL stores."""

import json
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg

from garrison.errors import DatabaseError
from garrison.observability.logging import get_logger

logger = get_logger(__name__)


def encode_json(value: Any) -> str:
    """Serialize a json/jsonb parameter.

    Non-JSON values (datetimes, UUIDs) become str(value), as they do in
    the audit canonical payload, so stored metadata re-hashes identically.
    """
    return json.dumps(value, ensure_ascii=False, default=str)


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode json/jsonb columns to Python objects."""
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=encode_json,
            decoder=json.loads,
            schema="pg_catalog",
        )


class PostgresPool:
    """Thin lifecycle wrapper around an asyncpg pool.

    The DSN falls back to GARRISON_DATABASE_URL, then DATABASE_URL.
    """

    def __init__(
        self,
        dsn: str | None = None,
        *,
        min_size: int = 2,
        max_size: int = 10,
        max_inactive_connection_lifetime: float = 300.0,
        command_timeout: float = 30.0,
    ) -> None:
        self._dsn = (
            dsn
            or os.environ.get("GARRISON_DATABASE_URL")
            or os.environ.get("DATABASE_URL")
        )
        self._min_size = min_size
        self._max_size = max_size
        self._max_inactive_connection_lifetime = max_inactive_connection_lifetime
        self._command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        """Open the pool."""
        if self._pool is not None:
            return
        if not self._dsn:
            raise DatabaseError(
                "No database DSN configured",
                {"hint": "set storage.postgres.dsn or DATABASE_URL"},
            )

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                max_inactive_connection_lifetime=self._max_inactive_connection_lifetime,
                command_timeout=self._command_timeout,
                init=_init_connection,
            )
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("postgres_pool_connect_failed", error=str(e))
            raise DatabaseError(
                "Failed to connect to PostgreSQL", {"original_error": str(e)}
            ) from e

        logger.info(
            "postgres_pool_opened",
            min_size=self._min_size,
            max_size=self._max_size,
        )

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a connection from the pool."""
        if self._pool is None:
            raise DatabaseError("PostgreSQL pool is not connected")
        async with self._pool.acquire() as conn:
            yield conn

    async def health_check(self) -> bool:
        """Return True if a trivial query succeeds."""
        try:
            async with self.acquire() as conn:
                return await conn.fetchval("SELECT 1") == 1
        except Exception as e:
            logger.warning("postgres_health_check_failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close all pooled connections."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("postgres_pool_closed")
