"""Storage backend configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

BackendType = Literal["inmemory", "postgres"]


class PostgresConfig(BaseModel):
    """PostgreSQL connection pool configuration."""

    dsn: str | None = Field(
        default=None,
        description="Connection DSN (falls back to DATABASE_URL)",
    )
    min_pool_size: int = Field(
        default=2,
        gt=0,
        description="Minimum connections to keep open",
    )
    max_pool_size: int = Field(
        default=10,
        gt=0,
        description="Maximum connections in pool",
    )
    max_inactive_connection_lifetime: float = Field(
        default=300.0,
        gt=0,
        description="Close connections idle longer than this (seconds)",
    )
    command_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Default timeout for queries (seconds)",
    )


class StorageConfig(BaseModel):
    """Storage configuration for audit, notification and recipient stores."""

    backend: BackendType = Field(
        default="inmemory",
        description="Backend used by all stores",
    )
    postgres: PostgresConfig = Field(
        default_factory=PostgresConfig,
        description="PostgreSQL settings when backend is postgres",
    )
