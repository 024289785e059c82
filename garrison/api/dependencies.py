"""Dependency injection for API routes.

Provides FastAPI dependencies for settings, stores and services used by
API endpoints. Instances are created once per process from settings and
can be overridden for testing.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from garrison.audit import AuditChainVerifier, AuditStore, AuditWriter
from garrison.audit.stores import InMemoryAuditStore, PostgresAuditStore
from garrison.config.loader import load_config
from garrison.config.settings import Settings, set_toml_config
from garrison.db.pool import PostgresPool
from garrison.notifications import NotificationService
from garrison.notifications.stores import (
    InMemoryNotificationStore,
    InMemoryRecipientDirectory,
    NotificationStore,
    PostgresNotificationStore,
    PostgresRecipientDirectory,
    RecipientDirectory,
)
from garrison.observability.logging import get_logger

logger = get_logger(__name__)

# Connection pool - shared across stores
_postgres_pool: PostgresPool | None = None

# Store and service instances - created once and reused
_audit_store: AuditStore | None = None
_notification_store: NotificationStore | None = None
_recipient_directory: RecipientDirectory | None = None
_notification_service: NotificationService | None = None


@lru_cache
def get_settings() -> Settings:
    """Get application settings.

    Loads configuration from TOML files and environment variables.
    Cached to avoid reloading on every request.

    Returns:
        Settings object with all configuration
    """
    try:
        toml_config = load_config()
        set_toml_config(toml_config)
    except FileNotFoundError:
        # Use defaults if no config file
        logger.warning("config_file_not_found", msg="Using default configuration")
        set_toml_config({})

    return Settings()


SettingsDep = Annotated[Settings, Depends(get_settings)]


async def get_postgres_pool() -> PostgresPool:
    """Get the shared PostgreSQL connection pool.

    Creates and connects the pool on first access.

    Returns:
        Connected PostgresPool instance
    """
    global _postgres_pool
    if _postgres_pool is None:
        cfg = get_settings().storage.postgres
        pool = PostgresPool(
            cfg.dsn,
            min_size=cfg.min_pool_size,
            max_size=cfg.max_pool_size,
            max_inactive_connection_lifetime=cfg.max_inactive_connection_lifetime,
            command_timeout=cfg.command_timeout,
        )
        await pool.connect()
        _postgres_pool = pool
        logger.info("postgres_pool_connected")
    return _postgres_pool


def _use_postgres() -> bool:
    return get_settings().storage.backend == "postgres"


async def get_audit_store() -> AuditStore:
    """Get the AuditStore instance.

    A postgres connection failure propagates; there is no in-memory
    fallback for the audit chain.
    """
    global _audit_store
    if _audit_store is None:
        genesis_hash = get_settings().audit.genesis_hash
        if _use_postgres():
            _audit_store = PostgresAuditStore(await get_postgres_pool(), genesis_hash)
        else:
            _audit_store = InMemoryAuditStore(genesis_hash)
        logger.info("audit_store_initialized", store_type=type(_audit_store).__name__)
    return _audit_store


async def get_notification_store() -> NotificationStore:
    """Get the NotificationStore instance."""
    global _notification_store
    if _notification_store is None:
        if _use_postgres():
            _notification_store = PostgresNotificationStore(await get_postgres_pool())
        else:
            _notification_store = InMemoryNotificationStore()
        logger.info(
            "notification_store_initialized",
            store_type=type(_notification_store).__name__,
        )
    return _notification_store


async def get_recipient_directory() -> RecipientDirectory:
    """Get the RecipientDirectory instance."""
    global _recipient_directory
    if _recipient_directory is None:
        if _use_postgres():
            _recipient_directory = PostgresRecipientDirectory(await get_postgres_pool())
        else:
            _recipient_directory = InMemoryRecipientDirectory()
    return _recipient_directory


async def get_audit_writer(
    store: Annotated[AuditStore, Depends(get_audit_store)],
) -> AuditWriter:
    """Get a best-effort writer over the audit store."""
    return AuditWriter(store)


async def get_audit_verifier(
    store: Annotated[AuditStore, Depends(get_audit_store)],
    settings: SettingsDep,
) -> AuditChainVerifier:
    """Get a chain verifier over the audit store."""
    return AuditChainVerifier(
        store,
        batch_size=settings.audit.verify_batch_size,
        genesis_hash=settings.audit.genesis_hash,
    )


async def get_notification_service(
    store: Annotated[NotificationStore, Depends(get_notification_store)],
    recipients: Annotated[RecipientDirectory, Depends(get_recipient_directory)],
    settings: SettingsDep,
) -> NotificationService:
    """Get the NotificationService instance.

    Created once so each channel keeps a single circuit breaker.
    """
    global _notification_service
    if _notification_service is None:
        resilience = settings.resilience
        _notification_service = NotificationService(
            store,
            recipients,
            default_priority=settings.notifications.default_priority,
            default_channels=settings.notifications.default_channels,
            max_retries=resilience.max_retries,
            retry_delay=resilience.retry_delay,
            breaker_failure_threshold=resilience.breaker_failure_threshold,
            breaker_timeout=resilience.breaker_timeout,
        )
    return _notification_service


async def close_dependencies() -> None:
    """Close the shared pool on shutdown."""
    if _postgres_pool is not None:
        await _postgres_pool.close()


def reset_dependencies() -> None:
    """Reset all cached instances. Useful for testing."""
    global _postgres_pool, _audit_store, _notification_store
    global _recipient_directory, _notification_service
    _postgres_pool = None
    _audit_store = None
    _notification_store = None
    _recipient_directory = None
    _notification_service = None
    get_settings.cache_clear()


# Type aliases for dependency injection
AuditStoreDep = Annotated[AuditStore, Depends(get_audit_store)]
AuditWriterDep = Annotated[AuditWriter, Depends(get_audit_writer)]
AuditVerifierDep = Annotated[AuditChainVerifier, Depends(get_audit_verifier)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
