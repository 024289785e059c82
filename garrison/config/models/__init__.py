"""Configuration model exports.

    from garrison.config.models import APIConfig, StorageConfig
"""

from garrison.config.models.api import APIConfig, AuthConfig
from garrison.config.models.audit import AuditConfig
from garrison.config.models.notifications import NotificationsConfig
from garrison.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from garrison.config.models.resilience import ResilienceConfig
from garrison.config.models.storage import PostgresConfig, StorageConfig

__all__ = [
    "APIConfig",
    "AuditConfig",
    "AuthConfig",
    "LoggingConfig",
    "MetricsConfig",
    "NotificationsConfig",
    "ObservabilityConfig",
    "PostgresConfig",
    "ResilienceConfig",
    "StorageConfig",
]
