"""Root settings model for Garrison configuration."""

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from garrison.config.models.api import APIConfig
from garrison.config.models.audit import AuditConfig
from garrison.config.models.notifications import NotificationsConfig
from garrison.config.models.observability import ObservabilityConfig
from garrison.config.models.resilience import ResilienceConfig
from garrison.config.models.storage import StorageConfig

Environment = Literal["development", "staging", "production", "test"]

# Module-level variable to store TOML config for settings source
_toml_config: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    """Set the TOML configuration to be used by Settings."""
    global _toml_config
    _toml_config = config


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that reads from TOML configuration."""

    def get_field_value(
        self, field: Any, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        """Get field value from TOML config."""
        value = _toml_config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        """Return the TOML config values."""
        return _toml_config.copy()


class Settings(BaseSettings):
    """Root configuration object containing all nested configuration sections.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml (base configuration)
    3. config/{GARRISON_ENV}.toml (environment overrides)
    4. GARRISON_* environment variables (runtime overrides)
    """

    model_config = SettingsConfigDict(
        env_prefix="GARRISON_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="garrison", description="Application name for logging")
    environment: Environment = Field(
        default="development", description="Deployment environment"
    )
    debug: bool = Field(
        default=False,
        description="Expose stack traces and error context in API responses",
    )

    api: APIConfig = Field(default_factory=APIConfig, description="API server configuration")
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Storage backend configuration",
    )
    audit: AuditConfig = Field(default_factory=AuditConfig, description="Audit chain settings")
    notifications: NotificationsConfig = Field(
        default_factory=NotificationsConfig,
        description="Notification defaults",
    )
    resilience: ResilienceConfig = Field(
        default_factory=ResilienceConfig,
        description="Retry and circuit breaker tuning",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Logging and metrics configuration",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include TOML config.

        Priority order (highest to lowest):
        1. init_settings (constructor arguments)
        2. env_settings (GARRISON_* environment variables)
        3. toml_settings (config/*.toml files)
        4. (defaults from model)
        """
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )
