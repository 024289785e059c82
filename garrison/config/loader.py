"""Layered TOML configuration for Garrison.

``config/default.toml`` is always read; ``config/<GARRISON_ENV>.toml`` is
merged over it when present. GARRISON_* environment variables are applied
later by the Settings model.
"""

import os
import tomllib
from pathlib import Path
from typing import Any, get_args

from garrison.config.settings import Environment

ENVIRONMENTS: tuple[str, ...] = get_args(Environment)
DEFAULT_ENVIRONMENT = "development"

# Parent levels searched for a config/ directory holding default.toml
_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Locate the directory holding default.toml.

    GARRISON_CONFIG_DIR wins when set and must exist. Otherwise the
    working directory and its parents are searched for ``config/default.toml``,
    so a stray ``config/`` without defaults is skipped.
    """
    override = os.environ.get("GARRISON_CONFIG_DIR")
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {override}")
        return path

    current = Path.cwd()
    for candidate in [current, *current.parents][:_SEARCH_DEPTH]:
        if (candidate / "config" / "default.toml").is_file():
            return candidate / "config"

    return Path("config")


def get_environment() -> str:
    """Deployment environment named by GARRISON_ENV.

    Raises:
        ValueError: If the name is not a known environment
    """
    env = os.environ.get("GARRISON_ENV", DEFAULT_ENVIRONMENT).strip().lower()
    if env not in ENVIRONMENTS:
        raise ValueError(
            f"Unknown GARRISON_ENV {env!r}; expected one of {', '.join(ENVIRONMENTS)}"
        )
    return env


def load_toml(file_path: Path) -> dict[str, Any]:
    """Read one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with file_path.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base; nested tables merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config(
    environment: str | None = None, config_dir: Path | None = None
) -> dict[str, Any]:
    """Build the merged configuration for one environment.

    The environment defaults to GARRISON_ENV and the directory to
    get_config_dir(). The selected name is recorded under ``environment``,
    replacing whatever default.toml declares.
    """
    config_dir = config_dir or get_config_dir()
    env = environment or get_environment()
    if env not in ENVIRONMENTS:
        raise ValueError(
            f"Unknown environment {env!r}; expected one of {', '.join(ENVIRONMENTS)}"
        )

    default_path = config_dir / "default.toml"
    if not default_path.is_file():
        raise FileNotFoundError(
            f"Default configuration file not found: {default_path}. "
            "Create config/default.toml or set GARRISON_CONFIG_DIR."
        )

    config = load_toml(default_path)

    env_path = config_dir / f"{env}.toml"
    if env_path.is_file():
        config = deep_merge(config, load_toml(env_path))

    config["environment"] = env
    return config
