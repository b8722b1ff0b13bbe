"""
kvfacade Configuration — loads and merges config from multiple sources.

Precedence (highest to lowest):
1. Explicit overrides (passed in code)
2. Environment variables (KVFACADE_*)
3. Project config (./kvfacade.toml)
4. User config (~/.kvfacade/config.toml)
5. Defaults (hardcoded)

Environment variable mapping:
    KVFACADE_REDIS_URL → redis.url
    KVFACADE_REDIS_DB → redis.db_index
    KVFACADE_IGNORE_CASE → keys.ignore_case
    KVFACADE_SCAN_PAGE_SIZE → scan.page_size
    KVFACADE_LOG_LEVEL → logging.level
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from kvfacade.core.errors import ConfigError

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Config Sub-Models
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class RedisConfig(BaseModel):
    """Connection target."""

    url: str = "redis://localhost:6379"
    db_index: int = Field(default=0, ge=0)


class KeysConfig(BaseModel):
    """Key normalization policy."""

    # Lower-case keys before every store interaction
    ignore_case: bool = True


class ScanConfig(BaseModel):
    """Cursor scan behaviour for pattern deletes."""

    page_size: int = Field(default=100, gt=0)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    file: str | None = None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Main Config
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class KVFacadeConfig(BaseModel):
    """Root configuration for kvfacade."""

    redis: RedisConfig = Field(default_factory=RedisConfig)
    keys: KeysConfig = Field(default_factory=KeysConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @staticmethod
    def load(
        overrides: dict[str, Any] | None = None,
        project_path: Path | None = None,
        user_path: Path | None = None,
    ) -> KVFacadeConfig:
        """
        Load configuration from all sources and merge.

        Precedence: overrides > env vars > project toml > user toml > defaults
        """
        merged: dict[str, Any] = {}

        user_config_path = user_path or Path.home() / ".kvfacade" / "config.toml"
        if user_config_path.exists():
            _deep_merge(merged, _load_toml(user_config_path))

        project_config_path = project_path or Path.cwd() / "kvfacade.toml"
        if project_config_path.exists():
            _deep_merge(merged, _load_toml(project_config_path))

        _deep_merge(merged, _load_from_env())

        if overrides:
            _deep_merge(merged, overrides)

        # Substitute ${ENV_VAR} in string values
        _substitute_env_vars(merged)

        try:
            return KVFacadeConfig(**merged)
        except Exception as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Internal Helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e


_ENV_MAPPING = {
    "KVFACADE_REDIS_URL": ("redis", "url"),
    "KVFACADE_REDIS_DB": ("redis", "db_index"),
    "KVFACADE_IGNORE_CASE": ("keys", "ignore_case"),
    "KVFACADE_SCAN_PAGE_SIZE": ("scan", "page_size"),
    "KVFACADE_LOG_LEVEL": ("logging", "level"),
    "KVFACADE_LOG_FILE": ("logging", "file"),
}


def _load_from_env() -> dict[str, Any]:
    """Load configuration from KVFACADE_* environment variables."""
    result: dict[str, Any] = {}

    for env_var, (section, key) in _ENV_MAPPING.items():
        value = os.environ.get(env_var)
        if value is not None:
            result.setdefault(section, {})[key] = _convert_value(value)

    return result


def _convert_value(value: str) -> Any:
    """Convert string value to appropriate type."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value


def _deep_merge(base: dict, override: dict) -> None:
    """Deep merge override into base (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _substitute(value: str) -> str:
    for var_name in _ENV_PATTERN.findall(value):
        value = value.replace(f"${{{var_name}}}", os.environ.get(var_name, ""))
    return value


def _substitute_env_vars(data: dict) -> None:
    """Recursively substitute ${ENV_VAR} patterns in string values."""
    for key, value in data.items():
        if isinstance(value, dict):
            _substitute_env_vars(value)
        elif isinstance(value, str):
            data[key] = _substitute(value)
        elif isinstance(value, list):
            data[key] = [_substitute(v) if isinstance(v, str) else v for v in value]
