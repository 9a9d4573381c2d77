"""
agentkv Configuration — loads and merges config from multiple sources.

Precedence (highest to lowest):
1. Explicit overrides (passed in code)
2. Environment variables (AGENTKV_*)
3. Project config (./agentkv.toml)
4. User config (~/.agentkv/config.toml)
5. Defaults (hardcoded)

Environment variable mapping:
    AGENTKV_URL → provider.url
    AGENTKV_DB_PREFIX → provider.db_prefix
    AGENTKV_TIMEOUT → provider.timeout
    AGENTKV_BATCH_SIZE → provider.batch_size
    AGENTKV_LOG_LEVEL → logging.console_level
    AGENTKV_LOG_DIR → logging.log_dir
"""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from agentkv.core.errors import ConfigError

_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Config Sub-Models
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class ProviderConfig(BaseModel):
    """Backend connection and store naming."""

    url: str = "memory://"
    db_prefix: str = ""
    timeout: float = 30.0  # seconds, per backend request
    batch_size: int = 100  # records fetched per iterator page

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value

    @field_validator("batch_size")
    @classmethod
    def _positive_batch(cls, value: int) -> int:
        if value < 1:
            raise ValueError("batch_size must be at least 1")
        return value


class LoggingConfig(BaseModel):
    """Logging configuration, applied by setup_logging_from_config()."""

    console_level: str = "WARNING"
    file_level: str = "DEBUG"
    log_dir: str | None = None

    @field_validator("console_level", "file_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LEVEL_NAMES:
            raise ValueError(f"unknown log level '{value}'")
        return level


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Main Config
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class AgentKVConfig(BaseModel):
    """Root configuration for agentkv."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @staticmethod
    def load(
        overrides: dict[str, Any] | None = None,
        project_path: Path | None = None,
        user_path: Path | None = None,
    ) -> AgentKVConfig:
        """
        Load configuration from all sources and merge.

        Precedence: overrides > env vars > project toml > user toml > defaults
        """
        merged: dict[str, Any] = {}

        # Layer 1: User config (~/.agentkv/config.toml)
        user_config_path = user_path or Path.home() / ".agentkv" / "config.toml"
        if user_config_path.exists():
            _deep_merge(merged, _load_toml(user_config_path))

        # Layer 2: Project config (./agentkv.toml)
        project_config_path = project_path or Path.cwd() / "agentkv.toml"
        if project_config_path.exists():
            _deep_merge(merged, _load_toml(project_config_path))

        # Layer 3: Environment variables
        _deep_merge(merged, _load_from_env())

        # Layer 4: Explicit overrides
        if overrides:
            _deep_merge(merged, overrides)

        _substitute_env_vars(merged)

        try:
            return AgentKVConfig(**merged)
        except Exception as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Internal Helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e


def _load_from_env() -> dict[str, Any]:
    """Load configuration from AGENTKV_* environment variables."""
    result: dict[str, Any] = {}

    env_mapping = {
        "AGENTKV_URL": ("provider", "url"),
        "AGENTKV_DB_PREFIX": ("provider", "db_prefix"),
        "AGENTKV_TIMEOUT": ("provider", "timeout"),
        "AGENTKV_BATCH_SIZE": ("provider", "batch_size"),
        "AGENTKV_LOG_LEVEL": ("logging", "console_level"),
        "AGENTKV_LOG_DIR": ("logging", "log_dir"),
    }

    for env_var, (section, key) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            # pydantic coerces numeric strings for typed fields
            result.setdefault(section, {})[key] = value

    return result


def _deep_merge(base: dict, override: dict) -> None:
    """Deep merge override into base (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _substitute_env_vars(data: dict) -> None:
    """Recursively substitute ${ENV_VAR} patterns in string values."""
    for key, value in data.items():
        if isinstance(value, dict):
            _substitute_env_vars(value)
        elif isinstance(value, str):
            data[key] = _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), ""), value)
