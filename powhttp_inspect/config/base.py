"""
Base configuration for powhttp-inspect.

Shared settings and helper functions for all surfaces (MCP, CLI).
"""

from __future__ import annotations

import logging
import os
import pathlib
from typing import TypeVar

import lazy_object_proxy
import pydantic
import pydantic_settings

T = TypeVar('T', bound='InspectSettings')

_LOG_LEVELS = frozenset({'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'})


class InspectSettings(pydantic_settings.BaseSettings):
    """Shared configuration across all powhttp-inspect surfaces."""

    model_config = pydantic_settings.SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,  # Fail fast on misconfiguration
        extra='ignore',  # .env files are shared with the capture service
    )

    # Application metadata
    APP_NAME: str = 'powhttp-inspect'
    VERSION: str = '0.1.0'

    # Capture service
    POWHTTP_BASE_URL: str = 'http://localhost:7777'
    HTTP_CLIENT_TIMEOUT_MS: int = 10_000

    # Fingerprinting
    TOOL_MAX_BYTES_DEFAULT: int = 2_000_000  # Bodies above this are sized but not hashed
    ENTRY_CACHE_MAX_ITEMS: int = 512

    # Logging
    LOG_LEVEL: str = 'INFO'
    LOG_FILE: str | None = None  # stderr only when unset
    LOG_MAX_SIZE_MB: int = 10
    LOG_MAX_BACKUPS: int = 5

    @pydantic.field_validator(
        'HTTP_CLIENT_TIMEOUT_MS',
        'TOOL_MAX_BYTES_DEFAULT',
        'ENTRY_CACHE_MAX_ITEMS',
        'LOG_MAX_SIZE_MB',
    )
    @classmethod
    def validate_positive(cls, v: int, info: pydantic.ValidationInfo) -> int:
        """Reject zero and negative limits."""
        if v <= 0:
            raise ValueError(f'{info.field_name} must be positive')
        return v

    @pydantic.field_validator('LOG_MAX_BACKUPS')
    @classmethod
    def validate_backups(cls, v: int) -> int:
        if v < 0:
            raise ValueError('LOG_MAX_BACKUPS must not be negative')
        return v

    @pydantic.field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level == 'WARN':
            level = 'WARNING'
        if level not in _LOG_LEVELS:
            raise ValueError(f'LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}')
        return level

    @property
    def http_timeout_seconds(self) -> float:
        return self.HTTP_CLIENT_TIMEOUT_MS / 1000

    @property
    def log_level_number(self) -> int:
        return logging.getLevelNamesMapping()[self.LOG_LEVEL]


def get_settings(settings_class: type[T], env_file: str | None = None) -> T:
    """
    Factory for creating settings with dynamic .env file loading.

    LOAD_ENV_FILE environment variable specifies custom .env file path.
    When unset (production), loads from environment variables only.

    Args:
        settings_class: Settings class to instantiate
        env_file: Optional path to .env file (overrides LOAD_ENV_FILE)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If specified .env file doesn't exist
    """
    env_file_path = env_file or os.getenv('LOAD_ENV_FILE')

    if not env_file_path:
        return settings_class()  # No explicit .env file, load from environment

    resolved_path = pathlib.Path(env_file_path).resolve()
    if not resolved_path.exists():
        raise FileNotFoundError(f'Environment file not found: {resolved_path}')

    return settings_class(_env_file=resolved_path)


def lazy_settings(settings_class: type[T]) -> T:
    """
    Lazy settings - defers instantiation until first access.

    Args:
        settings_class: Settings class to instantiate

    Returns:
        Proxy that instantiates settings on first access
    """
    return lazy_object_proxy.Proxy(lambda: get_settings(settings_class))


# Module-level singleton (lazy-loaded)
settings = lazy_settings(InspectSettings)
