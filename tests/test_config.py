"""Tests for settings and logging setup."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import pydantic
import pytest

from powhttp_inspect.config import InspectSettings, configure_logging, get_settings


def test_defaults() -> None:
    settings = InspectSettings()

    assert settings.POWHTTP_BASE_URL == 'http://localhost:7777'
    assert settings.http_timeout_seconds == 10.0
    assert settings.TOOL_MAX_BYTES_DEFAULT == 2_000_000
    assert settings.ENTRY_CACHE_MAX_ITEMS == 512


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv('POWHTTP_BASE_URL', 'http://capture:8080')
    monkeypatch.setenv('ENTRY_CACHE_MAX_ITEMS', '64')

    settings = InspectSettings()

    assert settings.POWHTTP_BASE_URL == 'http://capture:8080'
    assert settings.ENTRY_CACHE_MAX_ITEMS == 64


@pytest.mark.parametrize('field', ['HTTP_CLIENT_TIMEOUT_MS', 'TOOL_MAX_BYTES_DEFAULT', 'ENTRY_CACHE_MAX_ITEMS'])
def test_rejects_non_positive_limits(field: str) -> None:
    with pytest.raises(pydantic.ValidationError):
        InspectSettings(**{field: 0})


def test_log_level_is_normalized() -> None:
    assert InspectSettings(LOG_LEVEL='warn').LOG_LEVEL == 'WARNING'
    assert InspectSettings(LOG_LEVEL='debug').log_level_number == logging.DEBUG

    with pytest.raises(pydantic.ValidationError):
        InspectSettings(LOG_LEVEL='chatty')


def test_get_settings_from_env_file(tmp_path: Path) -> None:
    env_file = tmp_path / 'test.env'
    env_file.write_text('POWHTTP_BASE_URL=http://from-file:1\n')

    settings = get_settings(InspectSettings, env_file=str(env_file))

    assert settings.POWHTTP_BASE_URL == 'http://from-file:1'


def test_get_settings_missing_env_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        get_settings(InspectSettings, env_file=str(tmp_path / 'missing.env'))


def test_configure_logging_with_rotating_file(tmp_path: Path) -> None:
    log_file = tmp_path / 'logs' / 'inspect.log'
    settings = InspectSettings(LOG_LEVEL='DEBUG', LOG_FILE=str(log_file))

    logger = configure_logging(settings)
    try:
        logging.getLogger('powhttp_inspect.compare').debug('hello from the diff engine')
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers)
        assert 'hello from the diff engine' in log_file.read_text()
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def test_configure_logging_replaces_handlers() -> None:
    settings = InspectSettings()

    configure_logging(settings)
    logger = configure_logging(settings)
    try:
        assert len(logger.handlers) == 1
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
