"""
Logging setup for powhttp-inspect.

Core modules log through module-level ``logging.getLogger(__name__)`` loggers;
this module wires the root handlers from settings.
"""

from __future__ import annotations

import logging
import logging.handlers
import pathlib
import sys

from powhttp_inspect.config.base import InspectSettings

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_PACKAGE_LOGGER = 'powhttp_inspect'


def configure_logging(settings: InspectSettings) -> logging.Logger:
    """
    Install stderr (and optionally rotating file) handlers on the package logger.

    Safe to call more than once - previously installed handlers are replaced.

    Args:
        settings: Settings carrying LOG_LEVEL / LOG_FILE / rotation limits

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(_PACKAGE_LOGGER)
    logger.setLevel(settings.log_level_number)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    # stdout belongs to the MCP stdio transport
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if settings.LOG_FILE:
        log_path = pathlib.Path(settings.LOG_FILE).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=settings.LOG_MAX_SIZE_MB * 1024 * 1024,
            backupCount=settings.LOG_MAX_BACKUPS,
            encoding='utf-8',
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
