"""
Package-wide logging.

Every module logs through a child of the ``devdictate`` logger. The first call
to ``get_logger`` attaches a rotating file handler (and optionally a stderr
handler) to that logger; later calls only hand out named children.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from platformdirs import user_log_path

ROOT_LOGGER_NAME = "devdictate"
LOG_DIR_ENV_VAR = "DEVDICTATE_LOG_DIR"

_logger_instance: Optional[logging.Logger] = None


def get_log_dir() -> Path:
    override = os.environ.get(LOG_DIR_ENV_VAR)
    log_dir = Path(override) if override else user_log_path(ROOT_LOGGER_NAME, appauthor=False)
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _configure(root_logger: logging.Logger) -> None:
    from ..core.settings import config

    level = config.get_log_level()
    root_logger.setLevel(level)
    formatter = logging.Formatter(config.LOG_FORMAT, datefmt=config.LOG_DATE_FORMAT)

    handlers = [
        RotatingFileHandler(
            get_log_dir() / config.LOG_FILE_NAME,
            maxBytes=config.LOG_MAX_BYTES,
            backupCount=config.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    ]
    if config.LOG_TO_CONSOLE:
        handlers.append(logging.StreamHandler(sys.stderr))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    # Host applications keep their own root configuration
    root_logger.propagate = False


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    global _logger_instance

    if _logger_instance is None:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        if not root_logger.handlers:
            _configure(root_logger)
        _logger_instance = root_logger

    if name == ROOT_LOGGER_NAME:
        return _logger_instance
    return logging.getLogger(name)


def shutdown_logging() -> None:
    """Close and detach every handler so log files can be moved or deleted."""
    global _logger_instance
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    _logger_instance = None
