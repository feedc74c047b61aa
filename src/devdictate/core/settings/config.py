"""
Centralized application configuration.

Edit the variables below to configure development settings. The log level can
also be overridden per run with ``DEVDICTATE_LOG_LEVEL``.
"""

import logging
import os

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = "DEBUG"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_LEVEL_ENV_VAR = "DEVDICTATE_LOG_LEVEL"
LOG_TO_CONSOLE = True  # Mirror log records to stderr
LOG_FILE_NAME = "devdictate.log"
LOG_MAX_BYTES = 10 * 1024 * 1024  # Rotate after 10MB
LOG_BACKUP_COUNT = 5
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# =============================================================================

# =============================================================================
# LLM SETTINGS
# =============================================================================
LLM_MAX_TOKENS = 200  # Upper bound on generated tokens per transform
LLM_TIMEOUT_SECONDS = 60.0  # Request timeout handed to the transformer
# =============================================================================


def get_log_level() -> int:
    """Resolve the configured level name, preferring the environment override."""
    name = os.environ.get(LOG_LEVEL_ENV_VAR) or LOG_LEVEL
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO
