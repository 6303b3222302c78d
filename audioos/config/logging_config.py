"""
Configure logging for the application.

This module provides a consistent logging configuration across the entire
application, ensuring log messages are formatted correctly and directed
to the appropriate outputs (console, file, etc.). Every handler carries a
SensitiveDataFilter so credentials never reach the console or the log files.
"""

import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from audioos.config.constants import LOGGER_NAME

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Log file configuration
LOG_DIR = Path("logs")
LOG_FILE = LOG_DIR / "audioos.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

SENSITIVE_KEYS = ("token", "password", "secret", "apikey", "api_key", "authorization")
FILTERED = "[FILTERED]"

_SENSITIVE_PATTERN = re.compile("|".join(SENSITIVE_KEYS), re.IGNORECASE)


def _is_sensitive(text: str) -> bool:
    return bool(_SENSITIVE_PATTERN.search(text))


def redact(value: Any) -> Any:
    """Return a copy of ``value`` with sensitive entries replaced by [FILTERED]."""
    if isinstance(value, dict):
        return {
            key: FILTERED if isinstance(key, str) and _is_sensitive(key) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact(item) for item in value)
    if isinstance(value, str) and _is_sensitive(value):
        return FILTERED
    return value


class SensitiveDataFilter(logging.Filter):
    """Redact credentials from log record arguments.

    Dict arguments have values under sensitive keys replaced, and string
    arguments mentioning a sensitive word are replaced entirely. The message
    template itself is left alone so ordinary log lines stay readable.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            if isinstance(record.args, dict):
                record.args = redact(record.args)
            else:
                record.args = tuple(redact(arg) for arg in record.args)
        return True


def _resolve_level() -> int:
    level_name = os.getenv("LOG_LEVEL")
    if level_name:
        return getattr(logging, level_name.upper(), logging.INFO)
    if os.getenv("ENV", "production").lower() == "production":
        return logging.WARNING
    return logging.DEBUG


def configure_logging(
    name: str = LOGGER_NAME,
    file_path: str = "logs/",
    log_filename: str = "audioos.log",
    redact_sensitive: bool = True,
    level: Optional[int] = None,
) -> logging.Logger:
    """
    Configure the application logger with console and file handlers.

    Returns:
        logging.Logger: The configured logger instance
    """
    global LOG_FILE
    log_dir = Path(file_path)
    LOG_FILE = log_dir / log_filename

    # Create logger
    logger = logging.getLogger(name)
    logger.setLevel(level if level is not None else _resolve_level())

    # Remove existing handlers if any
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)
    sensitive_filter = SensitiveDataFilter() if redact_sensitive else None

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    if sensitive_filter:
        console_handler.addFilter(sensitive_filter)
    logger.addHandler(console_handler)

    try:
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=MAX_LOG_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        if sensitive_filter:
            file_handler.addFilter(sensitive_filter)
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"Could not set up file logging: {e}")

    # Prevent log propagation to root logger
    logger.propagate = False

    logger.debug("Logging configured")
    return logger
