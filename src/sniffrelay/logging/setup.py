"""Logging setup and configuration."""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from sniffrelay.logging.formatters import ConsoleFormatter, JSONFormatter

DEFAULT_ROTATION_WHEN = "midnight"
DEFAULT_BACKUP_COUNT = 7
DEFAULT_FILE_LEVEL = logging.DEBUG

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "aiohttp",
    "asyncio",
    "urllib3",
]


def setup_logging(
    level: int | str = logging.INFO,
    json_format: bool = False,
    log_file: Path | str | None = None,
    file_level: int = DEFAULT_FILE_LEVEL,
    rotation_when: str = DEFAULT_ROTATION_WHEN,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    suppress_noisy: bool = True,
) -> logging.Logger:
    """
    Configure root logging with a stderr handler and an optional rotating file.

    Console output goes to stderr so that stdout stays free for command
    output. The file handler, when requested, always writes JSON lines.

    Args:
        level: Console handler level (default: INFO)
        json_format: Use JSON lines on the console instead of the colored format
        log_file: Optional path for a time-rotated JSON log file
        file_level: File handler level (default: DEBUG)
        rotation_when: TimedRotatingFileHandler ``when`` value (default: midnight)
        backup_count: Number of rotated files to keep (default: 7)
        suppress_noisy: Quiet down HTTP client and asyncio loggers

    Returns:
        The package logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            log_path,
            when=rotation_when,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)
    else:
        root_logger.setLevel(level)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger("sniffrelay")
    logger.debug(f"Logging initialized: file={log_file}, json={json_format}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (typically with ``__name__``)."""
    return logging.getLogger(name)
