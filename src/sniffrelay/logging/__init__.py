"""
Structured logging module.

Provides JSON and console logging with per-transfer context propagation.
"""

from sniffrelay.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from sniffrelay.logging.formatters import ConsoleFormatter, JSONFormatter
from sniffrelay.logging.setup import get_logger, setup_logging
from sniffrelay.logging.utilities import log_exception, log_with_context

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    # Utilities
    "log_with_context",
    "log_exception",
]
