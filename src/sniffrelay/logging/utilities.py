"""Logging utility functions."""

import logging
from typing import Any

from sniffrelay.errors.exceptions import classify_exception

# Reserved LogRecord attribute names that cannot be used in extra dict
_RESERVED_LOG_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "asctime",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


def log_with_context(
    logger: logging.Logger,
    level: int,
    msg: str,
    **kwargs: Any,
) -> None:
    """
    Log with structured context fields.

    Example:
        log_with_context(
            logger, logging.INFO, "Transfer complete",
            bytes_downloaded=total,
            duration_ms=elapsed,
        )
    """
    exc_info = kwargs.pop("exc_info", None)
    extra = {k: v for k, v in kwargs.items() if k not in _RESERVED_LOG_KEYS}

    logger.log(level, msg, exc_info=exc_info, extra=extra)


def log_exception(
    logger: logging.Logger,
    exc: BaseException,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log exception with context and optional traceback.

    Classifies the exception into error_category (RelayError subclasses
    carry their own) and truncates long error messages.

    Example:
        try:
            await sink.write(chunk)
        except OSError as e:
            log_exception(logger, e, "Sink write failed", destination_path=path)
    """
    if kwargs.get("error_category") is None:
        kwargs["error_category"] = classify_exception(exc).value

    error_msg = str(exc)
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."
    kwargs["error_message"] = error_msg
    kwargs.setdefault("error_type", type(exc).__name__)

    extra = {k: v for k, v in kwargs.items() if k not in _RESERVED_LOG_KEYS}
    if include_traceback:
        logger.log(level, msg, exc_info=exc, extra=extra)
    else:
        logger.log(level, msg, extra=extra)
