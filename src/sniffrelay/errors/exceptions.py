"""
Exception hierarchy for the download relay.

Every failure a transfer can end with is a RelayError carrying an
ErrorCategory, so callers can tell a rejected content type apart from a
flaky network without parsing messages.
"""

import errno

from sniffrelay.types import ErrorCategory


class RelayError(Exception):
    """
    Base exception for all relay errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for caller retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.AUTH,
            ErrorCategory.UNKNOWN,
        )

    def __str__(self) -> str:
        return self.message


class TransientError(RelayError):
    """Base class for transient errors."""

    category = ErrorCategory.TRANSIENT


class PermanentError(RelayError):
    """Base class for permanent errors."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Transfer outcomes
# =============================================================================


class NetworkError(TransientError):
    """Connection, DNS, TLS or timeout failure raised by the HTTP client."""

    @classmethod
    def from_exception(cls, exc: BaseException, url: str | None = None) -> "NetworkError":
        message = str(exc) or type(exc).__name__
        context = {"url": url} if url else {}
        return cls(message, cause=exc, context=context)


class StatusRejection(RelayError):
    """Response status outside [200, 300) while status checks are enabled."""

    def __init__(self, status_code: int, context: dict | None = None):
        super().__init__(f"Request failure: {status_code} status", context=context)
        self.status_code = status_code
        self.category = classify_http_status(status_code)


class TypeRejection(PermanentError):
    """Caller filter refused the detected type."""

    def __init__(
        self,
        resolved_type: str | None,
        status_code: int,
        context: dict | None = None,
    ):
        super().__init__(
            f"Invalid type: {resolved_type} - Status Code: {status_code}",
            context=context,
        )
        self.resolved_type = resolved_type
        self.status_code = status_code


class SinkError(RelayError):
    """Fan-out destination could not be opened or refused data."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        if isinstance(cause, OSError):
            self.category = classify_os_error(cause)


class TransferAborted(RelayError):
    """Transfer was cancelled before it completed."""

    category = ErrorCategory.UNKNOWN

    def __init__(self, message: str = "Transfer aborted", context: dict | None = None):
        super().__init__(message, context=context)


class ConfigError(PermanentError):
    """Invalid relay configuration."""

    pass


# =============================================================================
# Classification utilities
# =============================================================================


def classify_http_status(status_code: int) -> ErrorCategory:
    """Classify HTTP status code into error category."""
    if 200 <= status_code < 300:
        return ErrorCategory.UNKNOWN  # Not an error

    # Auth redirects (302 = redirect to login page)
    if status_code in (302, 401):
        return ErrorCategory.AUTH

    if status_code in (408, 429):
        return ErrorCategory.TRANSIENT

    if 400 <= status_code < 500:
        return ErrorCategory.PERMANENT

    if status_code >= 500:
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


def classify_os_error(error: OSError) -> ErrorCategory:
    """
    Classify OSError by errno into error category.

    Only disk full, read-only filesystem and permission errors are PERMANENT.
    """
    permanent_errnos = (errno.ENOSPC, errno.EROFS, errno.EACCES, errno.EPERM)
    return ErrorCategory.PERMANENT if error.errno in permanent_errnos else ErrorCategory.TRANSIENT


def classify_exception(exc: BaseException) -> ErrorCategory:
    """Classify an exception into error category."""
    if isinstance(exc, RelayError):
        return exc.category

    if isinstance(exc, OSError) and exc.errno is not None:
        return classify_os_error(exc)

    exc_type = type(exc).__name__.lower()
    exc_str = str(exc).lower()

    if "timeout" in exc_type or "timeout" in exc_str:
        return ErrorCategory.TRANSIENT

    connection_markers = (
        "connection",
        "name resolution",
        "dns",
        "socket",
        "broken pipe",
        "ssl",
    )
    if any(m in exc_type or m in exc_str for m in connection_markers):
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "RelayError",
    "TransientError",
    "PermanentError",
    "NetworkError",
    "StatusRejection",
    "TypeRejection",
    "SinkError",
    "TransferAborted",
    "ConfigError",
    "classify_http_status",
    "classify_os_error",
    "classify_exception",
]
