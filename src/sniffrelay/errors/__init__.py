"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- RelayError hierarchy for transfer outcomes
- Classification utilities for HTTP statuses and OS errors
"""

from sniffrelay.errors.exceptions import (
    ConfigError,
    # Enums
    ErrorCategory,
    # Transfer outcomes
    NetworkError,
    PermanentError,
    # Base classes
    RelayError,
    SinkError,
    StatusRejection,
    TransferAborted,
    TransientError,
    TypeRejection,
    # Classification utilities
    classify_exception,
    classify_http_status,
    classify_os_error,
)

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
