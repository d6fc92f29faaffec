"""
Core types shared across the relay modules.

Provides the error classification enum used by the exception hierarchy
and the logging helpers, plus the protocol describing a magic-byte
classifier so alternate signature databases can be plugged in.
"""

from enum import Enum
from typing import Optional, Protocol


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    The relay never retries on its own; the category is surfaced so that
    callers can decide what to do with a failed transfer.

    Categories:
        TRANSIENT: Temporary failures that may succeed if tried again
                   (e.g., network timeouts, 429/503 responses)
        AUTH: Authentication failures requiring credential refresh
              (e.g., 401 responses)
        PERMANENT: Failures that won't succeed on retry
                   (e.g., 404, rejected content type, read-only disk)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class SignatureMatch(Protocol):
    """Result of a magic-byte lookup (shape of ``filetype`` matchers)."""

    mime: str
    extension: str


class SignatureDetector(Protocol):
    """
    Protocol for magic-byte detectors.

    ``filetype.guess`` satisfies this protocol.
    """

    def __call__(self, data: bytes) -> Optional[SignatureMatch]:
        ...


__all__ = [
    "ErrorCategory",
    "SignatureMatch",
    "SignatureDetector",
]
