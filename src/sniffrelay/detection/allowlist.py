"""
Allowlist-based filter predicates.

Builds ready-made ``filter`` callables for TransferOptions from extension
and MIME type allowlists. A detected signature is checked by extension;
bodies without a known signature fall back to the declared Content-Type.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Optional

from sniffrelay.detection.classifier import TypeDescriptor, normalize_content_type

logger = logging.getLogger(__name__)

# Allowed file extensions (case-insensitive)
DEFAULT_ALLOWED_EXTENSIONS: frozenset[str] = frozenset(
    {
        # Documents
        "pdf",
        "xml",
        "txt",
        "csv",
        "json",
        "xls",
        "xlsx",
        "doc",
        "docx",
        "zip",
        # Images
        "jpg",
        "png",
        "gif",
        "bmp",
        "tif",
        "webp",
        # Video
        "mov",
        "mp4",
    }
)

# Allowed MIME types (Content-Type header values)
DEFAULT_ALLOWED_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/xml",
        "application/json",
        "application/zip",
        "text/xml",
        "text/plain",
        "text/csv",
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/bmp",
        "image/tiff",
        "image/webp",
        "video/quicktime",
        "video/mp4",
    }
)

TypeFilter = Callable[[TypeDescriptor, bytes, int], bool]


def _normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    return frozenset(ext.lstrip(".").lower() for ext in extensions if ext)


def is_allowed_type(
    descriptor: TypeDescriptor,
    allowed_extensions: Iterable[str] = DEFAULT_ALLOWED_EXTENSIONS,
    allowed_content_types: Iterable[str] = DEFAULT_ALLOWED_CONTENT_TYPES,
    require_signature: bool = False,
    strict: bool = False,
) -> bool:
    """
    Check a descriptor against extension and MIME allowlists.

    Args:
        descriptor: Resolved type of the body
        allowed_extensions: Extensions accepted for detected signatures
        allowed_content_types: MIME types accepted for undetected bodies
        require_signature: Reject bodies whose magic bytes matched nothing
        strict: Reject when the declared Content-Type disagrees with the
            detected MIME type (guards against spoofed headers)

    Returns:
        True if the type is allowed
    """
    extensions = _normalize_extensions(allowed_extensions)
    content_types = {ct.lower() for ct in allowed_content_types}
    declared = normalize_content_type(descriptor.content_type)

    if descriptor.detected:
        if (descriptor.ext or "").lower() not in extensions:
            return False
        if strict and declared and declared != descriptor.mime:
            logger.debug(
                "Declared Content-Type does not match signature",
                extra={"content_type": descriptor.content_type, "mime": descriptor.mime},
            )
            return False
        return True

    if require_signature:
        return False

    return declared in content_types


def allowlist_filter(
    allowed_extensions: Optional[Iterable[str]] = None,
    allowed_content_types: Optional[Iterable[str]] = None,
    require_signature: bool = False,
    strict: bool = False,
) -> TypeFilter:
    """
    Build a TransferOptions ``filter`` from allowlists.

    Example:
        options = TransferOptions(filter=allowlist_filter({"png", "jpg"}))
    """
    extensions = _normalize_extensions(
        DEFAULT_ALLOWED_EXTENSIONS if allowed_extensions is None else allowed_extensions
    )
    content_types = frozenset(
        DEFAULT_ALLOWED_CONTENT_TYPES if allowed_content_types is None else allowed_content_types
    )

    def _filter(descriptor: TypeDescriptor, chunk: bytes, status_code: int) -> bool:
        return is_allowed_type(
            descriptor,
            allowed_extensions=extensions,
            allowed_content_types=content_types,
            require_signature=require_signature,
            strict=strict,
        )

    return _filter


__all__ = [
    "DEFAULT_ALLOWED_EXTENSIONS",
    "DEFAULT_ALLOWED_CONTENT_TYPES",
    "TypeFilter",
    "is_allowed_type",
    "allowlist_filter",
]
