"""
Content type classification from magic bytes.

Combines the signature lookup done by ``filetype`` with the Content-Type
header the server declared. The header value is always kept; the
signature result, when there is one, wins for ``mime`` and ``ext``.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

import filetype

from sniffrelay.types import SignatureDetector, SignatureMatch

# Number of leading bytes the signature database inspects
SIGNATURE_WINDOW = 8192


@dataclass(frozen=True)
class TypeDescriptor:
    """
    Resolved type of a response body.

    Attributes:
        mime: MIME type from magic-byte detection (None if no signature matched)
        ext: File extension from magic-byte detection, without the dot
        content_type: Raw Content-Type header value (None if absent)
    """

    mime: Optional[str] = None
    ext: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def detected(self) -> bool:
        return self.mime is not None

    @property
    def resolved(self) -> Optional[str]:
        """Detected MIME type, falling back to the declared Content-Type."""
        return self.mime or self.content_type

    def to_dict(self) -> dict:
        return {"mime": self.mime, "ext": self.ext, "content_type": self.content_type}


def detect(
    chunk: bytes,
    detector: SignatureDetector = filetype.guess,
) -> Optional[SignatureMatch]:
    """
    Look up the magic-byte signature of ``chunk``.

    Works on whatever bytes are available, even fewer than a full
    signature. An empty chunk never matches.
    """
    if not chunk:
        return None
    return detector(bytes(chunk[:SIGNATURE_WINDOW]))


def header_value(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """Case-insensitive header lookup that also accepts plain dicts."""
    if not headers:
        return None

    value = headers.get(name)
    if value is not None:
        return value

    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def normalize_content_type(content_type: Optional[str]) -> str:
    """Normalize Content-Type to lowercase MIME type without parameters."""
    if not content_type:
        return ""
    return content_type.split(";")[0].strip().lower()


def classify(
    chunk: bytes,
    headers: Optional[Mapping[str, str]] = None,
    detector: SignatureDetector = filetype.guess,
) -> TypeDescriptor:
    """Build a TypeDescriptor from the first body chunk and response headers."""
    content_type = header_value(headers, "Content-Type")
    match = detect(chunk, detector)
    if match is None:
        return TypeDescriptor(content_type=content_type)

    return TypeDescriptor(
        mime=match.mime,
        ext=match.extension,
        content_type=content_type,
    )


__all__ = [
    "SIGNATURE_WINDOW",
    "TypeDescriptor",
    "detect",
    "classify",
    "header_value",
    "normalize_content_type",
]
