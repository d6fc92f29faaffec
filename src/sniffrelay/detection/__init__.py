"""
Content type detection and gating.

Components:
    - classifier: magic-byte lookup (filetype) merged with the Content-Type header
    - gate: status/filter decision for a peeked response
    - allowlist: ready-made filter predicates
"""

from sniffrelay.detection.allowlist import (
    DEFAULT_ALLOWED_CONTENT_TYPES,
    DEFAULT_ALLOWED_EXTENSIONS,
    allowlist_filter,
    is_allowed_type,
)
from sniffrelay.detection.classifier import (
    TypeDescriptor,
    classify,
    detect,
    normalize_content_type,
)
from sniffrelay.detection.gate import Accept, Reject, evaluate

__all__ = [
    "TypeDescriptor",
    "classify",
    "detect",
    "normalize_content_type",
    "Accept",
    "Reject",
    "evaluate",
    "allowlist_filter",
    "is_allowed_type",
    "DEFAULT_ALLOWED_EXTENSIONS",
    "DEFAULT_ALLOWED_CONTENT_TYPES",
]
