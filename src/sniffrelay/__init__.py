"""
sniffrelay: streaming HTTP download relay with magic-byte type detection.

The relay peeks at the first chunk of a response, decides from its
signature (falling back to the declared Content-Type) whether the
transfer may proceed, and then relays the whole body unchanged,
optionally copying it to a fan-out destination.

Modules:
    detection  - magic-byte classification, type gate, allowlist filters
    download   - peek-and-splice relay, fan-out sinks, completion adapter
    errors     - exception hierarchy with error categories
    logging    - structured JSON/console logging with transfer context
    config     - YAML configuration with environment expansion
"""

from sniffrelay.detection.classifier import TypeDescriptor
from sniffrelay.download import (
    AbortEvent,
    CompleteEvent,
    DataEvent,
    ErrorEvent,
    ExtensionTarget,
    FixedTarget,
    HttpClientConfig,
    RelayStream,
    TransferOptions,
    TypeEvent,
    transfer,
    transfer_as_future,
)
from sniffrelay.errors import (
    NetworkError,
    RelayError,
    SinkError,
    StatusRejection,
    TransferAborted,
    TypeRejection,
)
from sniffrelay.types import ErrorCategory

__version__ = "0.1.0"

__all__ = [
    "transfer",
    "transfer_as_future",
    "RelayStream",
    "TransferOptions",
    "HttpClientConfig",
    "TypeDescriptor",
    "FixedTarget",
    "ExtensionTarget",
    "TypeEvent",
    "DataEvent",
    "CompleteEvent",
    "AbortEvent",
    "ErrorEvent",
    "ErrorCategory",
    "RelayError",
    "NetworkError",
    "StatusRejection",
    "TypeRejection",
    "SinkError",
    "TransferAborted",
]
