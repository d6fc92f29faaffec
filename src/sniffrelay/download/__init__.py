"""
Streaming download relay.

Provides:
    - transfer / RelayStream: peek-detect-validate-relay over one HTTP response
    - transfer_as_future: awaitable wrapper returning the detected type
    - FixedTarget / ExtensionTarget: fan-out destinations
    - HttpClientConfig / create_session: explicit aiohttp configuration

Example usage:
    from sniffrelay.download import TransferOptions, transfer, DataEvent, TypeEvent

    async with transfer("https://example.com/logo", TransferOptions()) as stream:
        async for event in stream:
            if isinstance(event, TypeEvent):
                print(event.descriptor.mime)
            elif isinstance(event, DataEvent):
                handle(event.chunk)
"""

from sniffrelay.download.completion import transfer_as_future, wait_for_completion
from sniffrelay.download.http_client import (
    DEFAULT_CHUNK_SIZE,
    HttpClientConfig,
    create_session,
    open_response,
)
from sniffrelay.download.models import (
    AbortEvent,
    CompleteEvent,
    DataEvent,
    ErrorEvent,
    RelayEvent,
    TransferOptions,
    TransferState,
    TypeEvent,
)
from sniffrelay.download.reader import PrimedReader
from sniffrelay.download.relay import RelayStream, transfer
from sniffrelay.download.sinks import (
    Destination,
    ExtensionTarget,
    FanOutSink,
    FixedTarget,
    Target,
)

__all__ = [
    # Relay
    "transfer",
    "RelayStream",
    "PrimedReader",
    # Completion
    "transfer_as_future",
    "wait_for_completion",
    # Models
    "TransferOptions",
    "TransferState",
    "RelayEvent",
    "TypeEvent",
    "DataEvent",
    "CompleteEvent",
    "AbortEvent",
    "ErrorEvent",
    # Fan-out
    "Destination",
    "Target",
    "FixedTarget",
    "ExtensionTarget",
    "FanOutSink",
    # HTTP client
    "HttpClientConfig",
    "create_session",
    "open_response",
    "DEFAULT_CHUNK_SIZE",
]
