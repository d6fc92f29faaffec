"""
Awaitable wrapper around a relay transfer.

For callers that only care about the outcome (typically with a fan-out
target doing the actual storing), ``transfer_as_future`` drains the event
channel and returns the detected TypeDescriptor.
"""

from typing import Optional

import aiohttp

from sniffrelay.detection.classifier import TypeDescriptor
from sniffrelay.download.http_client import HttpClientConfig
from sniffrelay.download.models import (
    AbortEvent,
    CompleteEvent,
    ErrorEvent,
    TransferOptions,
    TypeEvent,
)
from sniffrelay.download.relay import RelayStream, transfer
from sniffrelay.errors.exceptions import TransferAborted


async def wait_for_completion(stream: RelayStream) -> TypeDescriptor:
    """
    Drain ``stream`` and return the descriptor of its TypeEvent.

    Raises:
        The transfer's error on ErrorEvent
        TransferAborted on AbortEvent
    """
    descriptor: Optional[TypeDescriptor] = None

    async with stream:
        async for event in stream:
            if isinstance(event, TypeEvent):
                descriptor = event.descriptor
            elif isinstance(event, ErrorEvent):
                raise event.error
            elif isinstance(event, AbortEvent):
                raise TransferAborted(context={"url": stream.url})
            elif isinstance(event, CompleteEvent):
                return descriptor

    # The channel always ends with a terminal event
    raise TransferAborted("Transfer ended without a terminal event", context={"url": stream.url})


async def transfer_as_future(
    url: str,
    options: Optional[TransferOptions] = None,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    config: Optional[HttpClientConfig] = None,
) -> TypeDescriptor:
    """
    Run a transfer to completion.

    Cancelling the awaiting task aborts the transfer.

    Example:
        descriptor = await transfer_as_future(
            url, TransferOptions(target=ExtensionTarget(lambda ext: f"out.{ext or 'bin'}"))
        )

    Returns:
        TypeDescriptor of the relayed body

    Raises:
        StatusRejection, TypeRejection, NetworkError, SinkError: as carried by
            the transfer's ErrorEvent
        TransferAborted: if the transfer was aborted
    """
    stream = transfer(url, options, session=session, config=config)
    return await wait_for_completion(stream)


__all__ = ["transfer_as_future", "wait_for_completion"]
