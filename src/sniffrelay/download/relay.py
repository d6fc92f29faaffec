"""
Peek-and-splice relay.

A RelayStream owns one HTTP response and one ordered event channel. It
reads exactly one chunk, runs the type gate, and then either fails the
transfer (no body bytes ever reach the channel) or emits the detected
type, hands the peeked chunk back through a PrimedReader and relays the
rest of the body unchanged, optionally copying it to a fan-out sink.

Lifecycle:
    PENDING -> PEEKING -> DECIDING -> RELAYING -> COMPLETED
                                   \\-> ERRORED
    any non-terminal state -> ABORTED (abort()) / ERRORED (network error)

Example:
    async with transfer(url, TransferOptions(target="out.bin")) as stream:
        async for event in stream:
            if isinstance(event, TypeEvent):
                print(event.descriptor.mime)
"""

import asyncio
import logging
import time
import uuid
from typing import Optional

import aiohttp

from sniffrelay.detection.classifier import TypeDescriptor
from sniffrelay.detection.gate import Reject, evaluate
from sniffrelay.download.http_client import HttpClientConfig, create_session, open_response
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
from sniffrelay.download.sinks import FanOutSink, open_target
from sniffrelay.errors.exceptions import NetworkError, classify_exception
from sniffrelay.logging.context import set_log_context
from sniffrelay.logging.utilities import log_exception

logger = logging.getLogger(__name__)


class RelayStream:
    """
    Outward-facing stream of one transfer.

    Iterate it to receive relay events in order. Exactly one terminal event
    (CompleteEvent, AbortEvent or ErrorEvent) ends the iteration. The event
    channel is bounded, so a consumer that stops iterating stalls the
    transfer; use ``abort()`` or ``aclose()`` to give up on it.
    """

    def __init__(
        self,
        url: str,
        options: Optional[TransferOptions] = None,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        config: Optional[HttpClientConfig] = None,
    ):
        self.url = url
        self.options = options or TransferOptions()
        self.config = config or HttpClientConfig()
        self.transfer_id = uuid.uuid4().hex
        self.type: Optional[TypeDescriptor] = None
        self.bytes_relayed = 0

        self._session = session
        self._events: asyncio.Queue[RelayEvent] = asyncio.Queue(
            maxsize=max(1, self.config.max_pending_events)
        )
        self._state = TransferState.PENDING
        self._terminal: Optional[RelayEvent] = None
        self._delivered_terminal = False
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> TransferState:
        return self._state

    @property
    def done(self) -> bool:
        return self._terminal is not None

    def start(self) -> "RelayStream":
        """Issue the request. Must be called with a running event loop."""
        if self._task is None and self._terminal is None:
            self._task = asyncio.get_running_loop().create_task(
                self._run(), name=f"relay-{self.transfer_id[:8]}"
            )
            self._task.add_done_callback(self._on_pump_done)
        return self

    def abort(self) -> None:
        """Cancel the transfer. No-op once a terminal event was produced."""
        if self._terminal is not None:
            return

        logger.info(
            "Transfer aborted",
            extra={
                "transfer_id": self.transfer_id,
                "state": self._state.value,
                "bytes_downloaded": self.bytes_relayed,
            },
        )
        self._state = TransferState.ABORTED
        self._terminal = AbortEvent()
        if self._task is not None and not self._task.done():
            self._task.cancel()

        # Abort supersedes anything not yet delivered
        while not self._events.empty():
            self._events.get_nowait()
        self._events.put_nowait(self._terminal)

    async def aclose(self) -> None:
        """Abort if still running and wait for the transfer to wind down."""
        if self._terminal is None:
            self.abort()
        elif not self._delivered_terminal and self._task is not None and not self._task.done():
            # Terminal event is queued but nobody will read it
            self._task.cancel()

        if self._task is not None:
            await asyncio.wait({self._task})

    async def __aenter__(self) -> "RelayStream":
        return self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.aclose()
        return False

    def __aiter__(self) -> "RelayStream":
        return self

    async def __anext__(self) -> RelayEvent:
        if self._delivered_terminal:
            raise StopAsyncIteration

        self.start()
        event = await self._events.get()
        if event.terminal:
            self._delivered_terminal = True
        return event

    # ------------------------------------------------------------------
    # Pump
    # ------------------------------------------------------------------

    def _on_pump_done(self, task: asyncio.Task) -> None:
        # Cancelled from outside (e.g. loop shutdown) without abort()
        if task.cancelled() and self._terminal is None:
            self.abort()

    async def _emit(self, event: RelayEvent) -> None:
        if self._terminal is not None:
            return
        if event.terminal:
            self._terminal = event
        await self._events.put(event)

    async def _fail(self, error: BaseException) -> None:
        if self._terminal is not None:
            return
        self._state = TransferState.ERRORED
        await self._emit(ErrorEvent(error))

    async def _run(self) -> None:
        set_log_context(transfer_id=self.transfer_id, stage="relay", download_url=self.url)
        session = self._session
        owns_session = session is None
        started = time.perf_counter()

        try:
            if owns_session:
                session = create_session(self.config)
            async with open_response(session, self.url, self.config) as response:
                await self._relay(response, started)

        except asyncio.CancelledError:
            logger.debug("Relay task cancelled", extra={"state": self._state.value})
            raise

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            error = NetworkError.from_exception(e, self.url)
            log_exception(
                logger,
                error,
                "Transfer failed",
                level=logging.WARNING,
                include_traceback=False,
                state=self._state.value,
            )
            await self._fail(error)

        except Exception as e:
            log_exception(
                logger,
                e,
                "Transfer failed",
                level=logging.WARNING,
                include_traceback=False,
                state=self._state.value,
            )
            await self._fail(e)

        finally:
            if owns_session and session is not None:
                await session.close()

    async def _relay(self, response: aiohttp.ClientResponse, started: float) -> None:
        self._state = TransferState.PEEKING
        status_code = response.status
        chunks = response.content.iter_chunked(self.config.chunk_size).__aiter__()

        source = chunks
        try:
            first_chunk = await chunks.__anext__()
        except StopAsyncIteration:
            first_chunk = b""
            source = None

        self._state = TransferState.DECIDING
        decision = evaluate(first_chunk, status_code, response.headers, self.options)

        if isinstance(decision, Reject):
            logger.warning(
                f"Transfer rejected: {decision.error}",
                extra={
                    "status_code": status_code,
                    "content_type": response.headers.get("Content-Type"),
                    "error_type": type(decision.error).__name__,
                    "error_category": classify_exception(decision.error).value,
                },
            )
            response.close()
            await self._fail(decision.error)
            return

        descriptor = decision.descriptor
        self.type = descriptor
        logger.debug(
            "Transfer accepted",
            extra={
                "status_code": status_code,
                "mime": descriptor.mime,
                "ext": descriptor.ext,
                "content_type": descriptor.content_type,
            },
        )
        await self._emit(TypeEvent(descriptor))

        self._state = TransferState.RELAYING
        reader = PrimedReader(first_chunk, source)
        sink: Optional[FanOutSink] = None
        try:
            if self.options.target is not None:
                sink = await open_target(self.options.target, descriptor.ext)

            async for chunk in reader:
                self.bytes_relayed += len(chunk)
                await self._emit(DataEvent(chunk))
                if sink is not None:
                    await sink.write(chunk)

            if sink is not None:
                await sink.finish()
        finally:
            if sink is not None and not sink.finished:
                await sink.discard()

        self._state = TransferState.COMPLETED
        logger.info(
            "Transfer complete",
            extra={
                "status_code": status_code,
                "mime": descriptor.mime,
                "content_type": descriptor.content_type,
                "bytes_downloaded": self.bytes_relayed,
                "duration_ms": (time.perf_counter() - started) * 1000,
            },
        )
        await self._emit(CompleteEvent(self.bytes_relayed))


def transfer(
    url: str,
    options: Optional[TransferOptions] = None,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    config: Optional[HttpClientConfig] = None,
) -> RelayStream:
    """
    Start a transfer of ``url`` and return its RelayStream.

    Must be called from a coroutine: the request is issued right away on
    the running event loop.

    Args:
        url: URL to download
        options: TransferOptions (status policy, filter, fan-out target)
        session: Shared aiohttp session; the relay creates and closes its
            own when omitted
        config: HttpClientConfig for timeouts, chunk size and channel capacity

    Returns:
        RelayStream yielding TypeEvent, DataEvent and one terminal event
    """
    return RelayStream(url, options, session=session, config=config).start()


__all__ = ["RelayStream", "transfer"]
