"""
Fan-out destinations for relayed bytes.

A target is resolved once, after the type gate accepted the transfer:
    - FixedTarget: always the same destination
    - ExtensionTarget: factory called with the detected extension

A destination is either an object with a synchronous ``write`` (an open
binary file, ``io.BytesIO``) or a filesystem path the sink opens itself.
The sink closes only files it opened; caller objects are flushed and stay
open. Blocking calls run in a worker thread via ``asyncio.to_thread``.
"""

import asyncio
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol, Union, runtime_checkable

from sniffrelay.errors.exceptions import RelayError, SinkError
from sniffrelay.logging.utilities import log_exception

logger = logging.getLogger(__name__)


@runtime_checkable
class Destination(Protocol):
    """Writable binary destination. ``flush()`` is called on finish when present."""

    def write(self, data: bytes) -> Any:
        ...


DestinationLike = Union[Destination, str, os.PathLike]


@dataclass(frozen=True)
class FixedTarget:
    """Fan-out to a destination known up front."""

    destination: DestinationLike

    def resolve(self, ext: Optional[str]) -> DestinationLike:
        return self.destination


@dataclass(frozen=True)
class ExtensionTarget:
    """Fan-out to a destination chosen from the detected extension."""

    factory: Callable[[Optional[str]], DestinationLike]

    def resolve(self, ext: Optional[str]) -> DestinationLike:
        return self.factory(ext)


Target = Union[FixedTarget, ExtensionTarget]


def as_target(value: Any) -> Optional[Target]:
    """
    Normalize a ``target`` option into its tagged variant.

    Paths and destination objects become FixedTarget; any other callable
    becomes ExtensionTarget.
    """
    if value is None or isinstance(value, (FixedTarget, ExtensionTarget)):
        return value
    if isinstance(value, (str, os.PathLike)) or isinstance(value, Destination):
        return FixedTarget(value)
    if callable(value):
        return ExtensionTarget(value)
    raise TypeError(f"Unsupported target: {value!r}")


def _open_path(path: Path):
    path.parent.mkdir(parents=True, exist_ok=True)
    return open(path, "wb")


class FanOutSink:
    """
    Secondary destination receiving a copy of every relayed chunk.

    ``finish()`` closes a file the sink opened, or flushes a caller's
    destination (which stays open); its return is the finish signal that
    gates the transfer's completion.
    """

    def __init__(self, destination: Destination, path: Optional[Path] = None):
        self._destination = destination
        self.path = path
        self.bytes_written = 0
        self.finished = False

    @property
    def owns_destination(self) -> bool:
        return self.path is not None

    @classmethod
    async def open(cls, destination: DestinationLike) -> "FanOutSink":
        """Bind a sink to a resolved destination, opening paths for writing."""
        if isinstance(destination, (str, os.PathLike)):
            path = Path(destination)
            try:
                handle = await asyncio.to_thread(_open_path, path)
            except OSError as e:
                raise SinkError(
                    f"Cannot open destination {path}: {e}",
                    cause=e,
                    context={"destination_path": str(path)},
                ) from e
            return cls(handle, path=path)

        if not isinstance(destination, Destination):
            raise SinkError(f"Destination {destination!r} is not writable")

        return cls(destination)

    async def write(self, chunk: bytes) -> None:
        try:
            await asyncio.to_thread(self._destination.write, chunk)
        except (OSError, ValueError) as e:
            raise SinkError(f"Destination write failed: {e}", cause=e, context=self._context()) from e
        self.bytes_written += len(chunk)

    async def finish(self) -> None:
        if self.owns_destination:
            release = self._destination.close
        else:
            release = getattr(self._destination, "flush", None)

        try:
            if release is not None:
                await asyncio.to_thread(release)
        except (OSError, ValueError) as e:
            raise SinkError(f"Destination finish failed: {e}", cause=e, context=self._context()) from e
        finally:
            self.finished = True

    async def discard(self) -> None:
        """Release a destination after a failed or aborted transfer."""
        if self.finished:
            return
        self.finished = True
        if not self.owns_destination:
            return

        try:
            await asyncio.to_thread(self._destination.close)
        except OSError as e:
            log_exception(
                logger,
                e,
                "Failed to close destination after aborted transfer",
                level=logging.WARNING,
                include_traceback=False,
                destination_path=str(self.path),
            )

    def _context(self) -> dict:
        return {"destination_path": str(self.path)} if self.path else {}


async def open_target(target: Target, ext: Optional[str]) -> FanOutSink:
    """Resolve ``target`` for the detected extension and open it."""
    try:
        destination = target.resolve(ext)
    except RelayError:
        raise
    except Exception as e:
        raise SinkError(f"Target resolution failed: {e}", cause=e) from e

    sink = await FanOutSink.open(destination)
    logger.debug(
        "Fan-out destination bound",
        extra={"ext": ext, "destination_path": str(sink.path) if sink.path else None},
    )
    return sink


__all__ = [
    "Destination",
    "DestinationLike",
    "FixedTarget",
    "ExtensionTarget",
    "Target",
    "as_target",
    "FanOutSink",
    "open_target",
]
