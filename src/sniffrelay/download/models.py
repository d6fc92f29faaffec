"""
Data models for relay transfers.

Defines:
- TransferOptions: caller configuration for one transfer
- TransferState: lifecycle of the peek-and-splice relay
- Relay events: the ordered outcome channel of a RelayStream
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Union

from sniffrelay.detection.classifier import TypeDescriptor
from sniffrelay.download.sinks import Target, as_target

TypeFilter = Callable[[TypeDescriptor, bytes, int], Any]


@dataclass
class TransferOptions:
    """
    Options for a single transfer.

    Attributes:
        ignore_status: Skip rejection of non-2xx status codes (default: False)
        filter: Predicate ``(descriptor, first_chunk, status_code)``; returning
            exactly False rejects the transfer (default: accept everything)
        target: Optional fan-out destination. Accepts FixedTarget,
            ExtensionTarget, a path or writable object (fixed), or a
            callable of the detected extension.
    """

    ignore_status: bool = False
    filter: Optional[TypeFilter] = None
    target: Optional[Target] = field(default=None)

    def __post_init__(self) -> None:
        self.target = as_target(self.target)


class TransferState(Enum):
    PENDING = "pending"
    PEEKING = "peeking"
    DECIDING = "deciding"
    RELAYING = "relaying"
    COMPLETED = "completed"
    ERRORED = "errored"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (TransferState.COMPLETED, TransferState.ERRORED, TransferState.ABORTED)


@dataclass(frozen=True)
class TypeEvent:
    """Type of the body is known; precedes every DataEvent."""

    descriptor: TypeDescriptor
    terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class DataEvent:
    """Next chunk of the body, in order."""

    chunk: bytes
    terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class CompleteEvent:
    """Body fully relayed and the fan-out destination (if any) finished."""

    bytes_relayed: int = 0
    terminal: ClassVar[bool] = True


@dataclass(frozen=True)
class AbortEvent:
    """Transfer was cancelled."""

    terminal: ClassVar[bool] = True


@dataclass(frozen=True)
class ErrorEvent:
    """Transfer failed or was rejected."""

    error: BaseException
    terminal: ClassVar[bool] = True


RelayEvent = Union[TypeEvent, DataEvent, CompleteEvent, AbortEvent, ErrorEvent]


__all__ = [
    "TransferOptions",
    "TransferState",
    "TypeEvent",
    "DataEvent",
    "CompleteEvent",
    "AbortEvent",
    "ErrorEvent",
    "RelayEvent",
]
