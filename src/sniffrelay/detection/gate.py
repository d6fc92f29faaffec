"""
Accept/reject decision for a peeked response.

The gate is a pure function of the first body chunk, the status code,
the headers and the transfer options. The relay turns a Reject into a
single error on its event channel.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from sniffrelay.detection.classifier import TypeDescriptor, classify
from sniffrelay.errors.exceptions import StatusRejection, TypeRejection

if TYPE_CHECKING:
    from sniffrelay.download.models import TransferOptions


@dataclass(frozen=True)
class Accept:
    descriptor: TypeDescriptor


@dataclass(frozen=True)
class Reject:
    error: BaseException
    descriptor: Optional[TypeDescriptor] = None


Decision = Union[Accept, Reject]


def is_success_status(status_code: int) -> bool:
    return 200 <= status_code < 300


def evaluate(
    first_chunk: bytes,
    status_code: int,
    headers: Optional[Mapping[str, str]],
    options: TransferOptions,
) -> Decision:
    """
    Decide whether a transfer may proceed.

    Order of checks:
        1. Status code outside [200, 300) rejects unless ``ignore_status``.
        2. The chunk is classified (header type as default, signature as override).
        3. ``options.filter`` returning exactly ``False`` rejects.

    A filter that raises rejects with the raised exception.

    Args:
        first_chunk: First body chunk (may be empty)
        status_code: HTTP status code of the response
        headers: Response headers
        options: Transfer options carrying ``ignore_status`` and ``filter``

    Returns:
        Accept with the resolved descriptor, or Reject with the error to surface
    """
    context = {"status_code": status_code}

    if not options.ignore_status and not is_success_status(status_code):
        return Reject(StatusRejection(status_code, context=context))

    descriptor = classify(first_chunk, headers)

    if options.filter is not None:
        try:
            verdict = options.filter(descriptor, first_chunk, status_code)
        except Exception as e:
            return Reject(e, descriptor)

        if verdict is False:
            context["content_type"] = descriptor.content_type
            return Reject(
                TypeRejection(descriptor.resolved, status_code, context=context),
                descriptor,
            )

    return Accept(descriptor)


__all__ = ["Accept", "Reject", "Decision", "evaluate", "is_success_status"]
