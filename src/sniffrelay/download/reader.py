"""
Forward-only byte reader primed with an already-read prefix.

The relay peeks at the first chunk of a response before deciding whether
to accept it. PrimedReader hands that chunk back out first and then keeps
reading from the underlying source, so downstream consumers see every
byte exactly once and in order.
"""

from collections.abc import AsyncIterator
from typing import Optional


class PrimedReader:
    """Async iterator yielding ``prefix`` and then the rest of ``source``."""

    def __init__(self, prefix: bytes, source: Optional[AsyncIterator[bytes]] = None):
        self._prefix: Optional[bytes] = prefix
        self._source = source

    def __aiter__(self) -> "PrimedReader":
        return self

    async def __anext__(self) -> bytes:
        if self._prefix is not None:
            prefix, self._prefix = self._prefix, None
            if prefix:
                return prefix

        if self._source is None:
            raise StopAsyncIteration

        try:
            return await self._source.__anext__()
        except StopAsyncIteration:
            self._source = None
            raise

    @property
    def primed(self) -> bool:
        """True until the prefix has been handed out."""
        return self._prefix is not None
