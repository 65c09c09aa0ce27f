from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

from .errors import StreamClosedError

T = TypeVar("T")

_CLOSED = object()


class TokenChannel(Generic[T]):
    """Unbounded FIFO between one producer and one async consumer.

    Writes never block. After ``close()`` the consumer keeps receiving what was
    already queued, then iteration ends.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send_nowait(self, item: T) -> None:
        if self._closed:
            raise StreamClosedError("Channel is closed")
        self._queue.put_nowait(item)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> TokenChannel[T]:
        return self

    async def __anext__(self) -> T:
        item = await self._queue.get()
        if item is _CLOSED:
            # Put the marker back so every later (or concurrent) read ends too.
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item  # type: ignore[return-value]
