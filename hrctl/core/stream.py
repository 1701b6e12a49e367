"""Single-consumer async stream of notification payloads."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

_END = object()


class NotificationStream:
    """Adapts a push-style notification callback to ``async for`` consumption.

    The transport calls :meth:`push` for every notification and :meth:`close`
    when the peripheral goes away. Payloads are delivered in arrival order.
    The stream may be iterated once and cannot be restarted.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._consumed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, payload: bytes | bytearray) -> None:
        if self._closed:
            return
        self._queue.put_nowait(bytes(payload))

    def close(self, *, discard_pending: bool = False) -> None:
        if self._closed:
            return
        self._closed = True
        if discard_pending:
            while not self._queue.empty():
                self._queue.get_nowait()
        self._queue.put_nowait(_END)

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise RuntimeError("Notification stream can only be consumed once")
        self._consumed = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            yield item  # type: ignore[misc]
