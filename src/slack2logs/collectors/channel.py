"""Closable async channel connecting collectors to their consumers.

A Channel carries items from one or more producer tasks to consumer tasks.
``send`` waits while the channel holds ``capacity`` undelivered items,
``receive`` waits for an item, and ``close`` marks the end of the stream.
Consumers still receive every item sent before the close; afterwards
``receive`` raises ChannelClosedError and ``async for`` stops.
"""

import asyncio
from typing import Generic, TypeVar

from slack2logs.errors import ChannelClosedError

T = TypeVar("T")

_CLOSED = object()


class Channel(Generic[T]):
    """Bounded FIFO with an explicit, single close.

    Example:
        ```python
        records: Channel[LogRecord] = Channel(capacity=1)

        async def produce() -> None:
            try:
                await records.send(record)
            finally:
                records.close()

        async for record in records:
            await deliver(record)
        ```
    """

    def __init__(self, capacity: int = 1, name: str = "channel") -> None:
        if capacity < 1:
            raise ValueError("channel capacity must be at least 1")
        self._name = name
        self._items: asyncio.Queue[object] = asyncio.Queue()
        self._slots = asyncio.Semaphore(capacity)
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._closed

    async def send(self, item: T) -> None:
        """Send an item, waiting while the channel is full.

        Raises:
            ChannelClosedError: If the channel is closed.
        """
        if self._closed:
            raise ChannelClosedError(f"send on closed channel {self._name}")
        await self._slots.acquire()
        if self._closed:
            self._slots.release()
            raise ChannelClosedError(f"send on closed channel {self._name}")
        self._items.put_nowait(item)

    def close(self) -> None:
        """Close the channel. Must be called exactly once.

        Raises:
            ChannelClosedError: If the channel is already closed.
        """
        if self._closed:
            raise ChannelClosedError(f"close of closed channel {self._name}")
        self._closed = True
        self._items.put_nowait(_CLOSED)

    async def receive(self) -> T:
        """Receive the next item, waiting until one is available.

        Raises:
            ChannelClosedError: If the channel is closed and drained.
        """
        item = await self._items.get()
        if item is _CLOSED:
            # leave the marker for any other consumer
            self._items.put_nowait(_CLOSED)
            raise ChannelClosedError(f"receive from closed channel {self._name}")
        self._slots.release()
        return item  # type: ignore[return-value]

    def __aiter__(self) -> "Channel[T]":
        return self

    async def __anext__(self) -> T:
        try:
            return await self.receive()
        except ChannelClosedError:
            raise StopAsyncIteration from None

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"{self.__class__.__name__}(name={self._name!r}, {state})"
