"""Bounded delivery channels.

A subscription pushes events and errors into DeliveryChannels; consumers
only ever see the ReceiveChannel side. Closing a channel never discards
buffered items: readers drain what is left and then get ChannelClosed.
"""

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

from avapush.errors import ChannelClosed

T = TypeVar("T")


class ReceiveChannel(Generic[T]):
    """Consumer side of a bounded channel.

    Usage::

        async for event in subscription.events():
            handle(event)

        # or one item at a time
        try:
            err = await subscription.errors().get()
        except avapush.ChannelClosed:
            ...
    """

    def __init__(self, maxsize: int) -> None:
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize)
        self._closed = asyncio.Event()

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    @property
    def closed(self) -> bool:
        """Whether the sender has closed the channel (items may remain)."""
        return self._closed.is_set()

    def qsize(self) -> int:
        return self._queue.qsize()

    def get_nowait(self) -> T:
        """Return a buffered item without waiting.

        Raises:
            asyncio.QueueEmpty: Nothing is buffered but the channel is open.
            ChannelClosed: The channel is closed and drained.
        """
        if not self._queue.empty():
            return self._queue.get_nowait()
        if self._closed.is_set():
            raise ChannelClosed("channel is closed")
        raise asyncio.QueueEmpty

    async def get(self) -> T:
        """Wait for the next item.

        Raises:
            ChannelClosed: The channel is closed and drained.
        """
        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self._closed.is_set():
                raise ChannelClosed("channel is closed")

            getter = asyncio.ensure_future(self._queue.get())
            closer = asyncio.ensure_future(self._closed.wait())
            try:
                done, _ = await asyncio.wait(
                    {getter, closer}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                for task in (getter, closer):
                    if not task.done():
                        task.cancel()
            if getter in done:
                return getter.result()

    def __aiter__(self) -> ReceiveChannel[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.get()
        except ChannelClosed:
            raise StopAsyncIteration from None


class DeliveryChannel(ReceiveChannel[T]):
    """Sender side of a bounded channel, owned by one subscription worker."""

    async def send(self, item: T, cancelled: asyncio.Event) -> bool:
        """Put ``item``, waiting while the channel is full.

        The wait is abandoned as soon as ``cancelled`` is set, in which
        case the item is dropped.

        Returns:
            True if the item was enqueued, False if it was dropped.
        """
        if self._closed.is_set():
            raise RuntimeError("send on closed channel")
        if cancelled.is_set():
            return False
        try:
            self._queue.put_nowait(item)
            return True
        except asyncio.QueueFull:
            pass

        putter = asyncio.ensure_future(self._queue.put(item))
        stopper = asyncio.ensure_future(cancelled.wait())
        try:
            done, _ = await asyncio.wait(
                {putter, stopper}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (putter, stopper):
                if not task.done():
                    task.cancel()
        return putter in done

    def close(self) -> None:
        """Close the channel. Safe to call more than once."""
        self._closed.set()
