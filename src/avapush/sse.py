"""Server-Sent Events framing.

Turns the lines of a push stream into Event records. Example::

    parser = FrameParser(ORDER_DEPTH, on_retry=print)
    async for item in iter_frames(response.aiter_lines(), parser, cancelled):
        ...

Only four fields are recognized (``event``, ``data``, ``id``, ``retry``);
any other field and any line without a colon is ignored.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, AsyncIterator, Callable
from typing import Generic, TypeVar

from avapush.errors import PayloadDecodeError
from avapush.events import Event
from avapush.streams import StreamKind

T = TypeVar("T")

MAX_RETRY_MILLISECONDS = 2**63 - 1
MAX_RETRY_DIGITS = len(str(MAX_RETRY_MILLISECONDS))


class FrameParser(Generic[T]):
    """Incremental line parser for one stream connection.

    Args:
        kind: The stream kind; its tag selects which ``data`` values are
            decoded into a payload.
        on_retry: Called with the value in milliseconds as soon as a valid
            ``retry`` field is seen, whether or not the record is delivered.
    """

    def __init__(
        self,
        kind: StreamKind[T],
        *,
        on_retry: Callable[[int], None] | None = None,
    ) -> None:
        self._kind = kind
        self._on_retry = on_retry
        self._reset()

    def _reset(self) -> None:
        self._tag = ""
        self._payload: T | None = None
        self._id = ""
        self._retry: int | None = None
        self._malformed = False

    @property
    def pending(self) -> bool:
        """Whether a partial record has been seen since the last boundary."""
        return bool(self._tag or self._id or self._retry is not None or self._malformed)

    def feed(self, line: str) -> Event[T] | None:
        """Consume one line.

        Returns the completed Event when ``line`` is a record boundary and
        the pending record has a tag, otherwise None.

        Raises:
            PayloadDecodeError: The data of a recognized tag could not be
                decoded. The pending record is dropped at the next boundary
                and parsing can continue with the next line.
        """
        line = line.strip()
        if not line:
            event = None
            if self._tag and not self._malformed:
                event = Event(
                    tag=self._tag,
                    payload=self._payload,
                    id=self._id,
                    retry_hint=self._retry,
                )
            self._reset()
            return event

        name, sep, value = line.partition(":")
        if not sep:
            return None
        name = name.strip()
        value = value.strip()

        if name == "event":
            self._tag = value
        elif name == "data":
            if self._tag == self._kind.tag:
                try:
                    self._payload = self._kind.decode(value, self._id)
                except PayloadDecodeError:
                    self._malformed = True
                    raise
        elif name == "id":
            self._id = value
        elif name == "retry":
            # advisory; malformed values are ignored
            retry = _parse_retry(value)
            if retry is not None:
                self._retry = retry
                if self._on_retry is not None:
                    self._on_retry(retry)
        return None


def _parse_retry(value: str) -> int | None:
    """Return the ``retry`` value in milliseconds, or None if it is unusable.

    Values must be plain ASCII digits and fit a signed 64-bit integer.
    """
    if not (value.isascii() and value.isdigit()) or len(value) > MAX_RETRY_DIGITS:
        return None
    retry = int(value)
    if retry > MAX_RETRY_MILLISECONDS:
        return None
    return retry


async def iter_frames(
    lines: AsyncIterable[str],
    parser: FrameParser[T],
    cancelled: asyncio.Event,
) -> AsyncIterator[Event[T] | PayloadDecodeError]:
    """Yield completed events and payload decode errors from ``lines``.

    Stops as soon as ``cancelled`` is set, without flushing a partial
    record. A clean end of ``lines`` simply ends the iteration; read
    errors propagate to the caller.
    """
    async for line in lines:
        if cancelled.is_set():
            return
        try:
            event = parser.feed(line)
        except PayloadDecodeError as e:
            yield e
            continue
        if event is not None:
            yield event
