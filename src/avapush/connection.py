"""One push stream connection attempt.

Opens a long-lived GET against the stream endpoint, validates the
response and feeds its body through a FrameParser.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

import httpx

from avapush.errors import (
    DEFAULT_ERROR_BODY_LIMIT,
    PayloadDecodeError,
    PushConnectionError,
    PushError,
    PushTimeoutError,
    StreamReadError,
    http_status_error,
)
from avapush.events import Event
from avapush.sse import FrameParser, iter_frames
from avapush.streams import StreamKind
from avapush.transport.base import Transport

logger = logging.getLogger("avapush.connection")

T = TypeVar("T")

EVENT_STREAM_CONTENT_TYPE = "text/event-stream"

Deliver = Callable[[Event[T] | PayloadDecodeError], Awaitable[None]]


class ConnectionAttempt(Generic[T]):
    """Connects one resource of one stream kind.

    A ConnectionAttempt is reusable: every call to :meth:`run` is a fresh
    connection that re-reads the session identity.

    Args:
        transport: The session the stream runs against.
        kind: The stream kind.
        resource_key: Key appended (escaped) to the endpoint path.
        connect_timeout: Seconds allowed to establish the connection, or
            None for no limit. Reads never time out.
        error_body_limit: Maximum bytes of an error response body kept.
    """

    def __init__(
        self,
        transport: Transport,
        kind: StreamKind[T],
        resource_key: str,
        *,
        connect_timeout: float | None = None,
        error_body_limit: int = DEFAULT_ERROR_BODY_LIMIT,
    ) -> None:
        self._transport = transport
        self._kind = kind
        self._resource_key = resource_key
        self._timeout = httpx.Timeout(None, connect=connect_timeout)
        self._error_body_limit = error_body_limit

    @property
    def url(self) -> str:
        return f"{self._transport.base_url}{self._kind.path(self._resource_key)}"

    def headers(self, last_event_id: str = "") -> dict[str, str | bytes]:
        """Build the request headers for the next connection.

        ``Last-Event-ID`` is sent as UTF-8 bytes since the server may use
        ids outside ASCII.
        """
        headers: dict[str, str | bytes] = {
            "Accept": EVENT_STREAM_CONTENT_TYPE,
            "Accept-Language": "en-US,en;q=0.6",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
            "User-Agent": self._transport.user_agent,
            "aza-do-not-touch-session": "true",
        }
        if self._kind.referer is not None:
            headers["Referer"] = self._kind.referer(self._resource_key)
        if last_event_id:
            headers["Last-Event-ID"] = last_event_id.encode()
        headers.update(self._transport.current_headers().as_headers())
        return headers

    async def run(
        self,
        parser: FrameParser[T],
        deliver: Deliver[T],
        cancelled: asyncio.Event,
        *,
        last_event_id: str = "",
        on_open: Callable[[], None] | None = None,
    ) -> tuple[bool, PushError | None]:
        """Connect and stream until the connection ends.

        Returns:
            ``(established, error)``. ``established`` is True once the
            server accepted the request, however the stream ended later.
            ``error`` is None when an established stream closed cleanly.
        """
        client = self._transport.raw_transport()
        established = False
        try:
            request = client.build_request(
                "GET", self.url, headers=self.headers(last_event_id), timeout=self._timeout
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol, ValueError) as e:
            # ValueError covers header values that cannot be encoded
            return False, PushConnectionError(f"create request: {e}")

        logger.debug("Connecting to %s (last_event_id=%r)", request.url, last_event_id)
        try:
            response = await client.send(request, stream=True)
        except httpx.TimeoutException as e:
            return False, PushTimeoutError(f"connect timed out: {e}")
        except httpx.HTTPError as e:
            return False, PushConnectionError(f"request failed: {e}")

        try:
            if response.status_code != httpx.codes.OK:
                return False, await http_status_error(response, self._error_body_limit)

            established = True
            if on_open is not None:
                on_open()
            async for item in iter_frames(response.aiter_lines(), parser, cancelled):
                await deliver(item)
        except httpx.HTTPError as e:
            if established:
                return True, StreamReadError(f"stream error: {e}")
            return False, PushConnectionError(f"request failed: {e}")
        finally:
            await response.aclose()

        if parser.pending:
            logger.debug("Stream for %s ended inside a record; partial record dropped", self._resource_key)
        return True, None
