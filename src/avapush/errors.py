"""avapush error types.

Maps connection, HTTP status and stream failures to Python exceptions.
"""

from __future__ import annotations

import contextlib

import httpx

DEFAULT_ERROR_BODY_LIMIT = 1024


class PushError(Exception):
    """Base exception for all avapush errors."""


class PushConnectionError(PushError):
    """The stream request could not be built or dispatched."""


class PushTimeoutError(PushConnectionError):
    """Connecting to the push endpoint timed out."""


class HTTPStatusError(PushError):
    """The push endpoint answered with a non-success status.

    Attributes:
        status_code: HTTP status code from the server.
        body: The start of the response body, never longer than the
            configured error body limit.
    """

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        if body:
            super().__init__(f"HTTP {status_code}: {body}")
        else:
            super().__init__(f"HTTP {status_code}")

    @property
    def retryable(self) -> bool:
        return is_recoverable(self)


class StreamReadError(PushError):
    """Reading an established stream failed."""


class PayloadDecodeError(PushError):
    """The data field of a recognized event could not be decoded.

    Attributes:
        tag: The event tag the data belonged to.
        data: The raw data value.
        event_id: The id of the record, if it was seen before the data line.
    """

    def __init__(self, tag: str, data: str, event_id: str = "", cause: str = "") -> None:
        self.tag = tag
        self.data = data
        self.event_id = event_id
        message = f"parse {tag} data"
        if cause:
            message = f"{message}: {cause}"
        super().__init__(message)


class SubscriptionCrashedError(PushError):
    """An unexpected exception stopped a subscription worker."""


class AuthenticationRequiredError(PushError):
    """The session lacks the identity cookies a subscription needs."""


class ChannelClosed(PushError):
    """The delivery channel is closed and has no more items."""


async def http_status_error(
    response: httpx.Response,
    limit: int = DEFAULT_ERROR_BODY_LIMIT,
) -> HTTPStatusError:
    """Build an HTTPStatusError from a streaming response.

    At most ``limit`` bytes of the body are read.
    """
    buf = bytearray()
    with contextlib.suppress(httpx.HTTPError):
        async for chunk in response.aiter_bytes():
            buf.extend(chunk[: limit - len(buf)])
            if len(buf) >= limit:
                break
    body = bytes(buf).decode(response.encoding or "utf-8", errors="replace")
    return HTTPStatusError(response.status_code, body)


def is_recoverable(exc: BaseException | None) -> bool:
    """Report whether a subscription should reconnect after ``exc``.

    No error (a clean end of stream) is recoverable. Of the HTTP status
    errors only 4xx other than 408 and 429 are fatal; every other failure
    is assumed to be transient.
    """
    if exc is None:
        return True

    if isinstance(exc, HTTPStatusError):
        status = exc.status_code
        if status in (408, 429):
            return True
        if 400 <= status < 500:
            return False
        return True

    return True
