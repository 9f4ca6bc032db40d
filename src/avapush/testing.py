"""avapush testing helpers -- fake sessions and wire-format encoding.

Usage::

    import httpx
    from avapush.testing import OpenStream, StaticSession, format_event

    def handler(request: httpx.Request) -> httpx.Response:
        body = format_event(id="1", event="ORDER_DEPTH", data={"orderbookId": "5247"})
        return httpx.Response(200, stream=OpenStream([body]))

    session = StaticSession(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    client = avapush.Client(transport=session)
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Iterable
from typing import Any

import httpx

from avapush.transport.base import SessionHeaders, SessionInfo, Transport

TEST_BASE_URL = "http://testserver"

DEFAULT_TEST_COOKIES = {"csid": "test-csid", "cstoken": "test-cstoken", "AZACSRF": "test-token"}


def format_event(
    *,
    event: str | None = None,
    data: Any = None,
    id: str | None = None,
    retry: int | str | None = None,
    terminate: bool = True,
) -> str:
    """Encode one record in the push stream wire format.

    Non-string ``data`` is JSON encoded. With ``terminate=False`` the
    closing blank line is left off, producing a partial record.
    """
    lines: list[str] = []
    if id is not None:
        lines.append(f"id: {id}")
    if event is not None:
        lines.append(f"event: {event}")
    if data is not None:
        value = data if isinstance(data, str) else json.dumps(data)
        lines.append(f"data: {value}")
    if retry is not None:
        lines.append(f"retry: {retry}")
    text = "".join(f"{line}\n" for line in lines)
    return text + "\n" if terminate else text


class OpenStream(httpx.AsyncByteStream):
    """Response body that yields ``chunks`` and then stays open.

    The stream ends only when :meth:`finish` is called or the response is
    closed, like an idle push connection. With ``hold_open=False`` it ends
    right after the last chunk.
    """

    def __init__(self, chunks: Iterable[str | bytes] = (), *, hold_open: bool = True) -> None:
        self._chunks = [c.encode() if isinstance(c, str) else c for c in chunks]
        self._hold_open = hold_open
        self._finished = asyncio.Event()

    def finish(self) -> None:
        self._finished.set()

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
        if self._hold_open:
            await self._finished.wait()

    async def aclose(self) -> None:
        self._finished.set()


class StaticSession(Transport):
    """In-memory session around a caller-supplied httpx.AsyncClient.

    Args:
        client: Client the stream connections are made with, typically
            backed by ``httpx.MockTransport``.
        base_url: Base URL of the fake site.
        cookies: Session cookies; defaults to a full set of identity cookies.
        push_subscription_id: Value returned in the session info.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = TEST_BASE_URL,
        cookies: dict[str, str] | None = None,
        push_subscription_id: str = "test-push-id",
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self.cookies = dict(DEFAULT_TEST_COOKIES if cookies is None else cookies)
        self.push_subscription_id = push_subscription_id
        self.closed = False

    @property
    def base_url(self) -> str:
        return self._base_url

    def current_headers(self) -> SessionHeaders:
        return SessionHeaders(
            security_token=self.cookies.get("AZACSRF", ""),
            cookies=dict(self.cookies),
        )

    def raw_transport(self) -> httpx.AsyncClient:
        return self._client

    async def session_info(self) -> SessionInfo:
        return SessionInfo(
            logged_in=bool(self.cookies),
            push_subscription_id=self.push_subscription_id,
        )

    async def close(self) -> None:
        self.closed = True
        await self._client.aclose()
