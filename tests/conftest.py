"""Shared test helpers for the avapush test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from avapush.retry import BackoffPolicy
from avapush.subscription import SubscriptionConfig
from avapush.testing import OpenStream, StaticSession, format_event

# Fast timing so reconnect tests finish in milliseconds.
FAST_CONFIG = SubscriptionConfig(retry_interval=0.01, max_retry_interval=0.1)

DEPTH_DATA = {
    "orderbookId": "12345",
    "levels": [{"buyPrice": 101.5, "buyVolume": 200, "sellPrice": 102.0, "sellVolume": 150}],
    "marketMakerLevelInAsk": 0,
    "marketMakerLevelInBid": 0,
}

Responder = Callable[[httpx.Request], httpx.Response]


def sse_response(*records: str, hold_open: bool = False) -> Responder:
    """Respond with a 200 event stream containing ``records``."""

    def respond(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"Content-Type": "text/event-stream"},
            stream=OpenStream(records, hold_open=hold_open),
        )

    return respond


def status_response(status: int, body: str = "") -> Responder:
    def respond(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text=body)

    return respond


def depth_event(event_id: str, **kwargs: Any) -> str:
    return format_event(id=event_id, event="ORDER_DEPTH", data=DEPTH_DATA, **kwargs)


class FakeServer:
    """Scripted push endpoint backed by httpx.MockTransport.

    Each connection gets the next responder from the script. Once the
    script is exhausted connections are answered with an idle, open
    stream so the subscription stops reconnecting.
    """

    def __init__(self, *script: Responder) -> None:
        self.script = list(script)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = len(self.requests) - 1
        if index < len(self.script):
            return self.script[index](request)
        return sse_response(hold_open=True)(request)

    def session(self, **kwargs: Any) -> StaticSession:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self))
        return StaticSession(client, **kwargs)


@dataclass(frozen=True)
class RecordingBackoff(BackoffPolicy):
    """BackoffPolicy that remembers every (base, attempt) it was asked for."""

    calls: list[tuple[float, int]] = field(default_factory=list)

    def compute_wait(self, base: float, attempt: int) -> float:
        self.calls.append((base, attempt))
        return super().compute_wait(base, attempt)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` until it is true or fail after ``timeout``."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)
