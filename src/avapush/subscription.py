"""Reconnecting push stream subscriptions.

A Subscription runs one background task that connects to a stream,
delivers its events, and reconnects with backoff whenever the
connection drops, resuming from the last delivered event id. It stops
on close() or on a fatal failure (a 4xx other than 408/429).

Usage::

    sub = client.subscribe_order_depth("5247")
    async with sub:
        async for event in sub.events():
            print(event.id, event.payload)
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from avapush.channels import DeliveryChannel, ReceiveChannel
from avapush.connection import ConnectionAttempt
from avapush.errors import (
    DEFAULT_ERROR_BODY_LIMIT,
    PayloadDecodeError,
    PushError,
    SubscriptionCrashedError,
    is_recoverable,
)
from avapush.events import Event
from avapush.retry import (
    DEFAULT_MAX_EXPONENT,
    DEFAULT_MAX_RETRY_INTERVAL,
    DEFAULT_RETRY_INTERVAL,
    BackoffPolicy,
)
from avapush.sse import FrameParser
from avapush.streams import StreamKind
from avapush.transport.base import Transport

logger = logging.getLogger("avapush.subscription")

T = TypeVar("T")


class SubscriptionState(enum.StrEnum):
    """Subscription lifecycle states."""

    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    BACKOFF = "backoff"
    CLOSED = "closed"


@dataclass(frozen=True)
class SubscriptionConfig:
    """Timing and buffering for a subscription.

    Attributes:
        retry_interval: Initial base reconnect interval in seconds; the
            server may replace it with a ``retry`` field. Default: 3.0.
        max_retry_interval: Cap on the reconnect wait. Default: 30.0.
        max_backoff_exponent: Largest power of two applied. Default: 5.
        event_buffer: Capacity of the event channel. Default: 100.
        error_buffer: Capacity of the error channel. Default: 10.
        error_body_limit: Bytes of an error response body kept. Default: 1024.
        connect_timeout: Seconds to establish a connection, None for no
            limit. Default: None.
    """

    retry_interval: float = DEFAULT_RETRY_INTERVAL
    max_retry_interval: float = DEFAULT_MAX_RETRY_INTERVAL
    max_backoff_exponent: int = DEFAULT_MAX_EXPONENT
    event_buffer: int = 100
    error_buffer: int = 10
    error_body_limit: int = DEFAULT_ERROR_BODY_LIMIT
    connect_timeout: float | None = None

    @property
    def backoff(self) -> BackoffPolicy:
        return BackoffPolicy(
            max_interval=self.max_retry_interval,
            max_exponent=self.max_backoff_exponent,
        )


class Subscription(Generic[T]):
    """A live, self-healing subscription to one push stream.

    Only the background task writes to the channels and to the resume
    state (last event id, retry interval, attempt count).

    Args:
        transport: The session the stream runs against.
        kind: The stream kind.
        resource_key: Key identifying the stream resource.
        config: Timing and buffering; defaults to ``SubscriptionConfig()``.
        backoff: Reconnect backoff policy; defaults to ``config.backoff``.
    """

    def __init__(
        self,
        transport: Transport,
        kind: StreamKind[T],
        resource_key: str,
        *,
        config: SubscriptionConfig | None = None,
        backoff: BackoffPolicy | None = None,
    ) -> None:
        self._config = config or SubscriptionConfig()
        self._kind = kind
        self._resource_key = resource_key
        self._backoff = backoff if backoff is not None else self._config.backoff
        self._connection = ConnectionAttempt(
            transport,
            kind,
            resource_key,
            connect_timeout=self._config.connect_timeout,
            error_body_limit=self._config.error_body_limit,
        )

        self._events: DeliveryChannel[Event[T]] = DeliveryChannel(self._config.event_buffer)
        self._errors: DeliveryChannel[PushError] = DeliveryChannel(self._config.error_buffer)
        self._cancelled = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

        # Resume state
        self._state = SubscriptionState.IDLE
        self._last_event_id = ""
        self._retry_interval = self._config.retry_interval
        self._attempt_count = 0

    def __repr__(self) -> str:
        return (
            f"<Subscription {self._kind.name}/{self._resource_key} "
            f"state={self._state.value}>"
        )

    @property
    def kind(self) -> StreamKind[T]:
        return self._kind

    @property
    def resource_key(self) -> str:
        return self._resource_key

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def last_event_id(self) -> str:
        return self._last_event_id

    @property
    def retry_interval(self) -> float:
        """Current base reconnect interval in seconds."""
        return self._retry_interval

    @property
    def attempt_count(self) -> int:
        return self._attempt_count

    def events(self) -> ReceiveChannel[Event[T]]:
        return self._events

    def errors(self) -> ReceiveChannel[PushError]:
        return self._errors

    # --- Lifecycle ---

    def start(self) -> None:
        """Start the background task. Requires a running event loop."""
        if self._task is not None or self._state != SubscriptionState.IDLE:
            raise RuntimeError(f"{self!r} was already started")
        self._state = SubscriptionState.CONNECTING
        self._task = asyncio.get_running_loop().create_task(
            self._run(),
            name=f"avapush-{self._kind.name}-{self._resource_key}",
        )

    async def close(self) -> None:
        """Stop the subscription.

        Returns once the background task has exited and both channels are
        closed. Safe to call more than once.
        """
        self._cancelled.set()
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
        self._finish()

    async def wait_closed(self) -> None:
        """Wait until the subscription stops on its own or is closed."""
        if self._task is not None:
            await asyncio.wait({self._task})

    async def __aenter__(self) -> Subscription[T]:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    def __aiter__(self) -> ReceiveChannel[Event[T]]:
        return self._events

    def _finish(self) -> None:
        self._state = SubscriptionState.CLOSED
        self._events.close()
        self._errors.close()

    # --- Worker ---

    async def _run(self) -> None:
        logger.info("Subscription %s/%s starting", self._kind.name, self._resource_key)
        try:
            await self._reconnect_loop()
        except Exception as exc:
            logger.exception("Subscription %s/%s crashed", self._kind.name, self._resource_key)
            err = SubscriptionCrashedError(f"subscription panic: {exc!r}")
            err.__cause__ = exc
            await self._errors.send(err, self._cancelled)
        finally:
            self._finish()
            logger.info("Subscription %s/%s stopped", self._kind.name, self._resource_key)

    async def _reconnect_loop(self) -> None:
        while not self._cancelled.is_set():
            self._state = SubscriptionState.CONNECTING
            parser = FrameParser(self._kind, on_retry=self._set_retry_interval)
            established, err = await self._connection.run(
                parser,
                self._deliver,
                self._cancelled,
                last_event_id=self._last_event_id,
                on_open=self._on_open,
            )

            if self._cancelled.is_set():
                return
            if err is not None and not is_recoverable(err):
                logger.error(
                    "Subscription %s/%s stopped on fatal error: %s",
                    self._kind.name,
                    self._resource_key,
                    err,
                )
                await self._errors.send(err, self._cancelled)
                return
            if established:
                self._attempt_count = 0

            wait = self._backoff.compute_wait(self._retry_interval, self._attempt_count)
            self._attempt_count += 1
            if err is None:
                logger.debug(
                    "Stream %s/%s closed, reconnecting in %.3fs",
                    self._kind.name,
                    self._resource_key,
                    wait,
                )
            else:
                logger.warning(
                    "Stream %s/%s failed (%s), reconnecting in %.3fs",
                    self._kind.name,
                    self._resource_key,
                    err,
                    wait,
                )

            self._state = SubscriptionState.BACKOFF
            try:
                await asyncio.wait_for(self._cancelled.wait(), timeout=wait)
            except asyncio.TimeoutError:
                continue
            return

    def _on_open(self) -> None:
        self._state = SubscriptionState.STREAMING

    def _set_retry_interval(self, milliseconds: int) -> None:
        self._retry_interval = milliseconds / 1000

    async def _deliver(self, item: Event[T] | PayloadDecodeError) -> None:
        if isinstance(item, PayloadDecodeError):
            logger.warning("Dropping malformed %s event: %s", item.tag, item)
            await self._errors.send(item, self._cancelled)
            return
        if await self._events.send(item, self._cancelled) and item.id:
            self._last_event_id = item.id
