"""avapush Client -- the consumer-facing API.

Opens push stream subscriptions against an authenticated session.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Any, TypeVar

from avapush.errors import AuthenticationRequiredError
from avapush.market import OrderDepthData
from avapush.orders import OrderEventData
from avapush.streams import ORDER_DEPTH, ORDERS, StreamKind
from avapush.subscription import Subscription, SubscriptionConfig
from avapush.transport.base import DEFAULT_BASE_URL, DEFAULT_USER_AGENT, Transport
from avapush.transport.http import HTTPSession

logger = logging.getLogger("avapush.client")

T = TypeVar("T")

ESSENTIAL_COOKIES = ("csid", "cstoken", "AZACSRF")


class Client:
    """avapush client for push stream subscriptions.

    Usage::

        session = avapush.HTTPSession()
        session.set_cookies(cookies_from_login)

        async with avapush.Client(transport=session) as client:
            sub = client.subscribe_order_depth("5247")
            async for event in sub.events():
                print(event.payload.levels)

    Closing the client closes every subscription it opened, and the
    session when the client created it.
    """

    def __init__(
        self,
        url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        config: SubscriptionConfig | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._owns_transport = transport is None
        self._transport = transport or HTTPSession(url, timeout=timeout, user_agent=user_agent)
        self._config = config or SubscriptionConfig()
        self._subscriptions: weakref.WeakSet[Subscription[Any]] = weakref.WeakSet()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    @property
    def transport(self) -> Transport:
        return self._transport

    # --- Subscriptions ---

    def subscribe(
        self,
        kind: StreamKind[T],
        resource_key: str,
        *,
        config: SubscriptionConfig | None = None,
    ) -> Subscription[T]:
        """Start a subscription to ``resource_key`` of stream ``kind``.

        Returns immediately; the subscription connects in the background.
        Must be called from a running event loop.

        Raises:
            AuthenticationRequiredError: The session lacks the identity
                cookies; no background task is started.
        """
        self._require_identity(kind)
        subscription = Subscription(
            self._transport,
            kind,
            resource_key,
            config=config or self._config,
        )
        subscription.start()
        self._subscriptions.add(subscription)
        return subscription

    def subscribe_order_depth(
        self,
        orderbook_id: str,
        *,
        config: SubscriptionConfig | None = None,
    ) -> Subscription[OrderDepthData]:
        """Subscribe to order depth updates for one orderbook."""
        return self.subscribe(ORDER_DEPTH, orderbook_id, config=config)

    async def subscribe_orders(
        self,
        push_subscription_id: str | None = None,
        *,
        config: SubscriptionConfig | None = None,
    ) -> Subscription[OrderEventData]:
        """Subscribe to order lifecycle updates for the logged in user.

        The push subscription id is looked up in the session info when
        not given.
        """
        self._require_identity(ORDERS)
        if not push_subscription_id:
            info = await self._transport.session_info()
            if not info.push_subscription_id:
                raise AuthenticationRequiredError(
                    "subscribe to orders: session has no push subscription id"
                )
            push_subscription_id = info.push_subscription_id
        return self.subscribe(ORDERS, push_subscription_id, config=config)

    def _require_identity(self, kind: StreamKind[Any]) -> None:
        cookies = self._transport.current_headers().cookies
        if not cookies:
            raise AuthenticationRequiredError(
                f"subscribe to {kind.name}: no authentication cookies found"
                " - please authenticate first"
            )
        for name in ESSENTIAL_COOKIES:
            if name not in cookies:
                raise AuthenticationRequiredError(
                    f"subscribe to {kind.name}: missing essential cookie: {name}"
                    " - please authenticate first"
                )

    # --- Lifecycle ---

    async def close(self) -> None:
        """Close all subscriptions, then the owned session."""
        subscriptions = list(self._subscriptions)
        if subscriptions:
            logger.info("Closing %d subscriptions", len(subscriptions))
            await asyncio.gather(*(s.close() for s in subscriptions))
        if self._owns_transport:
            await self._transport.close()
