"""avapush -- reconnecting push stream subscriptions.

Subscribes to the server-sent event streams of an authenticated web
session and keeps them alive: dropped connections are resumed from the
last delivered event, server pacing is honored, and only failures that
cannot heal stop a subscription.

Usage::

    import avapush

    session = avapush.HTTPSession()
    session.set_cookies(cookies_from_login)

    async with avapush.Client(transport=session) as client:
        sub = client.subscribe_order_depth("5247")
        async for event in sub.events():
            print(event.id, event.payload)
"""

from avapush.channels import ReceiveChannel
from avapush.client import Client
from avapush.errors import (
    AuthenticationRequiredError,
    ChannelClosed,
    HTTPStatusError,
    PayloadDecodeError,
    PushConnectionError,
    PushError,
    PushTimeoutError,
    StreamReadError,
    SubscriptionCrashedError,
    is_recoverable,
)
from avapush.events import Event, EventType
from avapush.market import OrderDepthData, OrderDepthLevel
from avapush.orders import (
    OrderAction,
    OrderEventData,
    OrderEventOrderbook,
    OrderEventState,
    OrderStateName,
)
from avapush.retry import BackoffPolicy
from avapush.streams import ORDER_DEPTH, ORDERS, StreamKind
from avapush.subscription import Subscription, SubscriptionConfig, SubscriptionState
from avapush.transport import HTTPSession, SessionHeaders, SessionInfo, Transport

__version__ = "0.1.0"

__all__ = [
    # Client
    "Client",
    # Subscriptions
    "Subscription",
    "SubscriptionConfig",
    "SubscriptionState",
    "ReceiveChannel",
    "BackoffPolicy",
    # Streams
    "StreamKind",
    "ORDER_DEPTH",
    "ORDERS",
    # Events
    "Event",
    "EventType",
    "OrderDepthData",
    "OrderDepthLevel",
    "OrderAction",
    "OrderEventData",
    "OrderEventOrderbook",
    "OrderEventState",
    "OrderStateName",
    # Transport
    "Transport",
    "HTTPSession",
    "SessionHeaders",
    "SessionInfo",
    # Errors
    "PushError",
    "PushConnectionError",
    "PushTimeoutError",
    "HTTPStatusError",
    "StreamReadError",
    "PayloadDecodeError",
    "SubscriptionCrashedError",
    "AuthenticationRequiredError",
    "ChannelClosed",
    "is_recoverable",
]
