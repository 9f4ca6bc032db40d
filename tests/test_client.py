"""Tests for the avapush Client."""

from __future__ import annotations

import asyncio

import pytest

import avapush
from avapush.errors import AuthenticationRequiredError
from avapush.streams import ORDER_DEPTH, ORDERS
from avapush.subscription import SubscriptionState
from tests.conftest import FAST_CONFIG, FakeServer, depth_event, sse_response, wait_until


class TestClientInit:
    def test_default_transport(self) -> None:
        client = avapush.Client("https://example.com/")
        assert isinstance(client.transport, avapush.HTTPSession)
        assert client.transport.base_url == "https://example.com"
        assert client._owns_transport is True

    def test_injected_transport(self) -> None:
        session = FakeServer().session()
        client = avapush.Client(transport=session)
        assert client.transport is session
        assert client._owns_transport is False


class TestPreflight:
    async def test_no_cookies(self) -> None:
        server = FakeServer()
        client = avapush.Client(transport=server.session(cookies={}))
        with pytest.raises(AuthenticationRequiredError, match="no authentication cookies"):
            client.subscribe_order_depth("5247")
        assert server.requests == []

    @pytest.mark.parametrize("missing", ["csid", "cstoken", "AZACSRF"])
    async def test_missing_essential_cookie(self, missing: str) -> None:
        cookies = {"csid": "a", "cstoken": "b", "AZACSRF": "c"}
        del cookies[missing]
        client = avapush.Client(transport=FakeServer().session(cookies=cookies))
        with pytest.raises(
            AuthenticationRequiredError,
            match=f"subscribe to order-depth: missing essential cookie: {missing}",
        ):
            client.subscribe_order_depth("5247")

    async def test_orders_checked_before_session_lookup(self) -> None:
        client = avapush.Client(transport=FakeServer().session(cookies={}))
        with pytest.raises(AuthenticationRequiredError, match="subscribe to orders"):
            await client.subscribe_orders()


class TestSubscribe:
    async def test_subscribe_order_depth(self) -> None:
        server = FakeServer(sse_response(depth_event("evt-1"), hold_open=True))
        async with avapush.Client(transport=server.session(), config=FAST_CONFIG) as client:
            sub = client.subscribe_order_depth("5247")
            assert sub.kind is ORDER_DEPTH
            assert sub.resource_key == "5247"
            event = await asyncio.wait_for(sub.events().get(), timeout=2.0)
            assert event.id == "evt-1"
        assert server.requests[0].url.path == "/_push/order-depth-web-push/5247"

    async def test_subscribe_orders_looks_up_push_id(self) -> None:
        server = FakeServer()
        session = server.session(push_subscription_id="push-42")
        async with avapush.Client(transport=session, config=FAST_CONFIG) as client:
            sub = await client.subscribe_orders()
            assert sub.kind is ORDERS
            assert sub.resource_key == "push-42"
            await wait_until(lambda: len(server.requests) == 1)
        assert server.requests[0].url.path == "/_push/orders-web-push/push-42"

    async def test_subscribe_orders_with_explicit_id(self) -> None:
        session = FakeServer().session(push_subscription_id="")
        async with avapush.Client(transport=session, config=FAST_CONFIG) as client:
            sub = await client.subscribe_orders("given-id")
            assert sub.resource_key == "given-id"

    async def test_subscribe_orders_without_push_id(self) -> None:
        session = FakeServer().session(push_subscription_id="")
        client = avapush.Client(transport=session)
        with pytest.raises(AuthenticationRequiredError, match="no push subscription id"):
            await client.subscribe_orders()

    async def test_per_subscription_config(self) -> None:
        config = avapush.SubscriptionConfig(event_buffer=7)
        async with avapush.Client(transport=FakeServer().session()) as client:
            sub = client.subscribe_order_depth("1", config=config)
            assert sub.events().maxsize == 7


class TestClose:
    async def test_close_stops_subscriptions(self) -> None:
        server = FakeServer()
        client = avapush.Client(transport=server.session(), config=FAST_CONFIG)
        first = client.subscribe_order_depth("1")
        second = client.subscribe_order_depth("2")
        await wait_until(lambda: len(server.requests) == 2)

        await asyncio.wait_for(client.close(), timeout=1.0)

        assert first.state == SubscriptionState.CLOSED
        assert second.state == SubscriptionState.CLOSED

    async def test_injected_transport_left_open(self) -> None:
        session = FakeServer().session()
        await avapush.Client(transport=session).close()
        assert session.closed is False

    async def test_owned_transport_closed(self) -> None:
        client = avapush.Client("http://localhost:8080")
        await client.close()
        assert client.transport.raw_transport().is_closed
