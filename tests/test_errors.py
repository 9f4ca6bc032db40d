"""Tests for avapush error types and failure classification."""

from __future__ import annotations

import httpx
import pytest

import avapush
from avapush.errors import HTTPStatusError, http_status_error, is_recoverable


class TestIsRecoverable:
    def test_no_error_is_recoverable(self) -> None:
        assert is_recoverable(None) is True

    @pytest.mark.parametrize("status", [408, 429])
    def test_timeout_and_rate_limit_are_recoverable(self, status: int) -> None:
        assert is_recoverable(HTTPStatusError(status)) is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 410, 499])
    def test_other_4xx_are_fatal(self, status: int) -> None:
        assert is_recoverable(HTTPStatusError(status)) is False

    @pytest.mark.parametrize("status", [500, 502, 503, 504, 599])
    def test_5xx_are_recoverable(self, status: int) -> None:
        assert is_recoverable(HTTPStatusError(status)) is True

    def test_network_errors_are_recoverable(self) -> None:
        assert is_recoverable(avapush.PushConnectionError("connection reset")) is True
        assert is_recoverable(avapush.PushTimeoutError("timed out")) is True
        assert is_recoverable(avapush.StreamReadError("stream error")) is True
        assert is_recoverable(OSError("dns failure")) is True

    def test_retryable_property(self) -> None:
        assert HTTPStatusError(503).retryable is True
        assert HTTPStatusError(401).retryable is False


class TestHTTPStatusError:
    def test_message_with_body(self) -> None:
        err = HTTPStatusError(403, "forbidden")
        assert err.status_code == 403
        assert err.body == "forbidden"
        assert str(err) == "HTTP 403: forbidden"

    def test_message_without_body(self) -> None:
        assert str(HTTPStatusError(500)) == "HTTP 500"

    async def test_body_is_bounded(self) -> None:
        response = httpx.Response(500, content=b"x" * 10_000)
        err = await http_status_error(response)
        assert err.status_code == 500
        assert len(err.body) == 1024

    async def test_custom_limit(self) -> None:
        response = httpx.Response(502, text="bad gateway, upstream unavailable")
        err = await http_status_error(response, limit=11)
        assert err.body == "bad gateway"

    async def test_short_body_kept_whole(self) -> None:
        err = await http_status_error(httpx.Response(404, text="not found"))
        assert err.body == "not found"


class TestPayloadDecodeError:
    def test_attributes(self) -> None:
        err = avapush.PayloadDecodeError("ORDER", "{bad", "evt-1", "Expecting value")
        assert err.tag == "ORDER"
        assert err.data == "{bad"
        assert err.event_id == "evt-1"
        assert "parse ORDER data" in str(err)
        assert "Expecting value" in str(err)


class TestErrorHierarchy:
    @pytest.mark.parametrize(
        "exc",
        [
            avapush.PushConnectionError("x"),
            avapush.PushTimeoutError("x"),
            avapush.HTTPStatusError(500),
            avapush.StreamReadError("x"),
            avapush.PayloadDecodeError("X", ""),
            avapush.SubscriptionCrashedError("x"),
            avapush.AuthenticationRequiredError("x"),
            avapush.ChannelClosed("x"),
        ],
    )
    def test_all_errors_are_push_errors(self, exc: Exception) -> None:
        assert isinstance(exc, avapush.PushError)

    def test_timeout_is_connection_error(self) -> None:
        assert isinstance(avapush.PushTimeoutError("t"), avapush.PushConnectionError)
