"""avapush session transport layer."""

from avapush.transport.base import SessionHeaders, SessionInfo, Transport
from avapush.transport.http import HTTPSession
from avapush.transport.rate_limiter import IntervalRateLimiter

__all__ = ["Transport", "HTTPSession", "SessionHeaders", "SessionInfo", "IntervalRateLimiter"]
