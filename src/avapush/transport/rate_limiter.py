"""Client-side pacing for plain session requests.

Enforces a minimum interval between consecutive requests. Stream
connections are long lived and are not paced.
"""

from __future__ import annotations

import asyncio
import logging
import time

logger = logging.getLogger("avapush.transport.rate_limiter")

DEFAULT_RATE_LIMIT_INTERVAL = 0.1


class IntervalRateLimiter:
    """Minimum-interval rate limiter.

    Args:
        interval: Minimum seconds between two requests. Default: 0.1.
    """

    def __init__(self, interval: float = DEFAULT_RATE_LIMIT_INTERVAL) -> None:
        self.interval = interval
        self._last_call: float | None = None

    def reserve(self) -> float:
        """Reserve the next slot and return how long to wait for it."""
        now = time.monotonic()
        if self._last_call is None or now - self._last_call >= self.interval:
            self._last_call = now
            return 0.0
        delay = self.interval - (now - self._last_call)
        self._last_call = now + delay
        return delay

    async def wait(self) -> None:
        """Sleep until the next request is allowed.

        Cancellation propagates immediately.
        """
        delay = self.reserve()
        if delay > 0:
            logger.debug("Rate limited, waiting %.3fs", delay)
            await asyncio.sleep(delay)
