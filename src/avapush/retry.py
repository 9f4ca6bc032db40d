"""Reconnect backoff policy.

Deterministic exponential backoff between stream reconnect attempts.
The base interval is the subscription's current retry interval, which
the server may change at any time with a ``retry`` field.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_RETRY_INTERVAL = 3.0
DEFAULT_MAX_RETRY_INTERVAL = 30.0
DEFAULT_MAX_EXPONENT = 5


@dataclass(frozen=True)
class BackoffPolicy:
    """Reconnect backoff configuration.

    Attributes:
        max_interval: Cap on any computed wait, in seconds. Default: 30.0.
        max_exponent: Largest power of two applied to the base. Default: 5.
    """

    max_interval: float = DEFAULT_MAX_RETRY_INTERVAL
    max_exponent: int = DEFAULT_MAX_EXPONENT

    def compute_wait(self, base: float, attempt: int) -> float:
        """Compute the wait in seconds before the next connection attempt.

        Attempt 0 waits exactly ``base``. Later attempts wait
        ``base * 2 ** min(attempt, max_exponent)``, capped at max_interval.

        Examples:
            >>> BackoffPolicy().compute_wait(3.0, 0)
            3.0
            >>> BackoffPolicy().compute_wait(3.0, 2)
            12.0
            >>> BackoffPolicy().compute_wait(3.0, 1000)
            30.0
        """
        if attempt <= 0:
            return base
        wait = base * (2 ** min(attempt, self.max_exponent))
        return min(wait, self.max_interval)
