"""Abstract session transport for avapush.

A transport is the authenticated session a subscription runs against:
it knows the base URL, hands out a snapshot of the identity headers and
owns the pooled HTTP client the stream connections reuse.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any

import httpx

DEFAULT_BASE_URL = "https://www.avanza.se"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36"
)
SECURITY_TOKEN_COOKIE = "AZACSRF"


@dataclass(frozen=True)
class SessionHeaders:
    """Point-in-time snapshot of the session identity."""

    security_token: str = ""
    cookies: dict[str, str] = field(default_factory=dict)

    def as_headers(self) -> dict[str, str]:
        """Render the snapshot as request headers."""
        headers: dict[str, str] = {}
        if self.security_token:
            headers["X-SecurityToken"] = self.security_token
        pairs = [f"{name}={value}" for name, value in self.cookies.items() if name and value]
        if pairs:
            headers["Cookie"] = "; ".join(pairs)
        return headers


@dataclass
class SessionInfo:
    """The parts of the session info document avapush uses."""

    logged_in: bool = False
    push_subscription_id: str = ""
    push_base_url: str = ""
    security_token: str = ""
    user_id: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionInfo:
        user = data.get("user", {})
        return cls(
            logged_in=user.get("loggedIn", False),
            push_subscription_id=user.get("pushSubscriptionId", ""),
            push_base_url=user.get("pushBaseUrl", ""),
            security_token=user.get("securityToken", ""),
            user_id=user.get("id", ""),
        )


class Transport(abc.ABC):
    """Abstract base class for avapush session transports.

    Implementations must be safe to read from several subscriptions at
    once; subscriptions re-read the headers before every connection.
    """

    @property
    @abc.abstractmethod
    def base_url(self) -> str:
        """Base URL the stream endpoints are relative to."""

    @property
    def user_agent(self) -> str:
        return DEFAULT_USER_AGENT

    @abc.abstractmethod
    def current_headers(self) -> SessionHeaders:
        """Return a snapshot of the security token and cookies."""

    @abc.abstractmethod
    def raw_transport(self) -> httpx.AsyncClient:
        """Return the pooled client used for outbound stream connections.

        Stream requests pass their own timeout; the client's default
        request timeout is never applied to them.
        """

    @abc.abstractmethod
    async def session_info(self) -> SessionInfo:
        """Fetch the current session info document."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release the underlying connections."""
