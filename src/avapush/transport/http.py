"""HTTP session transport for avapush using httpx.

Keeps the session cookies and security token, paces plain requests and
shares its connection pool with the push stream connections.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import httpx

from avapush.errors import PushConnectionError, PushTimeoutError, http_status_error
from avapush.transport.base import (
    DEFAULT_BASE_URL,
    DEFAULT_USER_AGENT,
    SECURITY_TOKEN_COOKIE,
    SessionHeaders,
    SessionInfo,
    Transport,
)
from avapush.transport.rate_limiter import DEFAULT_RATE_LIMIT_INTERVAL, IntervalRateLimiter

logger = logging.getLogger("avapush.transport.http")

_SESSION_INFO_PATH = "/_api/authentication/session/info/session"


class HTTPSession(Transport):
    """Session transport using httpx.AsyncClient.

    Args:
        base_url: The site base URL. Default: "https://www.avanza.se".
        timeout: Timeout in seconds for plain requests. Default: 30.
        user_agent: User-Agent sent on every request.
        rate_limit_interval: Minimum seconds between plain requests;
            0 disables pacing. Default: 0.1.
        client: Optional pre-configured httpx.AsyncClient to use.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        rate_limit_interval: float = DEFAULT_RATE_LIMIT_INTERVAL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._rate_limiter = (
            IntervalRateLimiter(rate_limit_interval) if rate_limit_interval > 0 else None
        )

        self._lock = threading.Lock()
        self._cookies: dict[str, str] = {}
        self._security_token = ""

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def user_agent(self) -> str:
        return self._user_agent

    def current_headers(self) -> SessionHeaders:
        with self._lock:
            return SessionHeaders(
                security_token=self._security_token,
                cookies=dict(self._cookies),
            )

    def raw_transport(self) -> httpx.AsyncClient:
        return self._client

    def set_cookies(self, cookies: dict[str, str]) -> None:
        """Replace the session cookies.

        The AZACSRF cookie also becomes the security token.
        """
        with self._lock:
            self._cookies = dict(cookies)
            self._security_token = cookies.get(SECURITY_TOKEN_COOKIE, "")

    def _extract_cookies(self, response: httpx.Response) -> None:
        with self._lock:
            for name, value in response.cookies.items():
                if name and value:
                    self._cookies[name] = value
                    if name == SECURITY_TOKEN_COOKIE:
                        self._security_token = value

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": "en-US,en;q=0.8",
            "Cache-Control": "no-cache",
            "Content-Type": "application/json;charset=UTF-8",
            "Origin": self._base_url,
            "Pragma": "no-cache",
            "User-Agent": self._user_agent,
        }
        headers.update(self.current_headers().as_headers())
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
    ) -> dict[str, Any]:
        """Make a paced JSON request against the session and handle errors."""
        if self._rate_limiter is not None:
            await self._rate_limiter.wait()

        try:
            response = await self._client.request(
                method,
                f"{self._base_url}{path}",
                json=json,
                headers=self._headers(),
            )
        except httpx.TimeoutException as e:
            raise PushTimeoutError(f"Request to {self._base_url} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise PushConnectionError(
                f"Failed to connect to {self._base_url}: {e}"
            ) from e

        self._extract_cookies(response)

        if response.status_code >= 400:
            raise await http_status_error(response)
        if response.status_code == 204 or not response.content:
            return {}
        result: dict[str, Any] = response.json()
        return result

    async def session_info(self) -> SessionInfo:
        data = await self.request("GET", _SESSION_INFO_PATH)
        info = SessionInfo.from_dict(data)
        logger.debug("Session info: logged_in=%s", info.logged_in)
        return info

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
