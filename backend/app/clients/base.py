"""Shared HTTP plumbing for provider clients."""

import asyncio
import logging
from typing import Any

import httpx

from core.exceptions import MalformedHistoricalData, ProviderRateLimited, ProviderUnavailable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Simple rate limiter for API calls."""

    def __init__(self, calls_per_minute: int = 1200):
        self.calls_per_minute = calls_per_minute
        self.interval = 60.0 / calls_per_minute
        self.last_call: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait if necessary to respect rate limit."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            if self.last_call is not None:
                wait_time = self.last_call + self.interval - loop.time()
                if wait_time > 0:
                    await asyncio.sleep(wait_time)
            self.last_call = loop.time()


class RestClient:
    """Base for provider REST clients.

    Maps transport failures onto the engine's provider errors:
    429 -> ProviderRateLimited; timeouts, connection errors and other
    non-2xx -> ProviderUnavailable; non-JSON bodies -> MalformedHistoricalData.
    """

    BASE_URL = ""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout
        self.rate_limiter = rate_limiter
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, endpoint: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Make an API request with rate limiting."""
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()
        client = await self._get_client()

        try:
            response = await client.request(method, endpoint, params=params)
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(f"{method} {endpoint} timed out") from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"{method} {endpoint} failed: {e}") from e

        if response.status_code == 429:
            raise ProviderRateLimited(f"{method} {endpoint} rate limited")
        if response.status_code != 200:
            raise ProviderUnavailable(
                f"{method} {endpoint} returned status {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedHistoricalData(f"{endpoint} returned a non-JSON body") from e
