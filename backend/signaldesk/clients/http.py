"""Shared HTTP plumbing for REST market data providers."""

import asyncio
import logging
from typing import Any

import httpx

from signaldesk.errors import (
    MalformedPayloadError,
    MarketDataError,
    ProviderUnavailableError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

_RATE_LIMIT_MARKERS = (
    "rate limit",
    "429",
    "too many requests",
    "quota",
    "call frequency",
)


def is_rate_limit_message(message: str | None) -> bool:
    """Check whether an upstream error text describes a rate limit or quota."""
    if not message:
        return False
    text = message.lower()
    return any(marker in text for marker in _RATE_LIMIT_MARKERS)


class RateLimiter:
    """Enforce a minimum spacing between upstream calls."""

    def __init__(self, min_interval: float = 0.0):
        self.interval = min_interval
        self.last_call: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait if necessary to respect the spacing."""
        if self.interval <= 0:
            return
        async with self._lock:
            loop = asyncio.get_running_loop()
            if self.last_call is not None:
                wait_time = self.last_call + self.interval - loop.time()
                if wait_time > 0:
                    await asyncio.sleep(wait_time)
            self.last_call = loop.time()


class HttpProvider:
    """Base class for providers backed by a JSON REST API.

    Subclasses set ``BASE_URL`` and ``MIN_REQUEST_INTERVAL``, and override
    ``_rate_limit_reason`` / ``_check_payload`` to classify
    provider-specific error payloads.
    """

    name = "http"
    BASE_URL = ""
    # Default spacing between upstream calls, in seconds
    MIN_REQUEST_INTERVAL = 0.0

    def __init__(
        self,
        timeout: float = 10.0,
        min_request_interval: float | None = None,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        if min_request_interval is None:
            min_request_interval = self.MIN_REQUEST_INTERVAL
        self.rate_limiter = RateLimiter(min_request_interval)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
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

    def _rate_limit_reason(self, data: Any) -> str | None:
        """Return a reason if a 200 response is actually a rate-limit notice."""
        return None

    def _check_payload(self, data: Any) -> None:
        """Raise MalformedPayloadError for provider error payloads."""

    async def _request(
        self, method: str, endpoint: str, params: dict[str, Any] | None = None
    ) -> Any:
        """
        Make an API request, retrying rate-limit responses with exponential backoff.

        Returns:
            Decoded JSON payload

        Raises:
            RateLimitError: Still rate limited after ``max_retries`` retries
            ProviderUnavailableError: Timeout, connection failure or HTTP error
            MalformedPayloadError: Body is not JSON or is a provider error payload
        """
        for attempt in range(self.max_retries + 1):
            await self.rate_limiter.acquire()
            client = await self._get_client()

            try:
                response = await client.request(method, endpoint, params=params)
            except httpx.TimeoutException as e:
                raise ProviderUnavailableError(f"{self.name}: request timed out") from e
            except httpx.TransportError as e:
                raise ProviderUnavailableError(f"{self.name}: {e}") from e

            if response.status_code == 429:
                reason = "HTTP 429 Too Many Requests"
            elif response.is_error:
                raise ProviderUnavailableError(
                    f"{self.name}: API request failed: {response.status_code} "
                    f"{response.reason_phrase}"
                )
            else:
                try:
                    data = response.json()
                except ValueError as e:
                    raise MalformedPayloadError(f"{self.name}: response is not JSON") from e

                reason = self._rate_limit_reason(data)
                if reason is None:
                    self._check_payload(data)
                    return data

            if attempt >= self.max_retries:
                raise RateLimitError(
                    f"{self.name}: rate limited after {attempt + 1} attempts ({reason})"
                )

            delay = self.retry_backoff * (2 ** attempt)
            logger.warning(
                "%s rate limited (%s), retry %d/%d in %.1fs",
                self.name, reason, attempt + 1, self.max_retries, delay,
            )
            await asyncio.sleep(delay)

        # Unreachable: the loop either returns or raises
        raise MarketDataError(f"{self.name}: request failed")
