"""
Base API Client

Session lifecycle, throttling and retry policy for catalog clients.

Retry policy per attempt:
- 2xx: parsed JSON is returned (an error object in the body still raises)
- 429: sleep for Retry-After (or an exponential fallback) and retry
- other 4xx: raise immediately
- 5xx, timeouts, connection errors: exponential backoff with jitter, retry
"""

import asyncio
import random
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import aiohttp
import structlog

from .rate_limiter import UnifiedRateLimiter

logger = structlog.get_logger(__name__)

MAX_RETRY_AFTER = 60.0
MAX_BACKOFF = 30.0


class SpotifyAPIError(Exception):
    """A catalog request that failed for good; `status` is None for transport failures."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class _Retryable(Exception):
    """Internal signal: this attempt failed but another may succeed."""

    def __init__(self, error: SpotifyAPIError, delay: Optional[float] = None):
        super().__init__(str(error))
        self.error = error
        self.delay = delay


class BaseAPIClient(ABC):
    """
    Async HTTP client base; use as `async with client: ...`.

    Subclasses add authentication headers and API-specific error parsing.
    """

    def __init__(
        self,
        base_url: str,
        rate_limiter: UnifiedRateLimiter,
        timeout: int = 10,
        service_name: str = "api"
    ):
        self.base_url = base_url.rstrip("/")
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self.service_name = service_name
        self.session: Optional[aiohttp.ClientSession] = None
        self.logger = logger.bind(component="BaseAPIClient", service=service_name)

    async def __aenter__(self):
        self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()
            self.session = None

    async def _make_request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        retries: int = 3
    ) -> Dict[str, Any]:
        """
        Send a throttled request, retrying transient failures.

        Args:
            endpoint: Path relative to base_url
            params: Query string parameters
            method: HTTP method
            headers: Extra headers (auth is added by subclasses)
            json_body: JSON payload for write requests
            retries: Attempts allowed after the first

        Returns:
            Parsed JSON body, {} for empty responses

        Raises:
            RuntimeError: If used outside `async with`
            SpotifyAPIError: When the request fails for good
        """
        if self.session is None:
            raise RuntimeError(f"{self.service_name} client not initialized. Use async context manager.")

        url = f"{self.base_url}/{endpoint.lstrip('/')}" if endpoint else self.base_url
        request_headers = {"User-Agent": f"moodweather-{self.service_name}/1.0", **(headers or {})}

        last_error: Optional[SpotifyAPIError] = None
        for attempt in range(retries + 1):
            await self.rate_limiter.wait_if_needed()
            try:
                return await self._attempt(method, url, endpoint, params, json_body, request_headers)
            except _Retryable as retry:
                last_error = retry.error
                if attempt == retries:
                    break
                delay = retry.delay if retry.delay is not None else self._backoff_delay(attempt)
                self.logger.warning(
                    "Retrying catalog request",
                    endpoint=endpoint,
                    attempt=attempt + 1,
                    reason=str(retry.error),
                    delay=round(delay, 2)
                )
                await asyncio.sleep(delay)

        raise last_error or SpotifyAPIError(f"{self.service_name} request failed")

    async def _attempt(
        self,
        method: str,
        url: str,
        endpoint: str,
        params: Optional[Dict[str, Any]],
        json_body: Optional[Dict[str, Any]],
        headers: Dict[str, str]
    ) -> Dict[str, Any]:
        """One round trip; raises _Retryable for failures worth another try."""
        try:
            async with self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers
            ) as response:
                status = response.status

                if 200 <= status < 300:
                    data = await self._parse_response(response)
                    error_info = self._extract_api_error(data)
                    if error_info:
                        raise SpotifyAPIError(f"{self.service_name} API error: {error_info}", status=status)
                    return data

                if status == 429:
                    raise _Retryable(
                        SpotifyAPIError(f"{self.service_name} rate limited", status=429),
                        delay=self._retry_after(response)
                    )

                body = await response.text()
                self.logger.warning("Catalog HTTP error", status=status, endpoint=endpoint, body=body[:200])
                error = SpotifyAPIError(f"{self.service_name} API Error: {status}", status=status)
                if status >= 500:
                    raise _Retryable(error)
                raise error

        except asyncio.TimeoutError:
            raise _Retryable(SpotifyAPIError(f"{self.service_name} request timed out after {self.timeout}s"))
        except aiohttp.ClientError as e:
            raise _Retryable(SpotifyAPIError(f"{self.service_name} client error: {e}"))

    async def _parse_response(self, response: aiohttp.ClientResponse) -> Dict[str, Any]:
        if response.status == 204:
            return {}
        try:
            data = await response.json(content_type=None)
        except ValueError:
            raise SpotifyAPIError(f"{self.service_name} returned invalid JSON", status=response.status)
        return data or {}

    @abstractmethod
    def _extract_api_error(self, data: Dict[str, Any]) -> Optional[str]:
        """Error message embedded in a successful response body, if any."""

    @staticmethod
    def _retry_after(response: aiohttp.ClientResponse) -> Optional[float]:
        value = response.headers.get("Retry-After")
        try:
            return min(float(value), MAX_RETRY_AFTER) if value else None
        except ValueError:
            return None

    @staticmethod
    def _backoff_delay(attempt: int, base_delay: float = 0.5) -> float:
        delay = base_delay * (2 ** attempt)
        return min(delay * (1 + random.uniform(0.1, 0.3)), MAX_BACKOFF)
