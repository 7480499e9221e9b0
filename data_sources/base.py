"""
Base API Source - Shared HTTP plumbing for the network data clients.

Subclasses get:
- A lazily created aiohttp session (or an injected one)
- JSON requests with HTTP status mapping to FetchError/RateLimitError
- Retry with exponential backoff on transport errors, 5xx and 429
- Async context manager support
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from data_sources.exceptions import FetchError, RateLimitError


logger = logging.getLogger(__name__)


class BaseApiSource(ABC):
    """
    Abstract base class for JSON-over-HTTP data sources.

    Retrying is a client concern: callers see either a parsed payload
    or the last error after retries are exhausted.
    """

    DEFAULT_TIMEOUT = 30.0
    MAX_RETRIES = 3
    RETRY_BACKOFF_BASE = 2.0

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._session = session
        self._owns_session = session is None

        self._request_count = 0
        self._error_count = 0

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this data source."""
        pass

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_json(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """GET base_url + path and return the decoded JSON body, with retries."""
        url = f"{self._base_url}/{path.lstrip('/')}"
        last_error: Optional[FetchError] = None

        for attempt in range(self._max_retries):
            try:
                return await self._make_request("GET", url, params=params)

            except RateLimitError as e:
                last_error = e
                wait_time = e.retry_after_seconds or self.RETRY_BACKOFF_BASE ** attempt
                logger.warning(
                    f"[{self.name}] Rate limited, waiting {wait_time}s "
                    f"(attempt {attempt + 1}/{self._max_retries})"
                )

            except FetchError as e:
                if not e.is_retryable():
                    raise
                last_error = e
                wait_time = self.RETRY_BACKOFF_BASE ** attempt
                logger.warning(
                    f"[{self.name}] {e.message}, retrying in {wait_time}s "
                    f"(attempt {attempt + 1}/{self._max_retries})"
                )

            if attempt + 1 < self._max_retries:
                await asyncio.sleep(wait_time)

        raise last_error

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": "helium-exporter/1.0",
        }

    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Make one HTTP request and map failures to FetchError."""
        session = await self._get_session()
        self._request_count += 1

        start_time = time.time()
        try:
            async with session.request(method, url, params=params) as response:
                latency_ms = (time.time() - start_time) * 1000

                if response.status == 429:
                    self._error_count += 1
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        message="Rate limit exceeded",
                        source_name=self.name,
                        retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                        request_url=url,
                    )

                if response.status >= 400:
                    self._error_count += 1
                    body = await response.text()
                    raise FetchError(
                        message=f"HTTP {response.status}",
                        source_name=self.name,
                        status_code=response.status,
                        response_body=body[:1000],
                        request_url=url,
                    )

                data = await response.json(content_type=None)
                logger.debug(f"[{self.name}] {method} {url} completed in {latency_ms:.1f}ms")
                return data

        except aiohttp.ClientError as e:
            self._error_count += 1
            raise FetchError(
                message=f"Connection error: {e}",
                source_name=self.name,
                request_url=url,
                original_error=e,
            ) from e
        except asyncio.TimeoutError as e:
            self._error_count += 1
            raise FetchError(
                message=f"Timeout after {self._timeout}s",
                source_name=self.name,
                request_url=url,
                original_error=e,
            ) from e

    def get_stats(self) -> dict[str, int]:
        return {
            "requests": self._request_count,
            "errors": self._error_count,
        }

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseApiSource":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, base_url={self._base_url})>"
