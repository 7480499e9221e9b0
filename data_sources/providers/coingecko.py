"""
CoinGecko Price Source - Reference price for the network token.

============================================================
RESPONSIBILITY
============================================================
Fetches spot prices from the CoinGecko simple price endpoint:

    GET /simple/price?ids=helium&vs_currencies=usd,eur
    -> {"helium": {"usd": 7.51, "eur": 6.93}}

- Free tier, optional demo API key
- Retries on timeouts, 5xx and 429

============================================================
"""

import asyncio
import logging
from typing import Optional, Sequence

import httpx

from data_sources.exceptions import FetchError, NormalizationError, RateLimitError


logger = logging.getLogger(__name__)


class CoinGeckoPriceSource:
    """Price reference client for CoinGecko."""

    BASE_URL = "https://api.coingecko.com/api/v3"
    MAX_RETRIES = 3
    RETRY_BACKOFF_BASE = 2.0

    def __init__(
        self,
        base_url: str = BASE_URL,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = MAX_RETRIES,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._client = client

    @property
    def name(self) -> str:
        return "coingecko"

    @property
    def display_name(self) -> str:
        return "CoinGecko"

    async def get_price(
        self,
        asset_id: str,
        currencies: Sequence[str],
    ) -> dict[str, float]:
        """
        Fetch the price of one asset in several currencies.

        Args:
            asset_id: CoinGecko asset id (e.g. "helium")
            currencies: Currency codes (e.g. ["usd", "eur"])

        Returns:
            Mapping of lower-case currency code to price
        """
        wanted = [c.lower() for c in currencies]
        params = {"ids": asset_id, "vs_currencies": ",".join(wanted)}

        data = await self._get_with_retry("simple/price", params)

        asset = data.get(asset_id) if isinstance(data, dict) else None
        if not isinstance(asset, dict):
            raise NormalizationError(
                message=f"No price entry for {asset_id}",
                source_name=self.name,
                raw_data=data,
                field_name=asset_id,
            )

        prices: dict[str, float] = {}
        for currency in wanted:
            if currency not in asset:
                raise NormalizationError(
                    message=f"No {currency} price for {asset_id}",
                    source_name=self.name,
                    raw_data=data,
                    field_name=currency,
                )
            prices[currency] = float(asset[currency])

        return prices

    async def _get_with_retry(self, path: str, params: dict[str, str]) -> object:
        last_error: Optional[FetchError] = None

        for attempt in range(self._max_retries):
            try:
                return await self._get(path, params)
            except FetchError as e:
                if not e.is_retryable():
                    raise
                last_error = e
                if attempt + 1 < self._max_retries:
                    wait_time = self.RETRY_BACKOFF_BASE ** attempt
                    logger.warning(
                        f"[{self.name}] {e.message}, retrying in {wait_time}s "
                        f"(attempt {attempt + 1}/{self._max_retries})"
                    )
                    await asyncio.sleep(wait_time)

        raise last_error

    async def _get(self, path: str, params: dict[str, str]) -> object:
        url = f"{self._base_url}/{path}"
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["x-cg-demo-api-key"] = self._api_key

        try:
            if self._client is not None:
                response = await self._client.get(url, params=params, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise RateLimitError(
                    message="Rate limit exceeded",
                    source_name=self.name,
                    request_url=url,
                ) from e
            raise FetchError(
                message=f"HTTP {status}",
                source_name=self.name,
                status_code=status,
                response_body=e.response.text[:200],
                request_url=url,
                original_error=e,
            ) from e
        except httpx.TimeoutException as e:
            raise FetchError(
                message=f"Request timeout: {e}",
                source_name=self.name,
                request_url=url,
                original_error=e,
            ) from e
        except httpx.RequestError as e:
            raise FetchError(
                message=f"Request error: {e}",
                source_name=self.name,
                request_url=url,
                original_error=e,
            ) from e
        except ValueError as e:
            raise NormalizationError(
                message=f"Response is not JSON: {e}",
                source_name=self.name,
                original_error=e,
            ) from e
