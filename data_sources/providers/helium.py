"""
Helium API Source - Public blockchain API adapter.

Endpoints used (all under https://api.helium.io/v1):
- /hotspots/{address}           Node snapshot
- /hotspots/{address}/activity  Activity feed, newest first, cursor paginated
- /stats                        Network-wide statistics
- /accounts/{address}           Wallet balances

Responses wrap their payload in {"data": ...}; paginated responses add
a "cursor" key while more pages are available.
"""

import logging
from typing import Any, Optional

import aiohttp
from pydantic import ValidationError

from data_sources.base import BaseApiSource
from data_sources.exceptions import NormalizationError
from data_sources.models import (
    Account,
    ActivityPage,
    NetworkStats,
    Node,
    parse_activity,
)


logger = logging.getLogger(__name__)


class HeliumApiSource(BaseApiSource):
    """Client for the Helium blockchain API."""

    BASE_URL = "https://api.helium.io/v1"

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = BaseApiSource.DEFAULT_TIMEOUT,
        max_retries: int = BaseApiSource.MAX_RETRIES,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(base_url, timeout, max_retries, session)

    @property
    def name(self) -> str:
        return "helium"

    async def get_node(self, node_id: str) -> Node:
        """Fetch the snapshot of one hotspot."""
        body = await self._get_json(f"hotspots/{node_id}")
        return self._parse(Node, self._unwrap(body, f"hotspots/{node_id}"), "hotspot")

    async def get_node_activity_page(
        self,
        node_id: str,
        cursor: Optional[str] = None,
    ) -> ActivityPage:
        """
        Fetch one page of a hotspot's activity feed.

        Args:
            node_id: Hotspot address
            cursor: Cursor returned by the previous page (None for the newest page)
        """
        params = {"cursor": cursor} if cursor else None
        body = await self._get_json(f"hotspots/{node_id}/activity", params=params)

        raw_records = self._unwrap(body, f"hotspots/{node_id}/activity")
        if not isinstance(raw_records, list):
            raise NormalizationError(
                message="Activity page data is not a list",
                source_name=self.name,
                raw_data=body,
                field_name="data",
            )

        parsed = (parse_activity(raw) for raw in raw_records)
        records = tuple(record for record in parsed if record is not None)
        next_cursor = body.get("cursor") or None

        logger.debug(
            f"[{self.name}] Activity page for {node_id}: "
            f"{len(records)} records, more={next_cursor is not None}"
        )
        return ActivityPage(records=records, cursor=next_cursor)

    async def get_network_stats(self) -> NetworkStats:
        body = await self._get_json("stats")
        return self._parse(NetworkStats, self._unwrap(body, "stats"), "stats")

    async def get_account(self, account_id: str) -> Account:
        body = await self._get_json(f"accounts/{account_id}")
        return self._parse(Account, self._unwrap(body, f"accounts/{account_id}"), "account")

    def _unwrap(self, body: Any, endpoint: str) -> Any:
        if not isinstance(body, dict) or "data" not in body:
            raise NormalizationError(
                message=f"Response from {endpoint} has no 'data' envelope",
                source_name=self.name,
                raw_data=body,
                field_name="data",
            )
        return body["data"]

    def _parse(self, model: type, data: Any, what: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise NormalizationError(
                message=f"Invalid {what} payload: {e.error_count()} validation errors",
                source_name=self.name,
                raw_data=data,
                original_error=e,
            ) from e
