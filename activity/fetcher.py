"""
Activity - Windowed retrieval of a node's activity feed.

The feed is paginated newest first. Pages are walked backwards until a
page contains a record older than the window start (everything after
it is older still) or the source has no further page.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from data_sources.models import ActivityRecord
from data_sources.providers.helium import HeliumApiSource


logger = logging.getLogger(__name__)


class WindowedActivityFetcher:
    """Collects the activity records of one node inside [since, now]."""

    def __init__(self, source: HeliumApiSource) -> None:
        self._source = source

    async def fetch(self, node_id: str, since: datetime) -> list[ActivityRecord]:
        """
        Fetch all records with time >= since, newest first.

        Args:
            node_id: Hotspot address
            since: Window start (naive values are taken as UTC)

        Returns:
            Records in feed order, possibly empty

        Raises:
            DataSourceError: Any source error, unchanged
        """
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        since_ts = since.timestamp()

        records: list[ActivityRecord] = []
        cursor: Optional[str] = None
        pages = 0

        while True:
            page = await self._source.get_node_activity_page(node_id, cursor=cursor)
            pages += 1

            kept = [r for r in page.records if r.time >= since_ts]
            records.extend(kept)

            if len(kept) < len(page.records) or not page.has_more:
                break
            cursor = page.cursor

        if not records:
            logger.info(f"No activities for {node_id} since {since.isoformat()}")
        else:
            logger.info(
                f"Fetched {len(records)} activities for {node_id} "
                f"since {since.isoformat()} ({pages} pages)"
            )
        return records
