"""
Windowed Activity Fetcher Tests.

============================================================
PURPOSE
============================================================
Tests for WindowedActivityFetcher against a scripted page source.

- Window bound: no returned record is older than the window start
- Early stop on the first page holding an older record
- Cursor following, empty pages, error propagation

============================================================
"""

import pytest
from datetime import datetime, timezone
from typing import Optional
from unittest.mock import AsyncMock

from activity import WindowedActivityFetcher
from data_sources import ActivityPage, FetchError, parse_activity


NODE_ID = "112node"
SINCE = datetime.fromtimestamp(1000, tz=timezone.utc)


def record(time_value: int):
    return parse_activity({"type": "vars_v1", "time": time_value})


def page(*times: int, cursor: Optional[str] = None) -> ActivityPage:
    return ActivityPage(records=tuple(record(t) for t in times), cursor=cursor)


def scripted_source(*pages: ActivityPage):
    source = AsyncMock()
    source.get_node_activity_page = AsyncMock(side_effect=list(pages))
    return source


# ============================================================
# WINDOW TESTS
# ============================================================

class TestWindow:
    """Tests for the time window."""

    @pytest.mark.asyncio
    async def test_stops_on_page_with_older_record(self):
        """Test pagination stops once a page crosses the window start."""
        source = scripted_source(
            page(1300, 1200, cursor="p2"),
            page(1100, 999, 900, cursor="p3"),
            page(800, cursor=None),
        )

        records = await WindowedActivityFetcher(source).fetch(NODE_ID, SINCE)

        assert [r.time for r in records] == [1300, 1200, 1100]
        assert source.get_node_activity_page.await_count == 2

    @pytest.mark.asyncio
    async def test_follows_cursor(self):
        """Test each next page is requested with the previous cursor."""
        source = scripted_source(
            page(1300, cursor="p2"),
            page(1200, cursor="p3"),
            page(1100, cursor=None),
        )

        records = await WindowedActivityFetcher(source).fetch(NODE_ID, SINCE)

        assert [r.time for r in records] == [1300, 1200, 1100]
        cursors = [c.kwargs["cursor"] for c in source.get_node_activity_page.await_args_list]
        assert cursors == [None, "p2", "p3"]

    @pytest.mark.asyncio
    async def test_boundary_record_kept(self):
        """Test a record exactly at the window start is kept."""
        source = scripted_source(page(1000, 999))

        records = await WindowedActivityFetcher(source).fetch(NODE_ID, SINCE)

        assert [r.time for r in records] == [1000]

    @pytest.mark.asyncio
    async def test_empty_window(self):
        """Test empty first page without more pages yields no records."""
        source = scripted_source(page())

        records = await WindowedActivityFetcher(source).fetch(NODE_ID, SINCE)

        assert records == []
        assert source.get_node_activity_page.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_page_with_more_continues(self):
        """Test an empty page that reports more pages is followed."""
        source = scripted_source(page(cursor="p2"), page(1500, cursor=None))

        records = await WindowedActivityFetcher(source).fetch(NODE_ID, SINCE)

        assert [r.time for r in records] == [1500]

    @pytest.mark.asyncio
    async def test_all_old(self):
        """Test first page entirely before the window."""
        source = scripted_source(page(900, 800, cursor="p2"))

        records = await WindowedActivityFetcher(source).fetch(NODE_ID, SINCE)

        assert records == []
        assert source.get_node_activity_page.await_count == 1

    @pytest.mark.asyncio
    async def test_naive_since_taken_as_utc(self):
        """Test naive window start is interpreted as UTC."""
        source = scripted_source(page(1000, 999))
        naive = datetime(1970, 1, 1, 0, 16, 40)

        records = await WindowedActivityFetcher(source).fetch(NODE_ID, naive)

        assert [r.time for r in records] == [1000]

    @pytest.mark.asyncio
    async def test_idempotent(self):
        """Test same feed and window give the same result."""
        pages = [page(1300, cursor="p2"), page(1100, 900)]

        first = await WindowedActivityFetcher(scripted_source(*pages)).fetch(NODE_ID, SINCE)
        second = await WindowedActivityFetcher(scripted_source(*pages)).fetch(NODE_ID, SINCE)

        assert first == second


# ============================================================
# ERROR TESTS
# ============================================================

class TestErrors:
    """Tests for error propagation."""

    @pytest.mark.asyncio
    async def test_source_error_propagates(self):
        """Test a page failure aborts the fetch."""
        source = AsyncMock()
        source.get_node_activity_page = AsyncMock(side_effect=[
            page(1300, cursor="p2"),
            FetchError("HTTP 500", source_name="helium", status_code=500),
        ])

        with pytest.raises(FetchError):
            await WindowedActivityFetcher(source).fetch(NODE_ID, SINCE)
