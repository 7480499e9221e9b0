"""
Helium API Source Tests.

============================================================
PURPOSE
============================================================
Tests for HeliumApiSource with the HTTP layer mocked.

TEST CATEGORIES:
- Endpoint mapping and response unwrapping
- Activity pagination
- Retry behaviour

============================================================
"""

import pytest
from unittest.mock import AsyncMock, patch

from data_sources import (
    FetchError,
    HeliumApiSource,
    NormalizationError,
    PocRequest,
    RateLimitError,
    UnknownActivity,
)


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def source():
    """Helium source without a real session."""
    return HeliumApiSource(base_url="https://api.test/v1", max_retries=3)


@pytest.fixture
def no_sleep():
    """Skip backoff waits."""
    with patch("data_sources.base.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


# ============================================================
# ENDPOINT TESTS
# ============================================================

class TestEndpoints:
    """Tests for endpoint mapping."""

    @pytest.mark.asyncio
    async def test_get_node(self, source):
        """Test node snapshot endpoint and parsing."""
        source._make_request = AsyncMock(return_value={"data": {
            "address": "112node",
            "name": "angry-purple-tiger",
            "geocode": {"short_city": "Lisbon", "short_street": "Rua Augusta"},
            "last_change_block": 10,
        }})

        node = await source.get_node("112node")

        assert node.display_name == "Angry Purple Tiger"
        source._make_request.assert_awaited_once_with(
            "GET", "https://api.test/v1/hotspots/112node", params=None
        )

    @pytest.mark.asyncio
    async def test_get_account(self, source):
        """Test account endpoint."""
        source._make_request = AsyncMock(return_value={"data": {
            "address": "13wallet", "balance": 100_000_000,
        }})

        account = await source.get_account("13wallet")

        assert account.balance_hnt == 1.0
        assert source._make_request.call_args.args[1] == "https://api.test/v1/accounts/13wallet"

    @pytest.mark.asyncio
    async def test_get_network_stats(self, source):
        """Test stats endpoint."""
        source._make_request = AsyncMock(return_value={"data": {
            "counts": {"transactions": 1, "challenges": 2, "blocks": 3, "hotspots": 4},
            "challenge_counts": {"active": 5},
            "block_times": {"last_day": {"avg": 60.5}},
        }})

        stats = await source.get_network_stats()

        assert stats.counts.hotspots == 4
        assert stats.block_times.last_day.avg == 60.5

    @pytest.mark.asyncio
    async def test_missing_envelope_raises(self, source):
        """Test response without data envelope raises NormalizationError."""
        source._make_request = AsyncMock(return_value={"error": "nope"})

        with pytest.raises(NormalizationError):
            await source.get_account("13wallet")

    @pytest.mark.asyncio
    async def test_invalid_payload_raises(self, source):
        """Test payload failing validation raises NormalizationError."""
        source._make_request = AsyncMock(return_value={"data": {"name": "no-address"}})

        with pytest.raises(NormalizationError) as exc_info:
            await source.get_node("112node")

        assert exc_info.value.source_name == "helium"
        assert exc_info.value.original_error is not None


# ============================================================
# ACTIVITY PAGE TESTS
# ============================================================

class TestActivityPage:
    """Tests for get_node_activity_page."""

    @pytest.mark.asyncio
    async def test_first_page_without_cursor(self, source):
        """Test first page request and parsed records."""
        source._make_request = AsyncMock(return_value={
            "data": [
                {"type": "poc_request_v1", "time": 200, "challenger": "112node"},
                {"type": "transfer_hotspot_v1", "time": 100},
            ],
            "cursor": "next-page",
        })

        page = await source.get_node_activity_page("112node")

        source._make_request.assert_awaited_once_with(
            "GET", "https://api.test/v1/hotspots/112node/activity", params=None
        )
        assert isinstance(page.records[0], PocRequest)
        assert isinstance(page.records[1], UnknownActivity)
        assert page.cursor == "next-page"
        assert page.has_more

    @pytest.mark.asyncio
    async def test_cursor_forwarded(self, source):
        """Test cursor is sent as a query parameter."""
        source._make_request = AsyncMock(return_value={"data": []})

        page = await source.get_node_activity_page("112node", cursor="abc")

        assert source._make_request.call_args.kwargs["params"] == {"cursor": "abc"}
        assert page.records == ()
        assert not page.has_more

    @pytest.mark.asyncio
    async def test_record_without_time_dropped(self, source):
        """Test one record without usable time does not fail the page."""
        source._make_request = AsyncMock(return_value={"data": [
            {"type": "poc_request_v1", "time": 300.0, "challenger": "112node"},
            {"type": "poc_request_v1", "time": None, "challenger": "112node"},
            {"type": "vars_v1", "time": 100},
        ]})

        page = await source.get_node_activity_page("112node")

        assert [record.time for record in page.records] == [300, 100]
        assert isinstance(page.records[0], PocRequest)

    @pytest.mark.asyncio
    async def test_non_list_data_raises(self, source):
        """Test page whose data is not a list raises NormalizationError."""
        source._make_request = AsyncMock(return_value={"data": {"type": "x"}})

        with pytest.raises(NormalizationError):
            await source.get_node_activity_page("112node")


# ============================================================
# RETRY TESTS
# ============================================================

class TestRetry:
    """Tests for retry with backoff."""

    @pytest.mark.asyncio
    async def test_server_error_retried(self, source, no_sleep):
        """Test 5xx is retried and a later success returned."""
        source._make_request = AsyncMock(side_effect=[
            FetchError("HTTP 502", source_name="helium", status_code=502),
            {"data": {"address": "13wallet"}},
        ])

        account = await source.get_account("13wallet")

        assert account.address == "13wallet"
        assert source._make_request.await_count == 2
        no_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, source, no_sleep):
        """Test 4xx is raised immediately."""
        source._make_request = AsyncMock(
            side_effect=FetchError("HTTP 404", source_name="helium", status_code=404)
        )

        with pytest.raises(FetchError) as exc_info:
            await source.get_account("13wallet")

        assert exc_info.value.status_code == 404
        assert exc_info.value.is_client_error()
        assert source._make_request.await_count == 1
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, source, no_sleep):
        """Test last error raised after max retries, no sleep after the last attempt."""
        source._make_request = AsyncMock(
            side_effect=RateLimitError("Rate limit exceeded", source_name="helium")
        )

        with pytest.raises(RateLimitError):
            await source.get_network_stats()

        assert source._make_request.await_count == 3
        assert no_sleep.await_count == 2
        assert [c.args[0] for c in no_sleep.await_args_list] == [1.0, 2.0]
