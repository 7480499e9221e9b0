"""
Metrics Sink Tests.

============================================================
PURPOSE
============================================================
Tests for the sink lifecycle, the console sink and the InfluxDB sink.

The InfluxDB client is replaced by a mock; no network access.

============================================================
"""

import io
import json
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from influxdb_client import WritePrecision
from influxdb_client.rest import ApiException

from metrics_sink import (
    ConsoleSink,
    InfluxSettings,
    InfluxSink,
    PointBuilder,
    SinkError,
    render_point,
    to_influx_point,
)


RUN_TS = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def settings():
    """Complete InfluxDB settings."""
    return InfluxSettings(
        host="influx.example.com",
        token="secret",
        org="helium",
        bucket="telemetry",
    )


@pytest.fixture
def influx_client():
    """Mock async InfluxDB client."""
    client = MagicMock()
    write_api = MagicMock()
    write_api.write = AsyncMock(return_value=True)
    client.write_api.return_value = write_api
    client.close = AsyncMock()
    return client


def price_point(usd: float = 7.5) -> PointBuilder:
    return (
        PointBuilder("helium_price")
        .timestamp(RUN_TS)
        .tag("source", "CoinGecko")
        .float_field("usd", usd)
    )


# ============================================================
# SETTINGS TESTS
# ============================================================

class TestInfluxSettings:
    """Tests for InfluxSettings."""

    def test_url_uses_https_and_port(self, settings):
        """Test URL built from host and default port."""
        assert settings.url == "https://influx.example.com:8086"

    def test_validate_complete(self, settings):
        """Test complete settings have no errors."""
        assert settings.validate() == []

    def test_validate_missing(self):
        """Test every missing value is reported."""
        errors = InfluxSettings(port="abc").validate()

        assert "INFLUX_HOST is not set" in errors
        assert "INFLUX_TOKEN is not set" in errors
        assert "INFLUX_ORG is not set" in errors
        assert "INFLUX_BUCKET is not set" in errors
        assert any("INFLUX_PORT" in e for e in errors)

    def test_from_env(self, monkeypatch):
        """Test loading from environment variables."""
        monkeypatch.setenv("INFLUX_HOST", "db.local")
        monkeypatch.setenv("INFLUX_PORT", "9999")
        monkeypatch.setenv("INFLUX_TOKEN", "t")
        monkeypatch.setenv("INFLUX_ORG", "o")
        monkeypatch.setenv("INFLUX_BUCKET", "b")

        settings = InfluxSettings.from_env()

        assert settings.url == "https://db.local:9999"
        assert settings.bucket == "b"


# ============================================================
# LIFECYCLE TESTS
# ============================================================

class TestSinkLifecycle:
    """Tests for the shared open/write/flush/close lifecycle."""

    def test_write_before_open_raises(self):
        """Test writing to a closed sink raises SinkError."""
        sink = ConsoleSink(stream=io.StringIO())

        with pytest.raises(SinkError):
            sink.write_point(price_point())

    @pytest.mark.asyncio
    async def test_write_after_close_raises(self):
        """Test writing after close raises SinkError."""
        sink = ConsoleSink(stream=io.StringIO())
        sink.open()
        await sink.close()

        with pytest.raises(SinkError):
            sink.write_points([price_point()])

    @pytest.mark.asyncio
    async def test_context_manager_opens_and_closes(self):
        """Test async context manager lifecycle."""
        sink = ConsoleSink(stream=io.StringIO())

        async with sink:
            assert sink.is_open

        assert not sink.is_open

    @pytest.mark.asyncio
    async def test_close_twice_is_harmless(self):
        """Test close on a closed sink does nothing."""
        sink = ConsoleSink(stream=io.StringIO())
        sink.open()

        await sink.close()
        await sink.close()

        assert not sink.is_open


# ============================================================
# CONSOLE SINK TESTS
# ============================================================

class TestConsoleSink:
    """Tests for ConsoleSink."""

    @pytest.mark.asyncio
    async def test_renders_one_json_line_per_point(self):
        """Test each point becomes one JSON line."""
        stream = io.StringIO()

        async with ConsoleSink(stream=stream) as sink:
            sink.write_points([price_point(1.0), price_point(2.0)])

        lines = stream.getvalue().splitlines()
        assert len(lines) == 2
        assert sink.rendered == 2

        first = json.loads(lines[0])
        assert first["measurement"] == "helium_price"
        assert first["tags"] == {"source": "CoinGecko"}
        assert first["fields"] == {"usd": 1.0}
        assert first["time"] == "2023-11-14T22:13:20+00:00"

    def test_render_point(self):
        """Test render_point output is JSON."""
        rendered = render_point(price_point().build())

        assert json.loads(rendered)["fields"]["usd"] == 7.5


# ============================================================
# INFLUX SINK TESTS
# ============================================================

class TestInfluxSink:
    """Tests for InfluxSink."""

    @pytest.mark.asyncio
    async def test_points_buffered_until_flush(self, settings, influx_client):
        """Test writes are buffered and sent on flush."""
        sink = InfluxSink(settings, client=influx_client)
        sink.open()

        sink.write_point(price_point())
        sink.write_point(price_point(8.0))

        assert sink.pending == 2
        influx_client.write_api.return_value.write.assert_not_called()

        await sink.flush()

        write = influx_client.write_api.return_value.write
        write.assert_awaited_once()
        kwargs = write.call_args.kwargs
        assert kwargs["bucket"] == "telemetry"
        assert kwargs["org"] == "helium"
        assert kwargs["write_precision"] == WritePrecision.S
        assert len(kwargs["record"]) == 2
        assert sink.pending == 0
        assert sink.points_written == 2

    @pytest.mark.asyncio
    async def test_empty_flush_does_not_write(self, settings, influx_client):
        """Test flush with nothing buffered is a no-op."""
        sink = InfluxSink(settings, client=influx_client)
        sink.open()

        await sink.flush()

        influx_client.write_api.return_value.write.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_flushes_remaining(self, settings, influx_client):
        """Test close sends buffered points and keeps an injected client open."""
        async with InfluxSink(settings, client=influx_client) as sink:
            sink.write_point(price_point())

        influx_client.write_api.return_value.write.assert_awaited_once()
        influx_client.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self, settings, influx_client):
        """Test client errors surface as SinkError."""
        influx_client.write_api.return_value.write = AsyncMock(
            side_effect=ApiException(status=401, reason="Unauthorized")
        )
        sink = InfluxSink(settings, client=influx_client)
        sink.open()
        sink.write_point(price_point())

        with pytest.raises(SinkError) as exc_info:
            await sink.flush()

        assert exc_info.value.sink_name == "influxdb"
        assert exc_info.value.pending_points == 1
        assert isinstance(exc_info.value.original_error, ApiException)

    def test_to_influx_point_line_protocol(self):
        """Test conversion to line protocol at second precision."""
        point = (
            PointBuilder("helium_poc_activity")
            .timestamp(RUN_TS)
            .tag("poc_role", "witnessed_beacon")
            .int_field("witnesses", 5)
            .bool_field("event", True)
            .build()
        )

        line = to_influx_point(point).to_line_protocol()

        assert line.startswith("helium_poc_activity,poc_role=witnessed_beacon ")
        assert "witnesses=5i" in line
        assert "event=true" in line
        assert line.endswith(" 1700000000")
