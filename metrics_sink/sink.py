"""
Metrics Sink - Sink lifecycle and the InfluxDB implementation.

============================================================
LIFECYCLE
============================================================
    open() ──► write_point()/write_points() ... ──► flush() ──► close()
                        ▲                              │
                        └──────────────────────────────┘

- Any number of writes and flushes between one open and one close
- close() flushes what is still buffered
- Usable as an async context manager (close on every exit path)

============================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Union

import aiohttp
from influxdb_client import Point as InfluxPoint
from influxdb_client import WritePrecision
from influxdb_client.client.influxdb_client_async import InfluxDBClientAsync
from influxdb_client.rest import ApiException

from metrics_sink.config import InfluxSettings
from metrics_sink.exceptions import SinkError
from metrics_sink.point import Point, PointBuilder, as_point


logger = logging.getLogger(__name__)


class MetricsSink(ABC):
    """Abstract base class for point sinks."""

    def __init__(self) -> None:
        self._is_open = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this sink."""
        pass

    @property
    def is_open(self) -> bool:
        return self._is_open

    def open(self) -> None:
        """Prepare the sink for writes."""
        if self._is_open:
            logger.debug(f"[{self.name}] Already open, reusing")
            return
        self._open()
        self._is_open = True

    def write_point(self, point: Union[Point, PointBuilder]) -> None:
        """Queue one point for emission."""
        self._ensure_open()
        self._write(as_point(point))

    def write_points(self, points: Iterable[Union[Point, PointBuilder]]) -> None:
        """Queue several points for emission."""
        self._ensure_open()
        for point in points:
            self._write(as_point(point))

    async def flush(self) -> None:
        """Emit everything queued so far."""
        self._ensure_open()
        await self._flush()

    async def close(self) -> None:
        """Flush remaining points and release resources."""
        if not self._is_open:
            return
        try:
            await self._flush()
        finally:
            self._is_open = False
            await self._close()

    def _ensure_open(self) -> None:
        if not self._is_open:
            raise SinkError("Sink is not open", sink_name=self.name)

    @abstractmethod
    def _open(self) -> None:
        pass

    @abstractmethod
    def _write(self, point: Point) -> None:
        pass

    @abstractmethod
    async def _flush(self) -> None:
        pass

    @abstractmethod
    async def _close(self) -> None:
        pass

    async def __aenter__(self) -> "MetricsSink":
        self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, open={self._is_open})>"


class InfluxSink(MetricsSink):
    """
    InfluxDB v2 sink.

    Points are buffered in memory and sent in one batch per flush()
    through the async write API, with second precision.
    """

    def __init__(
        self,
        settings: InfluxSettings,
        client: Optional[InfluxDBClientAsync] = None,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._client = client
        self._owns_client = client is None
        self._buffer: list[Point] = []
        self._points_written = 0

    @property
    def name(self) -> str:
        return "influxdb"

    @property
    def pending(self) -> int:
        """Number of points waiting for the next flush."""
        return len(self._buffer)

    @property
    def points_written(self) -> int:
        return self._points_written

    def _open(self) -> None:
        if self._client is None:
            logger.info(f"[{self.name}] Initializing client for {self._settings.url}")
            self._client = InfluxDBClientAsync(
                url=self._settings.url,
                token=self._settings.token,
                org=self._settings.org,
                timeout=self._settings.timeout_ms,
            )
            self._owns_client = True

    def _write(self, point: Point) -> None:
        self._buffer.append(point)

    async def _flush(self) -> None:
        if not self._buffer:
            return

        batch = self._buffer
        self._buffer = []
        records = [to_influx_point(p) for p in batch]

        try:
            await self._client.write_api().write(
                bucket=self._settings.bucket,
                org=self._settings.org,
                record=records,
                write_precision=WritePrecision.S,
            )
        except (ApiException, aiohttp.ClientError) as e:
            raise SinkError(
                message=f"Write of {len(batch)} points failed: {e}",
                sink_name=self.name,
                pending_points=len(batch),
                original_error=e,
            ) from e

        self._points_written += len(batch)
        logger.debug(f"[{self.name}] Flushed {len(batch)} points")

    async def _close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None


def to_influx_point(point: Point) -> InfluxPoint:
    """Convert a Point to the influxdb-client wire representation."""
    record = InfluxPoint(point.measurement)
    for key, value in point.tags.items():
        record.tag(key, value)
    for key, value in point.fields.items():
        record.field(key, value)
    record.time(point.time, WritePrecision.S)
    return record
