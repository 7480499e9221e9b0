"""
Metrics Sink Package - Point construction and emission.

Quick Start:
    from metrics_sink import InfluxSettings, InfluxSink, PointBuilder

    async def emit(run_timestamp):
        async with InfluxSink(InfluxSettings.from_env()) as sink:
            sink.write_point(
                PointBuilder("helium_price")
                .timestamp(run_timestamp)
                .tag("source", "CoinGecko")
                .float_field("usd", 7.5)
            )
            await sink.flush()

Debug runs use ConsoleSink instead, which prints one JSON line per point.
"""

from metrics_sink.config import InfluxSettings
from metrics_sink.console import ConsoleSink, render_point
from metrics_sink.exceptions import PointError, SinkError
from metrics_sink.point import FieldValue, Point, PointBuilder, as_point
from metrics_sink.sink import InfluxSink, MetricsSink, to_influx_point


__all__ = [
    # Points
    "Point",
    "PointBuilder",
    "FieldValue",
    "as_point",
    # Sinks
    "MetricsSink",
    "InfluxSink",
    "ConsoleSink",
    "InfluxSettings",
    "render_point",
    "to_influx_point",
    # Exceptions
    "PointError",
    "SinkError",
]
