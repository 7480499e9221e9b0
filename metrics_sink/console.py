"""
Metrics Sink - Console rendering for debug runs.

Nothing is sent to the metrics store: every point is printed as one
JSON line the moment it is written.
"""

import json
import sys
from typing import Optional, TextIO

from metrics_sink.point import Point
from metrics_sink.sink import MetricsSink


class ConsoleSink(MetricsSink):
    """Sink that renders points to a text stream (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        super().__init__()
        self._stream = stream
        self._rendered = 0

    @property
    def name(self) -> str:
        return "console"

    @property
    def rendered(self) -> int:
        return self._rendered

    def _open(self) -> None:
        pass

    def _write(self, point: Point) -> None:
        stream = self._stream or sys.stdout
        stream.write(render_point(point) + "\n")
        self._rendered += 1

    async def _flush(self) -> None:
        (self._stream or sys.stdout).flush()

    async def _close(self) -> None:
        pass


def render_point(point: Point) -> str:
    return json.dumps(point.to_dict(), sort_keys=False)
