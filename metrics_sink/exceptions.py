"""
Metrics Sink Exceptions - Errors raised while building or emitting points.
"""

from datetime import datetime, timezone
from typing import Any, Optional


class PointError(ValueError):
    """A point violates a construction invariant (duplicate key, missing timestamp...)."""

    def __init__(
        self,
        message: str,
        measurement: Optional[str] = None,
        key: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.measurement = measurement
        self.key = key

    def __str__(self) -> str:
        parts = [self.message]
        if self.measurement:
            parts.append(f"[measurement={self.measurement}]")
        if self.key:
            parts.append(f"[key={self.key}]")
        return " ".join(parts)


class SinkError(Exception):
    """Error while writing to, flushing or closing a metrics sink."""

    def __init__(
        self,
        message: str,
        sink_name: Optional[str] = None,
        pending_points: int = 0,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.sink_name = sink_name
        self.pending_points = pending_points
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "sink_name": self.sink_name,
            "pending_points": self.pending_points,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.sink_name:
            parts.append(f"[sink={self.sink_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)
