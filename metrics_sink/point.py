"""
Metrics Sink - Point construction.

============================================================
PURPOSE
============================================================
A point is one time-series sample:

- measurement name
- tags: low-cardinality string dimensions (filtering/grouping)
- fields: typed measured values (float, int, bool, str)
- timestamp: timezone-aware UTC datetime

============================================================
INVARIANTS
============================================================
- Tag values are always strings, even numeric-looking ones
- Tag keys and field keys are disjoint
- No key is written twice to the same point
- A point cannot be built without a timestamp or without fields

============================================================
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from metrics_sink.exceptions import PointError


FieldValue = Union[float, int, bool, str]


@dataclass(frozen=True)
class Point:
    """Immutable, fully-constructed point ready for emission."""

    measurement: str
    tags: Mapping[str, str]
    fields: Mapping[str, FieldValue]
    time: datetime

    @property
    def epoch_seconds(self) -> int:
        """Timestamp as whole epoch seconds."""
        return int(self.time.timestamp())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for console rendering/logging."""
        return {
            "measurement": self.measurement,
            "tags": dict(self.tags),
            "fields": dict(self.fields),
            "time": self.time.isoformat(),
        }


class PointBuilder:
    """
    Mutable accumulator for one point.

    Setters return the builder so calls can be chained:

        point = (
            PointBuilder("helium_price")
            .timestamp(run_timestamp)
            .tag("source", "CoinGecko")
            .float_field("usd", 7.5)
        )
    """

    def __init__(self, measurement: str) -> None:
        if not measurement:
            raise PointError("Measurement name must not be empty")
        self._measurement = measurement
        self._tags: dict[str, str] = {}
        self._fields: dict[str, FieldValue] = {}
        self._time: Optional[datetime] = None

    # =========================================================
    # ACCESSORS
    # =========================================================

    @property
    def measurement(self) -> str:
        return self._measurement

    @property
    def tags(self) -> dict[str, str]:
        """Copy of the tag set, in insertion order."""
        return dict(self._tags)

    @property
    def fields(self) -> dict[str, FieldValue]:
        """Copy of the field set, in insertion order."""
        return dict(self._fields)

    @property
    def time(self) -> Optional[datetime]:
        return self._time

    # =========================================================
    # SETTERS
    # =========================================================

    def timestamp(self, when: Union[datetime, int, float]) -> "PointBuilder":
        """
        Set the point timestamp.

        Args:
            when: datetime (naive values are taken as UTC) or epoch seconds
        """
        if isinstance(when, datetime):
            if when.tzinfo is None:
                when = when.replace(tzinfo=timezone.utc)
            self._time = when.astimezone(timezone.utc)
        else:
            self._time = datetime.fromtimestamp(when, tz=timezone.utc)
        return self

    def tag(self, key: str, value: Any) -> "PointBuilder":
        """Add a tag. The value is stored as its string form."""
        if value is None:
            raise PointError("Tag value must not be None", self._measurement, key)
        self._check_key(key)
        self._tags[key] = str(value)
        return self

    def float_field(self, key: str, value: Any) -> "PointBuilder":
        return self._field(key, float(value))

    def int_field(self, key: str, value: Any) -> "PointBuilder":
        if isinstance(value, bool):
            raise PointError("Boolean given for an integer field", self._measurement, key)
        return self._field(key, int(value))

    def bool_field(self, key: str, value: Any) -> "PointBuilder":
        return self._field(key, bool(value))

    def string_field(self, key: str, value: Any) -> "PointBuilder":
        return self._field(key, str(value))

    def _field(self, key: str, value: FieldValue) -> "PointBuilder":
        self._check_key(key)
        self._fields[key] = value
        return self

    def _check_key(self, key: str) -> None:
        if not key:
            raise PointError("Key must not be empty", self._measurement)
        if key in self._tags:
            raise PointError("Key already written as a tag", self._measurement, key)
        if key in self._fields:
            raise PointError("Key already written as a field", self._measurement, key)

    # =========================================================
    # BUILD
    # =========================================================

    def build(self) -> Point:
        """
        Freeze the builder into a Point.

        Raises:
            PointError: If the timestamp is missing or there are no fields
        """
        if self._time is None:
            raise PointError("Point has no timestamp", self._measurement)
        if not self._fields:
            raise PointError("Point has no fields", self._measurement)
        return Point(
            measurement=self._measurement,
            tags=MappingProxyType(dict(self._tags)),
            fields=MappingProxyType(dict(self._fields)),
            time=self._time,
        )

    def __repr__(self) -> str:
        return (
            f"<PointBuilder(measurement={self._measurement}, "
            f"tags={self._tags}, fields={self._fields}, time={self._time})>"
        )


def as_point(point: Union[Point, PointBuilder]) -> Point:
    """Return a frozen Point, building it if a builder was given."""
    if isinstance(point, PointBuilder):
        return point.build()
    return point
