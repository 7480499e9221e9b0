"""
Orchestrator - Models.

============================================================
RESPONSIBILITY
============================================================
Defines data models for the exporter run.

- Exporter configuration (environment + CLI overrides)
- Result of one run
- Outcome of one top-level task

============================================================
"""

import os
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from metrics_sink.config import InfluxSettings
from snapshots.builders import PRICE_TAG_KEYS

from .state_machine import RunState


DEFAULT_HELIUM_API_URL = "https://api.helium.io/v1"
DEFAULT_COINGECKO_API_URL = "https://api.coingecko.com/api/v3"


def _split_list(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


# ============================================================
# CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class ExporterConfig:
    """Configuration for one exporter run."""

    # Monitored entities
    hotspots: Tuple[str, ...] = ()
    """Monitored node ids."""

    wallet: str = ""
    """Monitored account id."""

    lookback_hours: float = 4.0
    """Activity window size."""

    # Output
    debug: bool = False
    """Render points to the console instead of writing them to InfluxDB."""

    influx: InfluxSettings = field(default_factory=InfluxSettings)

    # Sources
    helium_api_url: str = DEFAULT_HELIUM_API_URL
    coingecko_api_url: str = DEFAULT_COINGECKO_API_URL
    coingecko_api_key: Optional[str] = None
    price_asset_id: str = "helium"
    price_currencies: Tuple[str, ...] = ("usd", "eur")
    source_timeout_seconds: float = 30.0
    source_max_retries: int = 3

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> "ExporterConfig":
        """Load configuration from environment variables (and a .env file if present)."""
        load_dotenv()
        return cls(
            hotspots=_split_list(os.getenv("HELIUM_HOTSPOT")),
            wallet=os.getenv("HELIUM_WALLET", "").strip(),
            lookback_hours=float(os.getenv("HELIUM_ACTIVITY_LOOKBACK_HOURS", "4")),
            debug=bool(os.getenv("DEBUG_TO_CONSOLE")),
            influx=InfluxSettings.from_env(),
            helium_api_url=os.getenv("HELIUM_API_URL") or DEFAULT_HELIUM_API_URL,
            coingecko_api_url=os.getenv("COINGECKO_API_URL") or DEFAULT_COINGECKO_API_URL,
            coingecko_api_key=os.getenv("COINGECKO_API_KEY") or None,
            price_asset_id=os.getenv("PRICE_ASSET_ID", "helium"),
            price_currencies=_split_list(os.getenv("PRICE_CURRENCIES", "usd,eur")),
            source_timeout_seconds=float(os.getenv("SOURCE_TIMEOUT_SECONDS", "30")),
            source_max_retries=int(os.getenv("SOURCE_MAX_RETRIES", "3")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )

    def with_overrides(self, **overrides: Any) -> "ExporterConfig":
        """Copy with the given non-None values replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "hotspots" in changes and isinstance(changes["hotspots"], str):
            changes["hotspots"] = _split_list(changes["hotspots"])
        return replace(self, **changes)

    def validate(self) -> List[str]:
        """Validate the run configuration, return list of errors."""
        errors = []

        if not self.hotspots:
            errors.append("HELIUM_HOTSPOT is not set (no nodes to monitor)")

        if not self.wallet:
            errors.append("HELIUM_WALLET is not set")

        if self.lookback_hours <= 0:
            errors.append("HELIUM_ACTIVITY_LOOKBACK_HOURS must be positive")

        if not self.price_currencies:
            errors.append("PRICE_CURRENCIES must name at least one currency")

        reserved = sorted(c for c in self.price_currencies if c.lower() in PRICE_TAG_KEYS)
        if reserved:
            errors.append(f"PRICE_CURRENCIES must not use reserved names: {', '.join(reserved)}")

        if self.source_max_retries < 1:
            errors.append("SOURCE_MAX_RETRIES must be at least 1")

        return errors

    def validate_sink(self) -> List[str]:
        """Validate sink settings; debug runs need none."""
        if self.debug:
            return []
        return self.influx.validate()


# ============================================================
# RESULTS
# ============================================================

@dataclass
class RunResult:
    """Result of one coordinator run."""

    run_timestamp: datetime
    state: RunState
    points_written: int = 0
    activity_counts: Dict[str, int] = field(default_factory=dict)
    """Activity points per node."""

    dropped_records: int = 0
    """Retained records that produced no point."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_timestamp": self.run_timestamp.isoformat(),
            "state": self.state.value,
            "points_written": self.points_written,
            "activity_counts": dict(self.activity_counts),
            "dropped_records": self.dropped_records,
        }


@dataclass
class TaskOutcome:
    """Settled outcome of one top-level task."""

    name: str
    result: Any = None
    error: Optional[BaseException] = None

    @property
    def fulfilled(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        return "fulfilled" if self.fulfilled else "rejected"
