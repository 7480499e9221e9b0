"""
Metrics Sink - InfluxDB connection settings.
"""

import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv


DEFAULT_INFLUX_PORT = "8086"


@dataclass(frozen=True)
class InfluxSettings:
    """Connection settings for the InfluxDB sink."""

    host: str = ""
    port: str = DEFAULT_INFLUX_PORT
    token: str = ""
    org: str = ""
    bucket: str = ""
    timeout_ms: int = 30_000

    @property
    def url(self) -> str:
        return f"https://{self.host}:{self.port}"

    @classmethod
    def from_env(cls) -> "InfluxSettings":
        """Load settings from environment variables (and a .env file if present)."""
        load_dotenv()
        return cls(
            host=os.getenv("INFLUX_HOST", ""),
            port=os.getenv("INFLUX_PORT") or DEFAULT_INFLUX_PORT,
            token=os.getenv("INFLUX_TOKEN", ""),
            org=os.getenv("INFLUX_ORG", ""),
            bucket=os.getenv("INFLUX_BUCKET", ""),
            timeout_ms=int(os.getenv("INFLUX_TIMEOUT_MS", "30000")),
        )

    def validate(self) -> List[str]:
        """Validate settings, return list of errors."""
        errors = []
        for name, value in (
            ("INFLUX_HOST", self.host),
            ("INFLUX_TOKEN", self.token),
            ("INFLUX_ORG", self.org),
            ("INFLUX_BUCKET", self.bucket),
        ):
            if not value:
                errors.append(f"{name} is not set")

        if not self.port.isdigit():
            errors.append(f"INFLUX_PORT must be numeric, got {self.port!r}")

        return errors
