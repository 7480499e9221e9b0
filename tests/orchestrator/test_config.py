"""
Exporter Configuration and Run State Tests.
"""

import pytest

from orchestrator import (
    ExporterConfig,
    RunState,
    RunStateMachine,
    StateTransitionError,
)


ENV_VARS = [
    "HELIUM_HOTSPOT",
    "HELIUM_WALLET",
    "HELIUM_ACTIVITY_LOOKBACK_HOURS",
    "DEBUG_TO_CONSOLE",
    "HELIUM_API_URL",
    "COINGECKO_API_URL",
    "COINGECKO_API_KEY",
    "PRICE_ASSET_ID",
    "PRICE_CURRENCIES",
    "SOURCE_TIMEOUT_SECONDS",
    "SOURCE_MAX_RETRIES",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "INFLUX_HOST",
    "INFLUX_PORT",
    "INFLUX_TOKEN",
    "INFLUX_ORG",
    "INFLUX_BUCKET",
]


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def clean_env(monkeypatch):
    """Environment without any exporter variables."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ============================================================
# CONFIG TESTS
# ============================================================

class TestExporterConfig:
    """Tests for ExporterConfig."""

    def test_defaults(self, clean_env):
        """Test defaults with an empty environment."""
        config = ExporterConfig.from_env()

        assert config.hotspots == ()
        assert config.lookback_hours == 4.0
        assert config.debug is False
        assert config.helium_api_url == "https://api.helium.io/v1"
        assert config.price_asset_id == "helium"
        assert config.price_currencies == ("usd", "eur")
        assert config.influx.port == "8086"
        assert config.log_format == "text"

    def test_from_env(self, clean_env):
        """Test values read from the environment."""
        clean_env.setenv("HELIUM_HOTSPOT", "112a, 112b,")
        clean_env.setenv("HELIUM_WALLET", "13wallet")
        clean_env.setenv("HELIUM_ACTIVITY_LOOKBACK_HOURS", "6")
        clean_env.setenv("DEBUG_TO_CONSOLE", "1")
        clean_env.setenv("PRICE_CURRENCIES", "usd")
        clean_env.setenv("INFLUX_HOST", "db.local")

        config = ExporterConfig.from_env()

        assert config.hotspots == ("112a", "112b")
        assert config.wallet == "13wallet"
        assert config.lookback_hours == 6.0
        assert config.debug is True
        assert config.price_currencies == ("usd",)
        assert config.influx.url == "https://db.local:8086"

    def test_validate(self):
        """Test validation errors for missing nodes and wallet."""
        errors = ExporterConfig(lookback_hours=0).validate()

        assert any("HELIUM_HOTSPOT" in e for e in errors)
        assert any("HELIUM_WALLET" in e for e in errors)
        assert any("LOOKBACK" in e for e in errors)

    def test_valid(self):
        assert ExporterConfig(hotspots=("a",), wallet="w").validate() == []

    @pytest.mark.parametrize("currencies", [("usd", "source"), ("SOURCE",)])
    def test_reserved_currency_rejected(self, currencies):
        """Test a currency named like a price tag key is rejected."""
        errors = ExporterConfig(
            hotspots=("a",), wallet="w", price_currencies=currencies,
        ).validate()

        assert len(errors) == 1
        assert "reserved names" in errors[0]
        assert "usd" not in errors[0]

    def test_sink_validation_skipped_in_debug(self):
        """Test debug runs need no InfluxDB settings."""
        assert ExporterConfig(debug=True).validate_sink() == []
        assert ExporterConfig().validate_sink() != []

    def test_with_overrides_ignores_none(self):
        config = ExporterConfig(wallet="w").with_overrides(wallet=None, lookback_hours=2)

        assert config.wallet == "w"
        assert config.lookback_hours == 2


# ============================================================
# STATE MACHINE TESTS
# ============================================================

class TestRunStateMachine:
    """Tests for RunStateMachine."""

    def test_normal_path(self):
        machine = RunStateMachine()

        for state in (RunState.RUNNING, RunState.FLUSHING, RunState.DONE):
            machine.transition(state)

        assert machine.state == RunState.DONE
        assert [t.to_state for t in machine.history] == [
            RunState.RUNNING, RunState.FLUSHING, RunState.DONE,
        ]

    def test_debug_path(self):
        machine = RunStateMachine()
        machine.transition(RunState.RUNNING)
        machine.transition(RunState.DONE)

        assert machine.state.is_terminal()

    @pytest.mark.parametrize("path", [
        (RunState.FLUSHING,),
        (RunState.DONE,),
        (RunState.RUNNING, RunState.FAILED, RunState.RUNNING),
        (RunState.RUNNING, RunState.DONE, RunState.FLUSHING),
        (RunState.RUNNING, RunState.RUNNING),
    ])
    def test_illegal_transitions(self, path):
        machine = RunStateMachine()

        with pytest.raises(StateTransitionError):
            for state in path:
                machine.transition(state)
