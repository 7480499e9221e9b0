"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the exporter.

- Loads configuration from the environment (.env supported)
- Lets flags override it
- Runs one export and maps the outcome to an exit code

============================================================
USAGE
============================================================
helium-exporter
helium-exporter --hotspots 112abc...,112def... --wallet 13xyz... --debug
python -m orchestrator.cli --lookback-hours 12 --log-format json

Exit codes: 0 success, 1 failed run, 130 interrupted.

============================================================
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .exceptions import ExporterError
from .job import run_job, setup_logging
from .models import ExporterConfig


logger = logging.getLogger(__name__)


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="helium-exporter",
        description="Export Helium network, wallet, price and hotspot activity metrics to InfluxDB",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration is read from the environment (HELIUM_HOTSPOT, HELIUM_WALLET,
INFLUX_HOST, INFLUX_TOKEN, INFLUX_ORG, INFLUX_BUCKET, ...) and a .env file.
Flags override the environment.

Examples:
  %(prog)s                                  # One run with environment settings
  %(prog)s --debug                          # Print points instead of writing them
  %(prog)s --hotspots A,B --lookback-hours 12
        """
    )

    # --------------------------------------------------------
    # Run Options
    # --------------------------------------------------------
    run_group = parser.add_argument_group("Run Options")

    run_group.add_argument(
        "--hotspots",
        type=str,
        metavar="IDS",
        help="Comma-separated hotspot addresses (env: HELIUM_HOTSPOT)",
    )

    run_group.add_argument(
        "--wallet",
        type=str,
        metavar="ADDRESS",
        help="Wallet address (env: HELIUM_WALLET)",
    )

    run_group.add_argument(
        "--lookback-hours",
        type=float,
        metavar="HOURS",
        help="Activity window in hours (env: HELIUM_ACTIVITY_LOOKBACK_HOURS, default: 4)",
    )

    run_group.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Print points to stdout instead of writing to InfluxDB (env: DEBUG_TO_CONSOLE)",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (env: LOG_LEVEL, default: INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        help="Logging format (env: LOG_FORMAT, default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 1.0.0",
    )

    return parser


def build_config(args: argparse.Namespace) -> ExporterConfig:
    """Environment configuration with CLI overrides applied."""
    return ExporterConfig.from_env().with_overrides(
        hotspots=args.hotspots,
        wallet=args.wallet,
        lookback_hours=args.lookback_hours,
        debug=args.debug,
        log_level=args.log_level,
        log_format=args.log_format,
    )


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    config = build_config(args)
    setup_logging(config.log_level, config.log_format)

    try:
        asyncio.run(run_job(config))
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except ExporterError as e:
        logger.error(f"Export failed: {e.message}")
        logger.debug(f"Failure details: {e.to_dict()}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
