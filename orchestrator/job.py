"""
Orchestrator - Job.

============================================================
RESPONSIBILITY
============================================================
Process-level entry of one export.

- Sets up logging
- Builds the sink and keeps it open around the top-level tasks
- Runs top-level tasks with settle-all semantics: every task is
  awaited to completion and its outcome logged, then the first
  rejection fails the job

Top-level tasks today: "Helium" (one RunCoordinator run).

============================================================
"""

import asyncio
import json
import logging
import sys
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Mapping, Optional

from data_sources.providers.coingecko import CoinGeckoPriceSource
from data_sources.providers.helium import HeliumApiSource
from metrics_sink.console import ConsoleSink
from metrics_sink.sink import InfluxSink, MetricsSink

from .coordinator import RunCoordinator, utc_now
from .exceptions import ConfigurationError, JobFailedError
from .models import ExporterConfig, RunResult, TaskOutcome


logger = logging.getLogger(__name__)


HELIUM_TASK = "Helium"


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """
    Set up process logging.

    Args:
        level: Log level
        log_format: Output format (json or text)

    Returns:
        Configured logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("orchestrator")


# ============================================================
# SETTLE-ALL
# ============================================================

async def settle_all(tasks: Mapping[str, Awaitable[Any]]) -> List[TaskOutcome]:
    """
    Await every task to completion, whatever the others do.

    Returns:
        One TaskOutcome per task, in the given order
    """
    names = list(tasks)
    results = await asyncio.gather(*tasks.values(), return_exceptions=True)

    outcomes = []
    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            outcome = TaskOutcome(name=name, error=result)
            logger.error(f"{name}: {outcome.status} ({type(result).__name__}: {result})")
        else:
            outcome = TaskOutcome(name=name, result=result)
            logger.info(f"{name}: {outcome.status}")
        outcomes.append(outcome)

    return outcomes


def first_failure(outcomes: List[TaskOutcome]) -> Optional[TaskOutcome]:
    for outcome in outcomes:
        if not outcome.fulfilled:
            return outcome
    return None


# ============================================================
# JOB
# ============================================================

def build_sink(config: ExporterConfig) -> MetricsSink:
    """
    Build the sink for a run.

    Raises:
        ConfigurationError: If InfluxDB settings are incomplete
    """
    if config.debug:
        return ConsoleSink()

    errors = config.validate_sink()
    if errors:
        raise ConfigurationError(
            f"Invalid sink configuration: {'; '.join(errors)}",
            errors=errors,
        )
    return InfluxSink(config.influx)


async def run_export(
    config: ExporterConfig,
    sink: MetricsSink,
    source: Optional[HeliumApiSource] = None,
    price_source: Optional[CoinGeckoPriceSource] = None,
    clock: Callable[[], datetime] = utc_now,
) -> RunResult:
    """Run one coordinator against an open sink."""
    if price_source is None:
        price_source = CoinGeckoPriceSource(
            base_url=config.coingecko_api_url,
            api_key=config.coingecko_api_key,
            timeout=config.source_timeout_seconds,
            max_retries=config.source_max_retries,
        )

    if source is not None:
        return await RunCoordinator(config, source, price_source, sink, clock).run()

    async with HeliumApiSource(
        base_url=config.helium_api_url,
        timeout=config.source_timeout_seconds,
        max_retries=config.source_max_retries,
    ) as helium:
        try:
            result = await RunCoordinator(config, helium, price_source, sink, clock).run()
        finally:
            logger.debug(f"[{helium.name}] Request stats: {helium.get_stats()}")

    logger.debug(f"Run result: {result.to_dict()}")
    return result


async def run_job(
    config: ExporterConfig,
    sink: Optional[MetricsSink] = None,
    source: Optional[HeliumApiSource] = None,
    price_source: Optional[CoinGeckoPriceSource] = None,
    clock: Callable[[], datetime] = utc_now,
) -> List[TaskOutcome]:
    """
    Run all top-level tasks.

    Raises:
        JobFailedError: With the message of the first rejected task
    """
    if sink is None:
        try:
            sink = build_sink(config)
        except ConfigurationError as e:
            logger.error(f"{HELIUM_TASK}: rejected ({e.message})")
            raise JobFailedError(e.message, task_name=HELIUM_TASK, cause=e) from e

    async with sink:
        outcomes = await settle_all({
            HELIUM_TASK: run_export(config, sink, source, price_source, clock),
        })

    failed = first_failure(outcomes)
    if failed is not None:
        raise JobFailedError(
            getattr(failed.error, "message", str(failed.error)),
            task_name=failed.name,
            cause=failed.error,
        ) from failed.error

    return outcomes


def handler(event: Optional[Mapping[str, Any]] = None, context: Any = None) -> str:
    """
    Scheduled-invocation entry point.

    The event and context are accepted for the scheduler's calling
    convention and ignored.

    Returns:
        "Done" on success

    Raises:
        JobFailedError: If any top-level task failed
    """
    config = ExporterConfig.from_env()
    setup_logging(config.log_level, config.log_format)
    asyncio.run(run_job(config))
    return "Done"
