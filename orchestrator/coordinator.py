"""
Orchestrator - Run Coordinator.

============================================================
RESPONSIBILITY
============================================================
Drives one collection run from configuration check to final flush.

    RUNNING   validate config, start marker + flush (non-debug)
              gather: one pipeline per node + three snapshot collectors
              write all points
    FLUSHING  completion marker + flush (non-debug)
    DONE

Per node: node snapshot -> windowed activity -> classification.

============================================================
FAILURE SEMANTICS
============================================================
- Invalid config: ConfigurationError before any source call
- The batch is fail-fast: the first branch error fails the run and
  the points of the other branches are discarded
- Branches return their own point lists; nothing is shared but the
  read-only run timestamp

============================================================
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from activity.classifier import ActivityClassifier
from activity.fetcher import WindowedActivityFetcher
from data_sources.providers.coingecko import CoinGeckoPriceSource
from data_sources.providers.helium import HeliumApiSource
from metrics_sink.point import PointBuilder
from metrics_sink.sink import MetricsSink
from snapshots.builders import (
    build_node_point,
    collect_account,
    collect_network_stats,
    collect_price,
)

from .exceptions import ConfigurationError
from .models import ExporterConfig, RunResult
from .state_machine import RunState, RunStateMachine


logger = logging.getLogger(__name__)


PROCESSING_MEASUREMENT = "helium_processing"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class NodeBatch:
    """Points produced by one node pipeline."""
    node_id: str
    snapshot: PointBuilder
    activity: List[PointBuilder] = field(default_factory=list)
    records: int = 0

    @property
    def dropped(self) -> int:
        return self.records - len(self.activity)


class RunCoordinator:
    """
    Single-use coordinator of one exporter run.

    The sink must already be open; the caller owns its lifetime.
    """

    def __init__(
        self,
        config: ExporterConfig,
        source: HeliumApiSource,
        price_source: CoinGeckoPriceSource,
        sink: MetricsSink,
        clock: Callable[[], datetime] = utc_now,
        classifier: Optional[ActivityClassifier] = None,
    ) -> None:
        self._config = config
        self._source = source
        self._price_source = price_source
        self._sink = sink
        self._clock = clock
        self._classifier = classifier or ActivityClassifier()
        self._fetcher = WindowedActivityFetcher(source)
        self._machine = RunStateMachine()
        self._run_timestamp: Optional[datetime] = None

    @property
    def state(self) -> RunState:
        return self._machine.state

    @property
    def run_timestamp(self) -> Optional[datetime]:
        return self._run_timestamp

    async def run(self) -> RunResult:
        """
        Execute the run.

        Returns:
            RunResult in state DONE

        Raises:
            ConfigurationError: Invalid monitored node list or wallet
            StateTransitionError: Coordinator already used
            DataSourceError, SinkError: First failure of the run
        """
        self._machine.transition(RunState.RUNNING)
        self._run_timestamp = run_ts = self._clock()

        errors = self._config.validate()
        if errors:
            self._machine.transition(RunState.FAILED, reason="invalid configuration")
            raise ConfigurationError(
                f"Invalid configuration: {'; '.join(errors)}",
                errors=errors,
            )

        since = run_ts - timedelta(hours=self._config.lookback_hours)
        logger.info("=" * 60)
        logger.info(f"HELIUM EXPORT RUN {run_ts.isoformat()}")
        logger.info(
            f"Nodes: {', '.join(self._config.hotspots)} | "
            f"window since {since.isoformat()} | debug={self._config.debug}"
        )
        logger.info("=" * 60)

        try:
            return await self._execute(run_ts, since)
        except Exception as e:
            if not self._machine.state.is_terminal():
                self._machine.transition(RunState.FAILED, reason=type(e).__name__)
            raise

    async def _execute(self, run_ts: datetime, since: datetime) -> RunResult:
        debug = self._config.debug
        hotspots = self._config.hotspots

        if not debug:
            self._sink.write_point(
                self._marker("started", run_ts).int_field("nodes", len(hotspots))
            )
            await self._sink.flush()

        results = await asyncio.gather(
            *(self._run_node(node_id, run_ts, since) for node_id in hotspots),
            collect_network_stats(self._source, run_ts),
            collect_account(self._source, self._config.wallet, run_ts),
            collect_price(
                self._price_source,
                self._config.price_asset_id,
                self._config.price_currencies,
                run_ts,
            ),
        )

        node_batches: List[NodeBatch] = list(results[:len(hotspots)])
        points: List[PointBuilder] = []
        for batch in node_batches:
            points.append(batch.snapshot)
            points.extend(batch.activity)
        points.extend(results[len(hotspots):])

        self._sink.write_points(points)

        if debug:
            self._machine.transition(RunState.DONE, reason="debug run")
        else:
            self._machine.transition(RunState.FLUSHING)
            self._sink.write_point(
                self._marker("completed", run_ts)
                .int_field("points", len(points))
                .int_field("nodes", len(hotspots))
            )
            await self._sink.flush()
            logger.info(f"Flushed {len(points)} points to {self._sink.name}")
            self._machine.transition(RunState.DONE)

        result = RunResult(
            run_timestamp=run_ts,
            state=self._machine.state,
            points_written=len(points),
            activity_counts={b.node_id: len(b.activity) for b in node_batches},
            dropped_records=sum(b.dropped for b in node_batches),
        )
        logger.info(
            f"Run complete: {result.points_written} points, "
            f"{result.dropped_records} records dropped"
        )
        return result

    async def _run_node(self, node_id: str, run_ts: datetime, since: datetime) -> NodeBatch:
        node = await self._source.get_node(node_id)
        snapshot = build_node_point(node, run_ts)

        records = await self._fetcher.fetch(node_id, since)
        activity = self._classifier.classify_all(node_id, records, node)

        logger.info(
            f"[{node.display_name}] {len(records)} records -> {len(activity)} activity points"
        )
        return NodeBatch(
            node_id=node_id,
            snapshot=snapshot,
            activity=activity,
            records=len(records),
        )

    def _marker(self, status: str, run_ts: datetime) -> PointBuilder:
        return PointBuilder(PROCESSING_MEASUREMENT).timestamp(run_ts).tag("status", status)
