"""
Activity - Classification of activity records into points.

============================================================
PURPOSE
============================================================
Turns one activity record of a node into at most one point, resolving
the node's role in the event.

============================================================
DISPATCH ORDER (first match wins)
============================================================
1. PoC receipt, challenger == node          -> challenged_beaconer
2. PoC receipt, first hop challengee == node -> broadcast_beacon
3. PoC receipt, node witnessed first hop     -> witnessed_beacon
4. PoC request, challenger == node           -> constructed_challenge
5. Reward batch                              -> reward point (or dropped)
6. Data-transfer settlement                  -> data transfer point
7. Anything else                             -> unknown activity point

Rules 1-4 do not overlap in real data, but a malformed record may
match several; the order above decides.

============================================================
INVARIANTS
============================================================
- Pure: no state, same record -> same tags and fields
- Never raises for a parsed record
- Every point: hotspot_id tag, event=True field, record time

============================================================
"""

import logging
from typing import Iterable, Optional

from activity.rewards import RewardAggregator
from activity.types import (
    FIELD_DATA_CREDITS,
    FIELD_EVENT,
    FIELD_PACKETS,
    FIELD_REWARD_AMOUNT,
    FIELD_WITNESSES,
    TAG_BEACONER,
    TAG_GEOTEXT,
    TAG_HOTSPOT_ID,
    TAG_HOTSPOT_NAME,
    TAG_POC_RESULT,
    TAG_POC_ROLE,
    TAG_REWARD_TYPE_EXPLORER,
    TAG_REWARD_TYPE_POC,
    ActivityMeasurement,
    PocRole,
)
from data_sources.models import (
    ActivityRecord,
    DataTransferSettlement,
    Node,
    PocReceipt,
    PocRequest,
    RewardBatch,
)
from metrics_sink.point import PointBuilder


logger = logging.getLogger(__name__)


class ActivityClassifier:
    """Classifies activity records of a node into metric points."""

    def __init__(self, reward_aggregator: Optional[RewardAggregator] = None) -> None:
        self._rewards = reward_aggregator or RewardAggregator()

    def classify(
        self,
        node_id: str,
        record: ActivityRecord,
        node: Optional[Node] = None,
    ) -> Optional[PointBuilder]:
        """
        Classify one record.

        Args:
            node_id: Identifier of the node whose feed the record came from
            record: Parsed activity record
            node: Node snapshot, adds name/location tags when given

        Returns:
            PointBuilder, or None when the record is dropped
        """
        if isinstance(record, PocReceipt):
            point = self._classify_receipt(node_id, record)
        elif isinstance(record, PocRequest) and record.challenger == node_id:
            point = self._poc_point(PocRole.CONSTRUCTED_CHALLENGE)
        elif isinstance(record, RewardBatch):
            point = self._classify_reward(node_id, record)
            if point is None:
                return None
        elif isinstance(record, DataTransferSettlement):
            summary = record.summaries[0]
            point = (
                PointBuilder(ActivityMeasurement.DATA_TRANSFER.value)
                .int_field(FIELD_PACKETS, summary.num_packets)
                .int_field(FIELD_DATA_CREDITS, summary.num_dcs)
            )
        else:
            point = None

        if point is None:
            point = self._unknown_point(node_id, record)

        return self._finish(point, node_id, record, node)

    def classify_all(
        self,
        node_id: str,
        records: Iterable[ActivityRecord],
        node: Optional[Node] = None,
    ) -> list[PointBuilder]:
        """Classify a sequence of records, skipping dropped ones."""
        points = []
        for record in records:
            point = self.classify(node_id, record, node)
            if point is not None:
                points.append(point)
        return points

    # =========================================================
    # VARIANT HANDLERS
    # =========================================================

    def _classify_receipt(self, node_id: str, record: PocReceipt) -> Optional[PointBuilder]:
        hop = record.first_hop

        if record.challenger == node_id:
            role = PocRole.CHALLENGED_BEACONER
        elif hop.challengee == node_id:
            role = PocRole.BROADCAST_BEACON
        elif any(w.gateway == node_id for w in hop.witnesses):
            return (
                self._poc_point(PocRole.WITNESSED_BEACON)
                .tag(TAG_POC_RESULT, hop.result)
                .tag(TAG_BEACONER, hop.challengee)
                .int_field(FIELD_WITNESSES, len(hop.witnesses))
            )
        else:
            return None

        return (
            self._poc_point(role)
            .tag(TAG_POC_RESULT, hop.result)
            .int_field(FIELD_WITNESSES, len(hop.witnesses))
        )

    def _classify_reward(self, node_id: str, record: RewardBatch) -> Optional[PointBuilder]:
        summary = self._rewards.aggregate(record, node_id)
        if summary is None:
            return None
        return (
            PointBuilder(ActivityMeasurement.REWARD.value)
            .tag(TAG_REWARD_TYPE_POC, summary.reward_type_poc)
            .tag(TAG_REWARD_TYPE_EXPLORER, summary.reward_type_explorer)
            .float_field(FIELD_REWARD_AMOUNT, summary.amount)
        )

    def _poc_point(self, role: PocRole) -> PointBuilder:
        return PointBuilder(ActivityMeasurement.POC.value).tag(TAG_POC_ROLE, role.value)

    def _unknown_point(self, node_id: str, record: ActivityRecord) -> PointBuilder:
        logger.warning(
            f"Unclassified activity {record.type!r} for {node_id} at {record.time}"
        )
        logger.debug(f"Unclassified activity payload: {record!r}")
        return PointBuilder(ActivityMeasurement.UNKNOWN.value)

    # =========================================================
    # COMMON TAGS / FIELDS
    # =========================================================

    def _finish(
        self,
        point: PointBuilder,
        node_id: str,
        record: ActivityRecord,
        node: Optional[Node],
    ) -> PointBuilder:
        point.tag(TAG_HOTSPOT_ID, node_id)
        if node is not None:
            point.tag(TAG_HOTSPOT_NAME, node.display_name)
            point.tag(TAG_GEOTEXT, node.geotext)
        point.bool_field(FIELD_EVENT, True)
        point.timestamp(record.time)
        return point
