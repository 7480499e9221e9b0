"""
Activity - Reward aggregation.

Collapses the components of one reward batch into the tags and the
amount of a single point:

- one component: raw code mapped through REWARD_TYPE_EXPLORER
  (unrecognized code: the batch is dropped)
- several components: both categories are "mixed"
- amount: always the batch total
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from activity.types import MIXED_REWARD_TYPE, REWARD_TYPE_EXPLORER
from data_sources.models import RewardBatch


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewardSummary:
    """Aggregated view of one reward batch."""
    reward_type_poc: str
    reward_type_explorer: str
    amount: float

    @property
    def is_mixed(self) -> bool:
        return self.reward_type_poc == MIXED_REWARD_TYPE


class RewardAggregator:
    """Maps reward batches to a RewardSummary using a fixed category table."""

    def __init__(self, category_table: Optional[Mapping[str, str]] = None) -> None:
        self._table = dict(category_table if category_table is not None else REWARD_TYPE_EXPLORER)

    def explorer_category(self, reward_type: str) -> Optional[str]:
        return self._table.get(reward_type)

    def aggregate(self, batch: RewardBatch, node_id: Optional[str] = None) -> Optional[RewardSummary]:
        """
        Aggregate a reward batch.

        Returns:
            RewardSummary, or None if the batch must be dropped
        """
        if len(batch.rewards) > 1:
            logger.debug(
                f"Reward batch at {batch.time} for {node_id} has "
                f"{len(batch.rewards)} components: "
                f"{[r.type for r in batch.rewards]}"
            )
            return RewardSummary(
                reward_type_poc=MIXED_REWARD_TYPE,
                reward_type_explorer=MIXED_REWARD_TYPE,
                amount=batch.total_amount,
            )

        reward_type = batch.rewards[0].type
        explorer = self.explorer_category(reward_type)
        if explorer is None:
            logger.warning(
                f"Dropping reward batch at {batch.time} for {node_id}: "
                f"unrecognized reward type {reward_type!r} "
                f"(amount {batch.total_amount})"
            )
            return None

        return RewardSummary(
            reward_type_poc=reward_type,
            reward_type_explorer=explorer,
            amount=batch.total_amount,
        )
