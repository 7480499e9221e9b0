"""
Activity Package - Turns a node's activity feed into metric points.

Quick Start:
    from activity import ActivityClassifier, WindowedActivityFetcher

    async def node_points(source, node, since):
        records = await WindowedActivityFetcher(source).fetch(node.address, since)
        return ActivityClassifier().classify_all(node.address, records, node)
"""

from activity.classifier import ActivityClassifier
from activity.fetcher import WindowedActivityFetcher
from activity.rewards import RewardAggregator, RewardSummary
from activity.types import (
    MIXED_REWARD_TYPE,
    REWARD_TYPE_EXPLORER,
    ActivityMeasurement,
    PocRole,
)


__all__ = [
    "ActivityClassifier",
    "WindowedActivityFetcher",
    "RewardAggregator",
    "RewardSummary",
    "ActivityMeasurement",
    "PocRole",
    "MIXED_REWARD_TYPE",
    "REWARD_TYPE_EXPLORER",
]
