"""
Snapshots Package - Point builders for network, account, price and node state.
"""

from snapshots.builders import (
    ACCOUNT_MEASUREMENT,
    HOTSPOT_MEASUREMENT,
    PRICE_MEASUREMENT,
    STATS_MEASUREMENT,
    build_account_point,
    build_network_stats_point,
    build_node_point,
    build_price_point,
    collect_account,
    collect_network_stats,
    collect_price,
)


__all__ = [
    "STATS_MEASUREMENT",
    "ACCOUNT_MEASUREMENT",
    "PRICE_MEASUREMENT",
    "HOTSPOT_MEASUREMENT",
    "build_network_stats_point",
    "build_account_point",
    "build_price_point",
    "build_node_point",
    "collect_network_stats",
    "collect_account",
    "collect_price",
]
