"""
Snapshots - Points describing state at the run timestamp.

============================================================
PURPOSE
============================================================
Each builder turns one source snapshot into exactly one point stamped
with the run timestamp (not the time the data was fetched):

    helium_stats     network-wide counters
    helium_account   monitored wallet balances
    helium_price     reference price of HNT
    helium_hotspot   per-node snapshot

The build_* functions are pure; the collect_* coroutines fetch and
build, letting source errors propagate.

============================================================
"""

import logging
from datetime import datetime
from typing import Mapping, Sequence

from data_sources.models import Account, NetworkStats, Node
from data_sources.providers.coingecko import CoinGeckoPriceSource
from data_sources.providers.helium import HeliumApiSource
from metrics_sink.point import PointBuilder


logger = logging.getLogger(__name__)


STATS_MEASUREMENT = "helium_stats"
ACCOUNT_MEASUREMENT = "helium_account"
PRICE_MEASUREMENT = "helium_price"
HOTSPOT_MEASUREMENT = "helium_hotspot"

DEFAULT_PRICE_SOURCE = "CoinGecko"

# Tag keys of helium_price; currency field names must not reuse them
PRICE_TAG_KEYS = frozenset({"source"})


# =============================================================
# BUILDERS
# =============================================================

def build_network_stats_point(stats: NetworkStats, run_timestamp: datetime) -> PointBuilder:
    counts = stats.counts
    return (
        PointBuilder(STATS_MEASUREMENT)
        .timestamp(run_timestamp)
        .int_field("transactions", counts.transactions)
        .int_field("challenges", counts.challenges)
        .int_field("blocks", counts.blocks)
        .int_field("challenges_active", stats.challenge_counts.active)
        .int_field("hotspots", counts.hotspots)
        .int_field("hotspots_online", counts.hotspots_online)
        .int_field("hotspots_dataonly", counts.hotspots_dataonly)
        .float_field("block_time_avg", stats.block_times.last_day.avg)
    )


def build_account_point(account: Account, run_timestamp: datetime) -> PointBuilder:
    """HNT and HST balances in whole tokens, data credits as DC."""
    return (
        PointBuilder(ACCOUNT_MEASUREMENT)
        .timestamp(run_timestamp)
        .tag("account", account.address)
        .float_field("balance_hnt", account.balance_hnt)
        .float_field("balance_staked_hnt", account.staked_balance_hnt)
        .float_field("balance_sec_hst", account.sec_balance_hst)
        .float_field("balance_dc_dc", account.dc_balance_dc)
    )


def build_price_point(
    prices: Mapping[str, float],
    run_timestamp: datetime,
    source: str = DEFAULT_PRICE_SOURCE,
) -> PointBuilder:
    point = PointBuilder(PRICE_MEASUREMENT).timestamp(run_timestamp).tag("source", source)
    for currency, value in prices.items():
        point.float_field(currency, value)
    return point


def build_node_point(node: Node, run_timestamp: datetime) -> PointBuilder:
    """
    Snapshot of one monitored node.

    Coordinates are written as tags, so they end up as strings.
    Optional attributes are only written when the API reports them.
    """
    point = (
        PointBuilder(HOTSPOT_MEASUREMENT)
        .timestamp(run_timestamp)
        .tag("hotspot_id", node.address)
        .tag("hotspot_name", node.display_name)
        .tag("geotext", node.geotext)
    )
    if node.lat is not None:
        point.tag("latitude", node.lat)
    if node.lng is not None:
        point.tag("longitude", node.lng)
    if node.mode:
        point.tag("mode", node.mode)

    if node.reward_scale is not None:
        point.float_field("reward_scale", node.reward_scale)
    if node.score is not None:
        point.float_field("score", node.score)
    if node.score_update_height is not None:
        point.int_field("score_update_height", node.score_update_height)
    point.int_field("last_change_block", node.last_change_block)
    if node.is_online is not None:
        point.bool_field("online", node.is_online)
    return point


# =============================================================
# COLLECTORS
# =============================================================

async def collect_network_stats(source: HeliumApiSource, run_timestamp: datetime) -> PointBuilder:
    stats = await source.get_network_stats()
    logger.debug(f"Network stats: {stats.counts.hotspots} hotspots, {stats.counts.blocks} blocks")
    return build_network_stats_point(stats, run_timestamp)


async def collect_account(
    source: HeliumApiSource,
    account_id: str,
    run_timestamp: datetime,
) -> PointBuilder:
    account = await source.get_account(account_id)
    return build_account_point(account, run_timestamp)


async def collect_price(
    price_source: CoinGeckoPriceSource,
    asset_id: str,
    currencies: Sequence[str],
    run_timestamp: datetime,
) -> PointBuilder:
    prices = await price_source.get_price(asset_id, currencies)
    logger.debug(f"{price_source.display_name} {asset_id} price: {prices}")
    return build_price_point(prices, run_timestamp, source=price_source.display_name)
