"""
Data Sources Package - Clients for the Helium network and the price reference.

Quick Start:
    from data_sources import HeliumApiSource, CoinGeckoPriceSource

    async def snapshot(node_id):
        async with HeliumApiSource() as helium:
            node = await helium.get_node(node_id)
            page = await helium.get_node_activity_page(node_id)
            print(node.display_name, len(page.records), page.has_more)

        prices = await CoinGeckoPriceSource().get_price("helium", ["usd", "eur"])

Retries on transport errors, 5xx and 429 happen inside the clients;
everything else surfaces as a DataSourceError subclass.
"""

from data_sources.base import BaseApiSource
from data_sources.exceptions import (
    DataSourceError,
    FetchError,
    NormalizationError,
    RateLimitError,
)
from data_sources.models import (
    ACTIVITY_VARIANTS,
    BONES_PER_HNT,
    Account,
    Activity,
    ActivityPage,
    ActivityRecord,
    DataTransferSettlement,
    Geocode,
    NetworkStats,
    Node,
    PathHop,
    PocReceipt,
    PocRequest,
    RewardBatch,
    RewardComponent,
    StateChannelSummary,
    UnknownActivity,
    Witness,
    parse_activity,
)
from data_sources.providers import CoinGeckoPriceSource, HeliumApiSource


__version__ = "1.0.0"

__all__ = [
    # Base
    "BaseApiSource",

    # Models
    "Node",
    "Geocode",
    "Account",
    "NetworkStats",
    "ActivityPage",
    "ActivityRecord",
    "Activity",
    "PocRequest",
    "PocReceipt",
    "PathHop",
    "Witness",
    "RewardBatch",
    "RewardComponent",
    "DataTransferSettlement",
    "StateChannelSummary",
    "UnknownActivity",
    "ACTIVITY_VARIANTS",
    "BONES_PER_HNT",
    "parse_activity",

    # Exceptions
    "DataSourceError",
    "FetchError",
    "NormalizationError",
    "RateLimitError",

    # Providers
    "HeliumApiSource",
    "CoinGeckoPriceSource",
]
