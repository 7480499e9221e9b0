"""
Data Source Providers.
"""

from data_sources.providers.coingecko import CoinGeckoPriceSource
from data_sources.providers.helium import HeliumApiSource


__all__ = ["HeliumApiSource", "CoinGeckoPriceSource"]
