"""Data access and caching interfaces."""

from dcalab.core.data.base import MarketDataProvider
from dcalab.core.data.cache import ParquetCache
from dcalab.core.data.eodhd_provider import EODHDProvider, provider_symbol
from dcalab.core.data.frames import dividends_from_frame, price_points_from_frame

__all__ = [
    "EODHDProvider",
    "MarketDataProvider",
    "ParquetCache",
    "dividends_from_frame",
    "price_points_from_frame",
    "provider_symbol",
]
