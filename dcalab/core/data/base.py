"""Abstract interfaces for market data providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

import pandas as pd


class MarketDataProvider(ABC):
    """Abstract interface for daily price and dividend providers."""

    @abstractmethod
    def fetch_prices(self, symbol: str, start: str, end: str) -> pd.DataFrame:
        """
        Fetch daily prices for a symbol over an inclusive date range.

        Args:
            symbol: Ticker, with or without an exchange suffix.
            start: Inclusive start date in ``YYYY-MM-DD`` format.
            end: Inclusive end date in ``YYYY-MM-DD`` format.

        Returns:
            A dataframe with UTC datetime index named ``date`` and columns
            ``open``, ``high``, ``low``, ``close``, ``volume``. ``close`` is
            split and dividend adjusted.
        """

    @abstractmethod
    def fetch_dividends(self, symbol: str, start: str, end: str) -> pd.DataFrame:
        """
        Fetch cash dividends with an ex-date inside an inclusive date range.

        Returns:
            A dataframe indexed by UTC ex-date named ``date`` with columns
            ``amount`` (per share) and ``payment_date``. Symbols that never
            paid a dividend yield an empty frame.
        """
