"""Parquet caching for daily prices and dividends."""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path
from typing import Literal

import pandas as pd

from dcalab.core.data.frames import (
    empty_dividend_frame,
    empty_price_frame,
    normalize_dividend_frame,
    normalize_price_frame,
)
from dcalab.core.utils.errors import CacheError
from dcalab.core.utils.logging import get_logger

DatasetKind = Literal["prices", "dividends"]
RangeFetcher = Callable[[str, str, str], pd.DataFrame]

_SYMBOL_SANITIZE_PATTERN = re.compile(r"[^A-Za-z0-9_.-]+")
_NORMALIZERS: dict[str, Callable[[pd.DataFrame], pd.DataFrame]] = {
    "prices": normalize_price_frame,
    "dividends": normalize_dividend_frame,
}
_EMPTY_FRAMES: dict[str, Callable[[], pd.DataFrame]] = {
    "prices": empty_price_frame,
    "dividends": empty_dividend_frame,
}

LOGGER = get_logger("dcalab.data.cache")


def _to_utc_timestamp(date_str: str) -> pd.Timestamp:
    """Convert a date string to a UTC timestamp at midnight."""
    timestamp = pd.to_datetime(date_str, utc=True, errors="raise")
    if isinstance(timestamp, pd.DatetimeIndex):
        if timestamp.empty:
            raise ValueError("Date conversion failed for empty date input.")
        return timestamp[0]
    return timestamp


def _sanitize_symbol(symbol: str) -> str:
    """Sanitize symbol names so they are safe as filenames."""
    clean_symbol = _SYMBOL_SANITIZE_PATTERN.sub("_", symbol.strip().upper())
    if not clean_symbol:
        raise ValueError("Symbol cannot be empty.")
    return clean_symbol


class ParquetCache:
    """Handle local Parquet caching of per-symbol prices and dividends."""

    def __init__(self, cache_dir: Path) -> None:
        """
        Initialize a cache manager.

        Args:
            cache_dir: Directory where per-symbol parquet files are stored.
        """
        self.cache_dir = cache_dir.expanduser().resolve()
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def cache_path(self, symbol: str, kind: DatasetKind = "prices") -> Path:
        """Return the parquet file path for one symbol dataset."""
        return self.cache_dir / f"{_sanitize_symbol(symbol)}.{kind}.parquet"

    def load(self, symbol: str, kind: DatasetKind = "prices") -> pd.DataFrame | None:
        """
        Load cached data for a symbol.

        Returns:
            Normalized dataframe if cache exists, else ``None``.
        """
        path = self.cache_path(symbol, kind)
        if not path.exists():
            return None

        try:
            cached = pd.read_parquet(path, engine="pyarrow")
        except Exception as exc:
            raise CacheError(
                f"Failed to read {kind} cache for symbol '{symbol}' at {path}: {exc}"
            ) from exc
        return _NORMALIZERS[kind](cached)

    def save(self, symbol: str, frame: pd.DataFrame, kind: DatasetKind = "prices") -> None:
        """Save normalized symbol data to cache."""
        normalized = _NORMALIZERS[kind](frame)
        path = self.cache_path(symbol, kind)
        try:
            normalized.to_parquet(path, engine="pyarrow", index=True)
        except Exception as exc:
            raise CacheError(
                f"Failed to write {kind} cache for symbol '{symbol}' at {path}: {exc}"
            ) from exc

    def get_prices(self, symbol: str, start: str, end: str, fetcher: RangeFetcher) -> pd.DataFrame:
        """
        Load prices from cache or provider, and return the requested range.

        If cache coverage is incomplete, only missing head/tail ranges are fetched.

        Args:
            symbol: Ticker.
            start: Inclusive start date in ``YYYY-MM-DD`` format.
            end: Inclusive end date in ``YYYY-MM-DD`` format.
            fetcher: Function that fetches prices for a range.

        Returns:
            Price dataframe for the requested range.
        """
        return self._get_range(symbol, start, end, fetcher, "prices")

    def get_dividends(
        self,
        symbol: str,
        start: str,
        end: str,
        fetcher: RangeFetcher,
    ) -> pd.DataFrame:
        """
        Load dividends from cache or provider, and return the requested range.

        Coverage is inferred from the first and last cached ex-dates, so the
        dividend-free stretch after the latest payout is re-requested each time.
        """
        return self._get_range(symbol, start, end, fetcher, "dividends")

    def _get_range(
        self,
        symbol: str,
        start: str,
        end: str,
        fetcher: RangeFetcher,
        kind: DatasetKind,
    ) -> pd.DataFrame:
        normalize = _NORMALIZERS[kind]
        start_ts = _to_utc_timestamp(start)
        end_ts = _to_utc_timestamp(end)
        if start_ts > end_ts:
            raise ValueError("Start date must be before or equal to end date.")

        cached = self.load(symbol, kind)
        fetched_new_data = False
        merged_frame: pd.DataFrame

        if cached is None or cached.empty:
            LOGGER.debug("Cache miss for %s %s [%s, %s]", symbol, kind, start, end)
            merged_frame = normalize(
                fetcher(symbol, start_ts.strftime("%Y-%m-%d"), end_ts.strftime("%Y-%m-%d"))
            )
            fetched_new_data = True
        else:
            frames: list[pd.DataFrame] = [cached]
            cache_start = cached.index.min()
            cache_end = cached.index.max()

            if start_ts < cache_start:
                head_end = cache_start - pd.Timedelta(days=1)
                fetched_head = normalize(
                    fetcher(symbol, start_ts.strftime("%Y-%m-%d"), head_end.strftime("%Y-%m-%d"))
                )
                if not fetched_head.empty:
                    frames.append(fetched_head)
                fetched_new_data = True

            if end_ts > cache_end:
                tail_start = cache_end + pd.Timedelta(days=1)
                fetched_tail = normalize(
                    fetcher(symbol, tail_start.strftime("%Y-%m-%d"), end_ts.strftime("%Y-%m-%d"))
                )
                if not fetched_tail.empty:
                    frames.append(fetched_tail)
                fetched_new_data = True

            merged_frame = normalize(pd.concat(frames))

        if fetched_new_data:
            self.save(symbol, merged_frame, kind)

        in_range = merged_frame.loc[
            (merged_frame.index >= start_ts) & (merged_frame.index <= end_ts)
        ]
        if in_range.empty:
            return _EMPTY_FRAMES[kind]()
        return in_range
