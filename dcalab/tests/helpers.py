"""Test helpers for deterministic simulation cases."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from datetime import date, timedelta

import pandas as pd

from dcalab.core.simulation.types import DividendRecord, PricePoint


def make_point(day: date, close: float) -> PricePoint:
    """Build a flat bar closing at ``close``."""
    return PricePoint(date=day, open=close, high=close, low=close, close=close, volume=1_000.0)


def make_daily_prices(
    start: date,
    end: date,
    close: float | Callable[[int, date], float] = 100.0,
    weekdays_only: bool = True,
) -> list[PricePoint]:
    """
    Build a daily price history between ``start`` and ``end`` inclusive.

    ``close`` is either a constant or a function of ``(index, day)``.
    """
    points: list[PricePoint] = []
    current = start
    while current <= end:
        if not weekdays_only or current.weekday() < 5:
            value = close(len(points), current) if callable(close) else close
            points.append(make_point(current, float(value)))
        current += timedelta(days=1)
    return points


def make_prices(closes_by_date: Sequence[tuple[date, float]]) -> list[PricePoint]:
    """Build bars from explicit ``(date, close)`` pairs."""
    return [make_point(day, close) for day, close in closes_by_date]


def make_dividend(ex_date: date, amount: float) -> DividendRecord:
    return DividendRecord(ex_date=ex_date, amount=amount)


def make_price_frame(close_values: Sequence[float], start: str = "2020-01-01") -> pd.DataFrame:
    """Build deterministic price dataframe from close values."""
    index = pd.date_range(start, periods=len(close_values), freq="D", tz="UTC", name="date")
    close = pd.Series(close_values, index=index, dtype=float)
    return pd.DataFrame(
        {
            "open": close,
            "high": close,
            "low": close,
            "close": close,
            "volume": 1_000.0,
        },
        index=index,
    )


def make_dividend_frame(rows: Sequence[tuple[str, float]]) -> pd.DataFrame:
    """Build a dividend dataframe from ``(ex_date, amount)`` pairs."""
    index = pd.DatetimeIndex(
        pd.to_datetime([ex_date for ex_date, _ in rows], utc=True), name="date"
    )
    return pd.DataFrame(
        {
            "amount": pd.Series([float(amount) for _, amount in rows], index=index, dtype=float),
            "payment_date": pd.Series(pd.NaT, index=index, dtype="datetime64[ns, UTC]"),
        }
    )


def synthetic_price_frame(start: str, end: str, base: float = 100.0) -> pd.DataFrame:
    """Business-day price frame rising 0.05 per bar, used as a provider stub."""
    index = pd.bdate_range(start=start, end=end, tz="UTC", name="date")
    close = pd.Series(range(len(index)), index=index, dtype=float) * 0.05 + base
    return pd.DataFrame(
        {
            "open": close,
            "high": close + 1.0,
            "low": close - 1.0,
            "close": close,
            "volume": 1_000.0,
        },
        index=index,
    )


def synthetic_dividend_frame(start: str, end: str, amount: float = 0.5) -> pd.DataFrame:
    """Quarterly dividends on the 15th of Mar/Jun/Sep/Dec inside ``[start, end]``."""
    start_ts = pd.to_datetime(start, utc=True)
    end_ts = pd.to_datetime(end, utc=True)
    ex_dates = [
        timestamp + pd.Timedelta(days=14)
        for timestamp in pd.date_range(start_ts.normalize().replace(day=1), end_ts, freq="MS")
        if timestamp.month in (3, 6, 9, 12)
    ]
    rows = [
        (ex_date.strftime("%Y-%m-%d"), amount)
        for ex_date in ex_dates
        if start_ts <= ex_date <= end_ts
    ]
    return make_dividend_frame(rows)


def generate_price_history(start: date, years: int, base: float = 100.0) -> list[PricePoint]:
    """Weekday bars covering ``years * 365`` calendar days with a gentle sine drift."""
    end = start + timedelta(days=years * 365 - 1)
    return make_daily_prices(
        start,
        end,
        close=lambda _, day: base * (1.0 + math.sin((day - start).days / 30.0) * 0.1),
    )
