"""Normalization of market data frames and conversion to simulation inputs."""

from __future__ import annotations

import pandas as pd

from dcalab.core.simulation.types import DividendRecord, PricePoint

PRICE_COLUMNS: tuple[str, str, str, str, str] = ("open", "high", "low", "close", "volume")
DIVIDEND_COLUMNS: tuple[str, str] = ("amount", "payment_date")


def empty_price_frame() -> pd.DataFrame:
    """Create an empty price dataframe with a UTC datetime index."""
    empty_index = pd.DatetimeIndex([], tz="UTC", name="date")
    return pd.DataFrame(columns=list(PRICE_COLUMNS), index=empty_index, dtype=float)


def empty_dividend_frame() -> pd.DataFrame:
    """Create an empty dividend dataframe indexed by UTC ex-date."""
    empty_index = pd.DatetimeIndex([], tz="UTC", name="date")
    return pd.DataFrame(
        {
            "amount": pd.Series([], index=empty_index, dtype=float),
            "payment_date": pd.Series([], index=empty_index, dtype="datetime64[ns, UTC]"),
        }
    )


def _utc_date_index(frame: pd.DataFrame, kind: str) -> pd.DataFrame:
    """Move a ``date`` column (or existing index) to a sorted, de-duplicated UTC index."""
    normalized = frame.copy()
    if "date" in normalized.columns:
        normalized["date"] = pd.to_datetime(normalized["date"], utc=True, errors="coerce")
        normalized = normalized.set_index("date")
    elif not isinstance(normalized.index, pd.DatetimeIndex):
        raise ValueError(f"{kind} dataframe must have a DatetimeIndex or a 'date' column.")
    else:
        normalized.index = pd.to_datetime(normalized.index, utc=True, errors="coerce")

    normalized = normalized.loc[~normalized.index.isna()]
    normalized.index.name = "date"
    return normalized


def normalize_price_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize data to the UTC-indexed price format.

    Rows without a positive close are dropped; duplicate dates keep the last row.
    """
    if frame.empty:
        return empty_price_frame()

    normalized = _utc_date_index(frame, "Price")
    for column in PRICE_COLUMNS:
        if column not in normalized.columns:
            normalized[column] = pd.NA
        normalized[column] = pd.to_numeric(normalized[column], errors="coerce")

    normalized = normalized.dropna(subset=["close"])
    normalized = normalized.loc[normalized["close"] > 0]
    for column in ("open", "high", "low"):
        normalized[column] = normalized[column].fillna(normalized["close"])
    normalized["volume"] = normalized["volume"].fillna(0.0)
    normalized = normalized.loc[:, list(PRICE_COLUMNS)].astype(float)
    normalized = normalized.sort_index()
    normalized = normalized.loc[~normalized.index.duplicated(keep="last")]

    if normalized.empty:
        return empty_price_frame()
    return normalized


def normalize_dividend_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize data to the ex-date indexed dividend format.

    Non-positive amounts are dropped. Several records on one ex-date are kept;
    the simulation sums them.
    """
    if frame.empty:
        return empty_dividend_frame()

    normalized = _utc_date_index(frame, "Dividend")
    if "amount" not in normalized.columns:
        raise ValueError("Dividend dataframe must have an 'amount' column.")
    normalized["amount"] = pd.to_numeric(normalized["amount"], errors="coerce")
    if "payment_date" not in normalized.columns:
        normalized["payment_date"] = pd.NaT
    normalized["payment_date"] = pd.to_datetime(
        normalized["payment_date"], utc=True, errors="coerce"
    )

    normalized = normalized.dropna(subset=["amount"])
    normalized = normalized.loc[normalized["amount"] > 0, list(DIVIDEND_COLUMNS)]
    normalized = normalized.sort_index(kind="stable")

    if normalized.empty:
        return empty_dividend_frame()
    return normalized


def price_points_from_frame(frame: pd.DataFrame) -> list[PricePoint]:
    """Convert a normalized price frame into chronological ``PricePoint`` values."""
    normalized = normalize_price_frame(frame)
    return [
        PricePoint(
            date=timestamp.date(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for timestamp, row in zip(normalized.index, normalized.itertuples(index=False))
    ]


def dividends_from_frame(frame: pd.DataFrame) -> list[DividendRecord]:
    """Convert a normalized dividend frame into ``DividendRecord`` values."""
    normalized = normalize_dividend_frame(frame)
    records: list[DividendRecord] = []
    for timestamp, row in zip(normalized.index, normalized.itertuples(index=False)):
        payment_date = None if pd.isna(row.payment_date) else row.payment_date.date()
        records.append(
            DividendRecord(
                ex_date=timestamp.date(),
                amount=float(row.amount),
                payment_date=payment_date,
            )
        )
    return records
