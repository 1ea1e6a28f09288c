"""Rolling window DCA analysis across every historical start month."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

import pandas as pd

from dcalab.core.rolling.percentiles import (
    calculate_median,
    calculate_percentile_bands,
    categorize_returns,
)
from dcalab.core.rolling.types import (
    HORIZON_YEARS,
    DataRange,
    NormalizedBands,
    PercentileBands,
    RollingWindowConfig,
    RollingWindowResult,
    RollingWindowStats,
    WindowResult,
)
from dcalab.core.simulation.engine import DAYS_PER_YEAR, run_dca_simulation
from dcalab.core.simulation.schedule import add_months, add_years
from dcalab.core.simulation.types import DCAConfig, DividendRecord, PricePoint, SimulationPoint
from dcalab.core.utils.logging import get_logger

LOGGER = get_logger("dcalab.rolling")


def _years_between(first: date, last: date) -> float:
    return (last - first).days / DAYS_PER_YEAR


def get_available_horizons(price_history: Sequence[PricePoint]) -> list[int]:
    """
    Return horizons with at least one year of margin beyond the horizon itself.

    Args:
        price_history: Chronologically ordered daily bars.

    Returns:
        Ascending subset of ``(5, 10, 15, 20)``.
    """
    if not price_history:
        return []
    years_of_data = _years_between(price_history[0].date, price_history[-1].date)
    return [horizon for horizon in HORIZON_YEARS if years_of_data >= horizon + 1]


def generate_window_start_dates(
    price_history: Sequence[PricePoint],
    horizon_years: int,
) -> list[date]:
    """
    Generate first-of-month window starts with a full horizon of data ahead.

    The first start is the first day of the month holding the first bar, so it
    may precede that bar; the simulation clamps it forward.
    """
    if not price_history:
        return []

    first_date = price_history[0].date
    latest_start = add_years(price_history[-1].date, -horizon_years)
    if latest_start < first_date:
        return []

    anchor = first_date.replace(day=1)
    starts: list[date] = []
    offset = 0
    current = anchor
    while current <= latest_start:
        starts.append(current)
        offset += 1
        current = add_months(anchor, offset)
    return starts


def extract_monthly_values(
    points: Sequence[SimulationPoint],
    start_date: date,
    horizon_months: int,
) -> list[float]:
    """
    Sample total portfolio value once per calendar month.

    The last point within each month represents that month. Months without
    points carry the previous value forward; months before the first point are 0.

    Returns:
        ``horizon_months + 1`` values indexed by month offset, or ``[]`` for no points.
    """
    if not points:
        return []

    values = pd.Series(
        [point.total_value for point in points],
        index=pd.to_datetime([point.date for point in points]).to_period("M"),
        dtype=float,
    )
    by_month = values.groupby(level=0).last()
    expected = pd.period_range(
        start=pd.Period(year=start_date.year, month=start_date.month, freq="M"),
        periods=horizon_months + 1,
        freq="M",
    )
    aligned = by_month.reindex(expected).ffill().fillna(0.0)
    return [float(value) for value in aligned.tolist()]


def _run_window(
    price_history: Sequence[PricePoint],
    dividend_history: Sequence[DividendRecord],
    config: RollingWindowConfig,
    start_date: date,
    end_date: date,
) -> WindowResult | None:
    window_prices = [bar for bar in price_history if start_date <= bar.date <= end_date]
    if not window_prices:
        return None
    window_dividends = [
        dividend for dividend in dividend_history if start_date <= dividend.ex_date <= end_date
    ]

    result = run_dca_simulation(
        window_prices,
        window_dividends,
        DCAConfig(
            amount=config.amount,
            frequency=config.frequency,
            start_date=start_date,
            is_drip=config.is_drip,
        ),
    )
    if not result.points:
        return None

    return WindowResult(
        start_date=start_date,
        end_date=end_date,
        total_return=result.total_return,
        cagr=result.cagr,
        final_value=result.final_value,
        total_invested=result.total_invested,
        monthly_values=tuple(
            extract_monthly_values(result.points, start_date, config.horizon_months)
        ),
    )


def _compute_bands(
    windows: Sequence[WindowResult],
    horizon_months: int,
) -> tuple[PercentileBands, PercentileBands]:
    """
    Build value and return percentile bands at each month offset.

    Invested-to-date is approximated by linear pacing,
    ``total_invested * (month + 1) / len(monthly_values)``, regardless of frequency.
    """
    if not windows:
        return PercentileBands(), PercentileBands()

    value_arrays: list[list[float]] = []
    return_arrays: list[list[float]] = []
    for month in range(horizon_months + 1):
        values_at_month: list[float] = []
        returns_at_month: list[float] = []
        for window in windows:
            if month >= len(window.monthly_values):
                continue
            value = window.monthly_values[month]
            values_at_month.append(value)

            invested = window.total_invested * (month + 1) / (len(window.monthly_values) or 1)
            returns_at_month.append((value - invested) / invested * 100.0 if invested > 0 else 0.0)

        value_arrays.append(values_at_month)
        return_arrays.append(returns_at_month)

    return calculate_percentile_bands(value_arrays), calculate_percentile_bands(return_arrays)


def compute_window_stats(windows: Sequence[WindowResult]) -> RollingWindowStats:
    """Summarise windows; best/worst keep the first window seen on ties."""
    if not windows:
        return RollingWindowStats()

    returns = [window.total_return for window in windows]
    best = worst = windows[0]
    for window in windows:
        if window.total_return > best.total_return:
            best = window
        if window.total_return < worst.total_return:
            worst = window

    return RollingWindowStats(
        window_count=len(windows),
        median_return=calculate_median(returns),
        median_cagr=calculate_median(window.cagr for window in windows),
        success_rate=sum(1 for value in returns if value > 0) / len(returns) * 100.0,
        best_window=best,
        worst_window=worst,
        return_distribution=categorize_returns(returns),
    )


def run_rolling_window_analysis(
    price_history: Sequence[PricePoint],
    dividend_history: Sequence[DividendRecord],
    config: RollingWindowConfig,
) -> RollingWindowResult:
    """
    Run the DCA simulation over every rolling window of ``config.horizon_years``.

    Each window starts on the first of a month and ends ``horizon_years``
    calendar years later; both histories are sliced to that inclusive range.
    Insufficient history yields zero windows with empty bands and zero stats.

    Args:
        price_history: Complete chronologically ordered daily bars.
        dividend_history: Complete dividend history, any order.
        config: Rolling window configuration.

    Returns:
        Aggregated rolling window result.
    """
    if price_history:
        first_date = price_history[0].date
        last_date = price_history[-1].date
        data_range = DataRange(
            first_date=first_date,
            last_date=last_date,
            years_of_data=_years_between(first_date, last_date),
        )
    else:
        data_range = DataRange()

    start_dates = generate_window_start_dates(price_history, config.horizon_years)
    if not start_dates:
        LOGGER.info(
            "No %s-year windows available | years_of_data=%.2f",
            config.horizon_years,
            data_range.years_of_data,
        )
        return RollingWindowResult(
            config=config,
            normalized_bands=NormalizedBands(),
            stats=RollingWindowStats(),
            windows=(),
            data_range=data_range,
        )

    windows: list[WindowResult] = []
    for start_date in start_dates:
        end_date = add_years(start_date, config.horizon_years)
        window = _run_window(price_history, dividend_history, config, start_date, end_date)
        if window is not None:
            windows.append(window)

    horizon_months = config.horizon_months
    value_bands, return_bands = _compute_bands(windows, horizon_months)
    LOGGER.debug(
        "Rolling analysis complete | horizon=%s | candidates=%s | windows=%s",
        config.horizon_years,
        len(start_dates),
        len(windows),
    )
    return RollingWindowResult(
        config=config,
        normalized_bands=NormalizedBands(
            month_offsets=tuple(range(horizon_months + 1)),
            value_bands=value_bands,
            return_bands=return_bands,
        ),
        stats=compute_window_stats(windows),
        windows=tuple(windows),
        data_range=data_range,
    )
