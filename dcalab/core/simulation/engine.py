"""Deterministic single-run DCA and lump-sum simulation engine."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date

from dcalab.core.simulation.schedule import (
    build_dividend_lookup,
    generate_schedule_dates,
    resolve_schedule,
)
from dcalab.core.simulation.types import (
    DCAConfig,
    DividendRecord,
    PricePoint,
    SimulationPoint,
    SimulationResult,
)

DAYS_PER_YEAR = 365.25


@dataclass
class _LedgerState:
    """Mutable running totals while replaying a price history."""

    shares: float = 0.0
    invested: float = 0.0
    cash_dividends: float = 0.0


def calculate_cagr(initial_value: float, final_value: float, years: float) -> float:
    """
    Calculate compound annual growth rate in percent.

    Returns ``0.0`` when nothing was invested or no time elapsed.
    """
    if initial_value <= 0 or years <= 0:
        return 0.0
    return ((final_value / initial_value) ** (1.0 / years) - 1.0) * 100.0


def calculate_total_return(total_invested: float, final_value: float) -> float:
    """Return percentage gain over principal, ``0.0`` when nothing was invested."""
    if total_invested <= 0:
        return 0.0
    return (final_value - total_invested) / total_invested * 100.0


def _effective_start(price_history: Sequence[PricePoint], requested_start: date) -> date:
    """Clamp the requested start forward to the first available bar."""
    first_date = price_history[0].date
    return first_date if requested_start < first_date else requested_start


def _replay(
    price_history: Sequence[PricePoint],
    dividend_lookup: Mapping[date, float],
    effective_start: date,
    is_drip: bool,
    contributions: Mapping[date, Sequence[float]],
) -> tuple[list[SimulationPoint], _LedgerState]:
    """
    Replay trading days from ``effective_start`` onward.

    On each day the dividend step runs before the purchase step so that shares
    bought on an ex-date never collect that day's dividend.
    """
    state = _LedgerState()
    points: list[SimulationPoint] = []

    for bar in price_history:
        if bar.date < effective_start:
            continue
        price = bar.close

        per_share = dividend_lookup.get(bar.date)
        if per_share and state.shares > 0:
            received = per_share * state.shares
            if is_drip:
                state.shares += received / price
            else:
                state.cash_dividends += received

        for amount in contributions.get(bar.date, ()):
            state.shares += amount / price
            state.invested += amount

        market_value = state.shares * price
        points.append(
            SimulationPoint(
                date=bar.date,
                principal=state.invested,
                dividends=state.cash_dividends,
                market_value=market_value,
                shares=state.shares,
                total_value=market_value + state.cash_dividends,
            )
        )

    return points, state


def _finalize(
    points: list[SimulationPoint],
    state: _LedgerState,
    effective_start: date,
    last_date: date,
) -> SimulationResult:
    """Derive summary metrics from the replayed points."""
    final_value = points[-1].total_value if points else 0.0
    years = (last_date - effective_start).days / DAYS_PER_YEAR
    return SimulationResult(
        points=tuple(points),
        final_shares=state.shares,
        total_invested=state.invested,
        total_dividends=state.cash_dividends,
        final_value=final_value,
        total_return=calculate_total_return(state.invested, final_value),
        cagr=calculate_cagr(state.invested, final_value, years),
    )


def run_dca_simulation(
    price_history: Sequence[PricePoint],
    dividend_history: Sequence[DividendRecord],
    config: DCAConfig,
) -> SimulationResult:
    """
    Replay a fixed contribution schedule against a price and dividend history.

    Execution model:
    - A configured start before the first bar is clamped forward silently.
    - Each scheduled date invests ``config.amount`` at the close of its nearest
      trading day (forward search, see ``find_nearest_trading_day``); dates with
      no reachable trading day are skipped.
    - Dividends are keyed by ex-date and credited on shares held before that
      day's purchases, either reinvested at the close (DRIP) or held as cash.

    Args:
        price_history: Chronologically ordered daily bars. May be empty.
        dividend_history: Dividend records in any order; out-of-range entries are ignored.
        config: Contribution schedule.

    Returns:
        Simulation result. Empty history yields the all-zero result.
    """
    if not price_history:
        return SimulationResult.empty()

    trading_days = {bar.date for bar in price_history}
    last_date = price_history[-1].date
    effective_start = _effective_start(price_history, config.start_date)

    scheduled = generate_schedule_dates(effective_start, last_date, config.frequency)
    resolved = resolve_schedule(scheduled, trading_days)
    contributions = {day: [config.amount] * count for day, count in resolved.items()}

    points, state = _replay(
        price_history=price_history,
        dividend_lookup=build_dividend_lookup(dividend_history),
        effective_start=effective_start,
        is_drip=config.is_drip,
        contributions=contributions,
    )
    return _finalize(points, state, effective_start, last_date)


def run_lump_sum_simulation(
    price_history: Sequence[PricePoint],
    dividend_history: Sequence[DividendRecord],
    config: DCAConfig,
    total_investment: float | None = None,
) -> SimulationResult:
    """
    Invest the whole schedule's worth of capital on its first trading day.

    The default total is what the DCA schedule would contribute over the same
    range. Pass ``total_investment`` (usually a finished DCA run's
    ``total_invested``) to compare the two strategies dollar-for-dollar.

    Args:
        price_history: Chronologically ordered daily bars. May be empty.
        dividend_history: Dividend records in any order.
        config: Schedule used to locate the investment day and default total.
        total_investment: Optional explicit amount to invest.

    Returns:
        Simulation result, all-zero when nothing can be invested.
    """
    if not price_history:
        return SimulationResult.empty()

    trading_days = {bar.date for bar in price_history}
    last_date = price_history[-1].date
    effective_start = _effective_start(price_history, config.start_date)

    scheduled = generate_schedule_dates(effective_start, last_date, config.frequency)
    resolved = resolve_schedule(scheduled, trading_days)
    if not resolved:
        return SimulationResult.empty()

    total = (
        float(total_investment)
        if total_investment is not None
        else config.amount * sum(resolved.values())
    )
    if total <= 0:
        return SimulationResult.empty()

    investment_day = min(resolved)
    points, state = _replay(
        price_history=price_history,
        dividend_lookup=build_dividend_lookup(dividend_history),
        effective_start=effective_start,
        is_drip=config.is_drip,
        contributions={investment_day: [total]},
    )
    return _finalize(points, state, effective_start, last_date)
