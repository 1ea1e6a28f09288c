"""Contribution schedule generation and trading-day resolution."""

from __future__ import annotations

import calendar
from collections import Counter
from collections.abc import Container, Iterable
from datetime import date, timedelta

from dcalab.core.simulation.types import DividendRecord, InvestmentFrequency

DEFAULT_MAX_DAYS_FORWARD = 7
_DAY_STEPS: dict[str, int] = {"weekly": 7, "biweekly": 14}


def add_months(value: date, months: int) -> date:
    """Shift a date by calendar months, clamping to the last day of short months."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_years(value: date, years: int) -> date:
    """Shift a date by calendar years (Feb 29 clamps to Feb 28)."""
    return add_months(value, 12 * years)


def generate_schedule_dates(
    start: date,
    end: date,
    frequency: InvestmentFrequency,
) -> list[date]:
    """
    Generate scheduled contribution dates from ``start`` through ``end`` inclusive.

    Weekly and biweekly schedules step by 7 and 14 days. Monthly schedules add
    one calendar month to the previous date, so a day clamped by a short month
    stays clamped (Jan 31, Feb 29, Mar 29).

    Args:
        start: First scheduled date.
        end: Inclusive last date.
        frequency: Contribution frequency.

    Returns:
        Ascending scheduled dates.
    """
    dates: list[date] = []
    current = start
    while current <= end:
        dates.append(current)
        if frequency == "monthly":
            current = add_months(current, 1)
        else:
            current += timedelta(days=_DAY_STEPS[frequency])
    return dates


def find_nearest_trading_day(
    target: date,
    trading_days: Container[date],
    max_days_forward: int = DEFAULT_MAX_DAYS_FORWARD,
) -> date | None:
    """
    Walk forward from ``target`` looking for a trading day.

    Offsets ``0..max_days_forward`` are checked inclusive; the search never
    moves backward, so a contribution is never made before its scheduled date.

    Args:
        target: Scheduled calendar date.
        trading_days: Set-like collection of trading dates.
        max_days_forward: Maximum forward distance in days.

    Returns:
        First trading day found, or ``None``.
    """
    for offset in range(max_days_forward + 1):
        candidate = target + timedelta(days=offset)
        if candidate in trading_days:
            return candidate
    return None


def resolve_schedule(
    scheduled_dates: Iterable[date],
    trading_days: Container[date],
    max_days_forward: int = DEFAULT_MAX_DAYS_FORWARD,
) -> Counter[date]:
    """
    Map scheduled dates onto trading days.

    Several scheduled dates may land on the same trading day; each still counts
    once. Scheduled dates with no trading day in reach are dropped silently.

    Returns:
        Counter of trading day -> number of contributions due that day.
    """
    resolved: Counter[date] = Counter()
    for scheduled in scheduled_dates:
        trading_day = find_nearest_trading_day(scheduled, trading_days, max_days_forward)
        if trading_day is None:
            continue
        resolved[trading_day] += 1
    return resolved


def build_dividend_lookup(dividends: Iterable[DividendRecord]) -> dict[date, float]:
    """Sum per-share dividend amounts by ex-date, ignoring non-positive amounts."""
    lookup: dict[date, float] = {}
    for dividend in dividends:
        if dividend.amount <= 0:
            continue
        lookup[dividend.ex_date] = lookup.get(dividend.ex_date, 0.0) + float(dividend.amount)
    return lookup
