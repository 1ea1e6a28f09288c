"""Percentile and summary statistics helpers.

Percentiles use linear interpolation between closest ranks, the same
definition as ``numpy.percentile`` with its default method.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

import pandas as pd

from dcalab.core.rolling.types import (
    BAND_PERCENTILES,
    PercentileBands,
    ReturnDistribution,
    SummaryStats,
)


def calculate_percentile(sorted_values: Sequence[float], percentile: float) -> float:
    """
    Calculate one percentile from ascending values.

    Args:
        sorted_values: Values sorted ascending.
        percentile: Percentile in ``[0, 100]``; out-of-range inputs are clamped.

    Returns:
        Interpolated percentile, ``0.0`` for empty input.
    """
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])

    p = max(0.0, min(100.0, float(percentile)))
    rank = (p / 100.0) * (len(sorted_values) - 1)
    lower_index = math.floor(rank)
    upper_index = math.ceil(rank)
    if lower_index == upper_index:
        return float(sorted_values[lower_index])

    fraction = rank - lower_index
    return float(
        sorted_values[lower_index] * (1.0 - fraction) + sorted_values[upper_index] * fraction
    )


def calculate_percentiles(
    values: Iterable[float],
    percentiles: Sequence[float],
) -> dict[float, float]:
    """Sort a copy of ``values`` once and compute every requested percentile."""
    ordered = sorted(float(value) for value in values)
    return {p: calculate_percentile(ordered, p) for p in percentiles}


def calculate_percentile_bands(values_by_index: Sequence[Sequence[float]]) -> PercentileBands:
    """
    Compute p10/p25/p50/p75/p90 independently at each time index.

    Args:
        values_by_index: For each time index, the ensemble of values observed there.

    Returns:
        Percentile bands aligned to the input indices.
    """
    columns: dict[int, list[float]] = {p: [] for p in BAND_PERCENTILES}
    for values in values_by_index:
        percentiles = calculate_percentiles(values, BAND_PERCENTILES)
        for p in BAND_PERCENTILES:
            columns[p].append(percentiles[p])

    return PercentileBands(
        p10=tuple(columns[10]),
        p25=tuple(columns[25]),
        p50=tuple(columns[50]),
        p75=tuple(columns[75]),
        p90=tuple(columns[90]),
    )


def calculate_median(values: Iterable[float]) -> float:
    """Return the 50th percentile, ``0.0`` for empty input."""
    return calculate_percentiles(values, (50,))[50]


def calculate_stats(values: Sequence[float]) -> SummaryStats:
    """Return min/max/mean/median and population standard deviation."""
    if not values:
        return SummaryStats()

    series = pd.Series(values, dtype=float)
    return SummaryStats(
        min=float(series.min()),
        max=float(series.max()),
        mean=float(series.mean()),
        median=calculate_median(values),
        std_dev=float(series.std(ddof=0)),
    )


def categorize_returns(returns: Sequence[float]) -> ReturnDistribution:
    """
    Bucket percentage returns into ``<0``, ``[0, 50)``, ``[50, 100)`` and ``>=100``.

    Returns:
        Share of inputs per bucket in percent (sums to 100 for non-empty input).
    """
    if not returns:
        return ReturnDistribution()

    negative = low = medium = high = 0
    for value in returns:
        if value < 0:
            negative += 1
        elif value < 50:
            low += 1
        elif value < 100:
            medium += 1
        else:
            high += 1

    total = len(returns)
    return ReturnDistribution(
        negative=negative / total * 100.0,
        low=low / total * 100.0,
        medium=medium / total * 100.0,
        high=high / total * 100.0,
    )
