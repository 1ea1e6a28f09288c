"""Data structures for rolling window analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal, get_args

from dcalab.core.simulation.types import INVESTMENT_FREQUENCIES, InvestmentFrequency
from dcalab.core.utils.errors import RollingAnalysisError

HorizonYears = Literal[5, 10, 15, 20]
HORIZON_YEARS: tuple[int, ...] = get_args(HorizonYears)
BAND_PERCENTILES: tuple[int, ...] = (10, 25, 50, 75, 90)


@dataclass(frozen=True)
class RollingWindowConfig:
    """Contribution schedule replayed across every window of one horizon."""

    amount: float
    frequency: InvestmentFrequency
    horizon_years: HorizonYears
    is_drip: bool = False

    def __post_init__(self) -> None:
        """Reject malformed analysis requests."""
        if self.amount <= 0:
            raise RollingAnalysisError("amount must be greater than 0.")
        if self.frequency not in INVESTMENT_FREQUENCIES:
            raise RollingAnalysisError(f"Unsupported frequency '{self.frequency}'.")
        if self.horizon_years not in HORIZON_YEARS:
            raise RollingAnalysisError(
                f"horizon_years must be one of {', '.join(str(h) for h in HORIZON_YEARS)}."
            )

    @property
    def horizon_months(self) -> int:
        """Number of month offsets after the window start."""
        return int(self.horizon_years) * 12

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe payload."""
        return {
            "amount": self.amount,
            "frequency": self.frequency,
            "horizon_years": self.horizon_years,
            "is_drip": self.is_drip,
        }


@dataclass(frozen=True)
class WindowResult:
    """Outcome of one simulated window."""

    start_date: date
    end_date: date
    total_return: float
    cagr: float
    final_value: float
    total_invested: float
    monthly_values: tuple[float, ...]

    def to_dict(self, include_monthly_values: bool = True) -> dict[str, Any]:
        """Serialize to a JSON-safe payload."""
        payload: dict[str, Any] = {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "total_return": self.total_return,
            "cagr": self.cagr,
            "final_value": self.final_value,
            "total_invested": self.total_invested,
        }
        if include_monthly_values:
            payload["monthly_values"] = list(self.monthly_values)
        return payload


@dataclass(frozen=True)
class PercentileBands:
    """Percentile series aligned by index to a shared time axis."""

    p10: tuple[float, ...] = ()
    p25: tuple[float, ...] = ()
    p50: tuple[float, ...] = ()
    p75: tuple[float, ...] = ()
    p90: tuple[float, ...] = ()

    def __len__(self) -> int:
        return len(self.p50)

    def to_dict(self) -> dict[str, list[float]]:
        """Serialize to a JSON-safe payload."""
        return {
            "p10": list(self.p10),
            "p25": list(self.p25),
            "p50": list(self.p50),
            "p75": list(self.p75),
            "p90": list(self.p90),
        }


@dataclass(frozen=True)
class NormalizedBands:
    """Value and return bands indexed by month offset from window start."""

    month_offsets: tuple[int, ...] = ()
    value_bands: PercentileBands = field(default_factory=PercentileBands)
    return_bands: PercentileBands = field(default_factory=PercentileBands)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe payload."""
        return {
            "month_offsets": list(self.month_offsets),
            "value_bands": self.value_bands.to_dict(),
            "return_bands": self.return_bands.to_dict(),
        }


@dataclass(frozen=True)
class ReturnDistribution:
    """Share of windows (percent) per total-return bucket."""

    negative: float = 0.0
    low: float = 0.0
    medium: float = 0.0
    high: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """Serialize to a JSON-safe payload."""
        return {
            "negative": self.negative,
            "low": self.low,
            "medium": self.medium,
            "high": self.high,
        }


@dataclass(frozen=True)
class SummaryStats:
    """Basic descriptive statistics."""

    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    std_dev: float = 0.0


@dataclass(frozen=True)
class RollingWindowStats:
    """Cross-window summary statistics."""

    window_count: int = 0
    median_return: float = 0.0
    median_cagr: float = 0.0
    success_rate: float = 0.0
    best_window: WindowResult | None = None
    worst_window: WindowResult | None = None
    return_distribution: ReturnDistribution = field(default_factory=ReturnDistribution)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe payload."""
        return {
            "window_count": self.window_count,
            "median_return": self.median_return,
            "median_cagr": self.median_cagr,
            "success_rate": self.success_rate,
            "best_window": (
                None
                if self.best_window is None
                else self.best_window.to_dict(include_monthly_values=False)
            ),
            "worst_window": (
                None
                if self.worst_window is None
                else self.worst_window.to_dict(include_monthly_values=False)
            ),
            "return_distribution": self.return_distribution.to_dict(),
        }


@dataclass(frozen=True)
class DataRange:
    """Span of the analysed price history."""

    first_date: date | None = None
    last_date: date | None = None
    years_of_data: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe payload."""
        return {
            "first_date": None if self.first_date is None else self.first_date.isoformat(),
            "last_date": None if self.last_date is None else self.last_date.isoformat(),
            "years_of_data": self.years_of_data,
        }


@dataclass(frozen=True)
class RollingWindowResult:
    """Complete rolling window analysis output."""

    config: RollingWindowConfig
    normalized_bands: NormalizedBands
    stats: RollingWindowStats
    windows: tuple[WindowResult, ...]
    data_range: DataRange

    def to_dict(self, include_windows: bool = True) -> dict[str, Any]:
        """
        Serialize to a JSON-safe payload.

        Args:
            include_windows: Whether to include every per-window result.

        Returns:
            Result payload.
        """
        payload: dict[str, Any] = {
            "config": self.config.to_dict(),
            "normalized_bands": self.normalized_bands.to_dict(),
            "stats": self.stats.to_dict(),
            "data_range": self.data_range.to_dict(),
        }
        if include_windows:
            payload["windows"] = [window.to_dict() for window in self.windows]
        return payload
