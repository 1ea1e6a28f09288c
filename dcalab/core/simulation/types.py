"""Data structures for single-run DCA simulations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Literal, get_args

from dcalab.core.utils.errors import SimulationError

InvestmentFrequency = Literal["weekly", "biweekly", "monthly"]
INVESTMENT_FREQUENCIES: tuple[str, ...] = get_args(InvestmentFrequency)


@dataclass(frozen=True)
class PricePoint:
    """One daily bar. ``close`` is split/dividend adjusted upstream."""

    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class DividendRecord:
    """One dividend event keyed by ex-dividend date."""

    ex_date: date
    amount: float
    payment_date: date | None = None
    dividend_yield: float = 0.0


@dataclass(frozen=True)
class DCAConfig:
    """Per-run contribution schedule. Ticker identity stays with the caller."""

    amount: float
    frequency: InvestmentFrequency
    start_date: date
    is_drip: bool = False

    def __post_init__(self) -> None:
        """Reject malformed schedules."""
        if self.amount <= 0:
            raise SimulationError("amount must be greater than 0.")
        if self.frequency not in INVESTMENT_FREQUENCIES:
            raise SimulationError(
                f"Unsupported frequency '{self.frequency}'. "
                f"Expected one of: {', '.join(INVESTMENT_FREQUENCIES)}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe payload."""
        return {
            "amount": self.amount,
            "frequency": self.frequency,
            "start_date": self.start_date.isoformat(),
            "is_drip": self.is_drip,
        }


@dataclass(frozen=True)
class SimulationPoint:
    """Cumulative portfolio state at the close of one trading day."""

    date: date
    principal: float
    dividends: float
    market_value: float
    shares: float
    total_value: float

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe payload."""
        return {
            "date": self.date.isoformat(),
            "principal": self.principal,
            "dividends": self.dividends,
            "market_value": self.market_value,
            "shares": self.shares,
            "total_value": self.total_value,
        }


@dataclass(frozen=True)
class SimulationResult:
    """Container for deterministic simulation outputs."""

    points: tuple[SimulationPoint, ...] = field(default_factory=tuple)
    final_shares: float = 0.0
    total_invested: float = 0.0
    total_dividends: float = 0.0
    final_value: float = 0.0
    total_return: float = 0.0
    cagr: float = 0.0

    @classmethod
    def empty(cls) -> SimulationResult:
        """Return the all-zero result used for degenerate inputs."""
        return cls()

    def to_dict(self, include_points: bool = True) -> dict[str, Any]:
        """
        Serialize to a JSON-safe payload.

        Args:
            include_points: Whether to include the daily point series.

        Returns:
            Result payload.
        """
        payload: dict[str, Any] = {
            "final_shares": self.final_shares,
            "total_invested": self.total_invested,
            "total_dividends": self.total_dividends,
            "final_value": self.final_value,
            "total_return": self.total_return,
            "cagr": self.cagr,
            "point_count": len(self.points),
        }
        if include_points:
            payload["points"] = [point.to_dict() for point in self.points]
        return payload
