"""Pydantic schemas for DCALab API endpoints."""

from __future__ import annotations

import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from dcalab.core.rolling.types import RollingWindowConfig
from dcalab.core.simulation.types import (
    DCAConfig,
    DividendRecord,
    InvestmentFrequency,
    PricePoint,
)


class HealthResponse(BaseModel):
    """Health endpoint response."""

    status: str = "ok"
    service: str = "dcalab-api"


class ErrorResponse(BaseModel):
    """Error payload for typed API failures."""

    error_code: str
    message: str


class PricePointModel(BaseModel):
    """One daily bar. Missing open/high/low default to the close."""

    date: datetime.date
    close: float = Field(gt=0)
    open: float | None = None
    high: float | None = None
    low: float | None = None
    volume: float = 0.0

    def to_price_point(self) -> PricePoint:
        """Convert to the simulation input type."""
        return PricePoint(
            date=self.date,
            open=self.close if self.open is None else self.open,
            high=self.close if self.high is None else self.high,
            low=self.close if self.low is None else self.low,
            close=self.close,
            volume=self.volume,
        )


class DividendModel(BaseModel):
    """One cash dividend, keyed by ex-date."""

    ex_date: datetime.date
    amount: float
    payment_date: datetime.date | None = None
    dividend_yield: float = 0.0

    def to_dividend_record(self) -> DividendRecord:
        """Convert to the simulation input type."""
        return DividendRecord(
            ex_date=self.ex_date,
            amount=self.amount,
            payment_date=self.payment_date,
            dividend_yield=self.dividend_yield,
        )


class MarketHistoryPayload(BaseModel):
    """Inline price and dividend history shared by analysis requests."""

    prices: list[PricePointModel] = Field(default_factory=list)
    dividends: list[DividendModel] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_price_order(self) -> MarketHistoryPayload:
        """Require strictly ascending, unique price dates."""
        for previous, current in zip(self.prices, self.prices[1:]):
            if current.date <= previous.date:
                raise ValueError("prices must be strictly ascending by date without duplicates.")
        return self

    def price_points(self) -> list[PricePoint]:
        return [price.to_price_point() for price in self.prices]

    def dividend_records(self) -> list[DividendRecord]:
        return [dividend.to_dividend_record() for dividend in self.dividends]


class SimulationRequest(MarketHistoryPayload):
    """Single-run simulation request payload."""

    amount: float
    frequency: InvestmentFrequency = "monthly"
    start_date: datetime.date
    is_drip: bool = False
    lump_sum_total: float | None = None

    def to_config(self) -> DCAConfig:
        """Build the simulation config; raises ``SimulationError`` when malformed."""
        return DCAConfig(
            amount=self.amount,
            frequency=self.frequency,
            start_date=self.start_date,
            is_drip=self.is_drip,
        )


class SimulationResponse(BaseModel):
    """Single-run simulation response payload."""

    dca: dict[str, Any]
    lump_sum: dict[str, Any]


class RollingConfigModel(BaseModel):
    """Rolling window configuration payload."""

    amount: float
    frequency: InvestmentFrequency = "monthly"
    horizon_years: Literal[5, 10, 15, 20] = 10
    is_drip: bool = False

    def to_config(self) -> RollingWindowConfig:
        """Build the rolling config; raises ``RollingAnalysisError`` when malformed."""
        return RollingWindowConfig(
            amount=self.amount,
            frequency=self.frequency,
            horizon_years=self.horizon_years,
            is_drip=self.is_drip,
        )


class RollingRequestPayload(MarketHistoryPayload):
    """Rolling analysis request message."""

    request_id: int = Field(default=0, ge=0)
    config: RollingConfigModel


class RollingResponsePayload(BaseModel):
    """Rolling analysis response message."""

    request_id: int
    status: Literal["success", "error"]
    result: dict[str, Any] | None = None
    available_horizons: list[int] = Field(default_factory=list)
    error_code: str | None = None
    error_message: str | None = None


class HorizonsRequest(BaseModel):
    """Horizon availability request payload."""

    prices: list[PricePointModel] = Field(default_factory=list)


class HorizonsResponse(BaseModel):
    """Horizon availability response payload."""

    available_horizons: list[int]
    first_date: datetime.date | None = None
    last_date: datetime.date | None = None
