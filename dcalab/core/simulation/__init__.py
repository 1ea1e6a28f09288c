"""Single-run simulation exports."""

from dcalab.core.simulation.engine import (
    calculate_cagr,
    calculate_total_return,
    run_dca_simulation,
    run_lump_sum_simulation,
)
from dcalab.core.simulation.schedule import (
    add_months,
    add_years,
    build_dividend_lookup,
    find_nearest_trading_day,
    generate_schedule_dates,
    resolve_schedule,
)
from dcalab.core.simulation.types import (
    INVESTMENT_FREQUENCIES,
    DCAConfig,
    DividendRecord,
    InvestmentFrequency,
    PricePoint,
    SimulationPoint,
    SimulationResult,
)

__all__ = [
    "DCAConfig",
    "DividendRecord",
    "INVESTMENT_FREQUENCIES",
    "InvestmentFrequency",
    "PricePoint",
    "SimulationPoint",
    "SimulationResult",
    "add_months",
    "add_years",
    "build_dividend_lookup",
    "calculate_cagr",
    "calculate_total_return",
    "find_nearest_trading_day",
    "generate_schedule_dates",
    "resolve_schedule",
    "run_dca_simulation",
    "run_lump_sum_simulation",
]
