"""Service-layer workflows shared by CLI and API."""

from dcalab.core.services.analysis_service import (
    HorizonsOutcome,
    MarketHistory,
    RollingOutcome,
    SimulationOutcome,
    get_horizons_for_config,
    load_market_history,
    resolve_horizon,
    run_rolling_workflow,
    run_simulation_workflow,
)

__all__ = [
    "HorizonsOutcome",
    "MarketHistory",
    "RollingOutcome",
    "SimulationOutcome",
    "get_horizons_for_config",
    "load_market_history",
    "resolve_horizon",
    "run_rolling_workflow",
    "run_simulation_workflow",
]
