"""Rolling window analysis exports."""

from dcalab.core.rolling.engine import (
    compute_window_stats,
    extract_monthly_values,
    generate_window_start_dates,
    get_available_horizons,
    run_rolling_window_analysis,
)
from dcalab.core.rolling.percentiles import (
    calculate_median,
    calculate_percentile,
    calculate_percentile_bands,
    calculate_percentiles,
    calculate_stats,
    categorize_returns,
)
from dcalab.core.rolling.types import (
    HORIZON_YEARS,
    DataRange,
    HorizonYears,
    NormalizedBands,
    PercentileBands,
    ReturnDistribution,
    RollingWindowConfig,
    RollingWindowResult,
    RollingWindowStats,
    SummaryStats,
    WindowResult,
)

__all__ = [
    "DataRange",
    "HORIZON_YEARS",
    "HorizonYears",
    "NormalizedBands",
    "PercentileBands",
    "ReturnDistribution",
    "RollingWindowConfig",
    "RollingWindowResult",
    "RollingWindowStats",
    "SummaryStats",
    "WindowResult",
    "calculate_median",
    "calculate_percentile",
    "calculate_percentile_bands",
    "calculate_percentiles",
    "calculate_stats",
    "categorize_returns",
    "compute_window_stats",
    "extract_monthly_values",
    "generate_window_start_dates",
    "get_available_horizons",
    "run_rolling_window_analysis",
]
