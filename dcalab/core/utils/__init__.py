"""Utility helpers."""

from dcalab.core.utils.env import load_dotenv, read_api_key
from dcalab.core.utils.errors import (
    ArtifactError,
    CacheError,
    ComputeHostError,
    ConfigLoadError,
    DataFetchError,
    DataValidationError,
    DCALabError,
    HorizonUnavailableError,
    RollingAnalysisError,
    SimulationError,
    error_code_for_exception,
    exit_code_for_exception,
)
from dcalab.core.utils.logging import configure_logging, get_logger
from dcalab.core.utils.manifest import RunManifestWriter, new_run_id
from dcalab.core.utils.plotting import (
    get_matplotlib_pyplot,
    save_percentile_band_plot,
    save_portfolio_plot,
)

__all__ = [
    "ArtifactError",
    "CacheError",
    "ComputeHostError",
    "ConfigLoadError",
    "DCALabError",
    "DataFetchError",
    "DataValidationError",
    "HorizonUnavailableError",
    "RollingAnalysisError",
    "RunManifestWriter",
    "SimulationError",
    "configure_logging",
    "error_code_for_exception",
    "exit_code_for_exception",
    "get_logger",
    "get_matplotlib_pyplot",
    "load_dotenv",
    "new_run_id",
    "read_api_key",
    "save_percentile_band_plot",
    "save_portfolio_plot",
]
