"""Domain-specific error taxonomy for DCALab."""

from __future__ import annotations


class DCALabError(Exception):
    """Base DCALab error with CLI exit-code metadata."""

    exit_code: int = 1
    error_code: str = "dcalab_error"


class ConfigLoadError(DCALabError, ValueError):
    """Configuration loading/validation error."""

    exit_code = 2
    error_code = "config_error"


class DataFetchError(DCALabError, ConnectionError):
    """Market data transport/retry error."""

    exit_code = 3
    error_code = "data_fetch_error"


class DataValidationError(DCALabError, ValueError):
    """Market data schema/integrity validation error."""

    exit_code = 4
    error_code = "data_validation_error"


class CacheError(DCALabError, RuntimeError):
    """Cache read/write error."""

    exit_code = 5
    error_code = "cache_error"


class SimulationError(DCALabError, ValueError):
    """Malformed single-run simulation input."""

    exit_code = 6
    error_code = "simulation_error"


class RollingAnalysisError(DCALabError, ValueError):
    """Malformed or unsatisfiable rolling window analysis request."""

    exit_code = 7
    error_code = "rolling_analysis_error"


class HorizonUnavailableError(RollingAnalysisError):
    """Requested horizon needs more history than is available."""

    error_code = "horizon_unavailable"

    def __init__(self, horizon_years: int, available_horizons: list[int]) -> None:
        available = (
            ", ".join(str(value) for value in available_horizons) + " years"
            if available_horizons
            else "none"
        )
        super().__init__(
            f"Insufficient data for {horizon_years}-year horizon. Available: {available}"
        )
        self.horizon_years = horizon_years
        self.available_horizons = list(available_horizons)


class ArtifactError(DCALabError, RuntimeError):
    """Artifact write/read error."""

    exit_code = 8
    error_code = "artifact_error"


class ComputeHostError(DCALabError, RuntimeError):
    """Background computation host misuse or channel failure."""

    exit_code = 9
    error_code = "compute_host_error"


def exit_code_for_exception(exc: Exception) -> int:
    """
    Resolve process exit code for an exception.

    Args:
        exc: Raised exception.

    Returns:
        Integer process exit code.
    """
    return int(getattr(exc, "exit_code", 1))


def error_code_for_exception(exc: Exception) -> str:
    """Return the wire error code for an exception, ``internal_error`` for unknown types."""
    if not isinstance(exc, DCALabError):
        return "internal_error"
    return str(exc.error_code)
