"""FastAPI application for DCALab analyses."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import FastAPI, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from dcalab.api.schemas import (
    ErrorResponse,
    HealthResponse,
    HorizonsRequest,
    HorizonsResponse,
    RollingRequestPayload,
    RollingResponsePayload,
    SimulationRequest,
    SimulationResponse,
)
from dcalab.core.compute.host import RollingRequest, execute_rolling_request
from dcalab.core.rolling.engine import get_available_horizons
from dcalab.core.simulation.engine import run_dca_simulation, run_lump_sum_simulation
from dcalab.core.utils.env import load_dotenv
from dcalab.core.utils.errors import (
    ArtifactError,
    CacheError,
    ComputeHostError,
    ConfigLoadError,
    DataFetchError,
    DataValidationError,
    DCALabError,
    RollingAnalysisError,
    SimulationError,
)
from dcalab.core.utils.logging import configure_logging, get_logger

INCLUDE_POINTS_QUERY = Query(default=True)
INCLUDE_WINDOWS_QUERY = Query(default=True)
_LOGGER_NAME = "dcalab.api.app"


def _http_status_for_dcalab_error(exc: DCALabError) -> int:
    """Map typed domain exceptions to HTTP status codes."""
    if isinstance(exc, (ConfigLoadError, SimulationError, RollingAnalysisError)):
        return 400
    if isinstance(exc, DataFetchError):
        return 502
    if isinstance(exc, DataValidationError):
        return 422
    if isinstance(exc, (CacheError, ArtifactError, ComputeHostError)):
        return 500
    return 500


def create_app() -> FastAPI:
    """
    Build and return the DCALab FastAPI app.

    Returns:
        Configured FastAPI instance.
    """
    load_dotenv(Path(".env"))
    configure_logging()

    app = FastAPI(
        title="DCALab API",
        version="0.1.0",
        description="DCA simulation and rolling window analysis over inline market history.",
    )
    logger = get_logger(_LOGGER_NAME)
    logger.info("DCALab API startup complete.")

    @app.exception_handler(DCALabError)
    async def _handle_dcalab_error(_: Any, exc: DCALabError) -> JSONResponse:
        """Render typed domain errors as JSON responses."""
        get_logger(_LOGGER_NAME).error("DCALab API error: %s", exc)
        payload = ErrorResponse(error_code=exc.error_code, message=str(exc))
        return JSONResponse(
            status_code=_http_status_for_dcalab_error(exc),
            content=payload.model_dump(),
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected_error(_: Any, exc: Exception) -> JSONResponse:
        """Render unknown errors as deterministic API payloads."""
        get_logger(_LOGGER_NAME).exception("Unhandled API error: %s", exc)
        payload = ErrorResponse(error_code="internal_error", message="Internal server error.")
        return JSONResponse(status_code=500, content=payload.model_dump())

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Return API health metadata."""
        return HealthResponse()

    @app.post("/simulations", response_model=SimulationResponse)
    async def simulations(
        request: SimulationRequest,
        include_points: bool = INCLUDE_POINTS_QUERY,
    ) -> SimulationResponse:
        """Run a DCA simulation and the matching lump-sum comparison."""
        config = request.to_config()
        prices = request.price_points()
        dividends = request.dividend_records()
        dca = await run_in_threadpool(run_dca_simulation, prices, dividends, config)
        lump_sum_total = (
            request.lump_sum_total if request.lump_sum_total is not None else dca.total_invested
        )
        lump_sum = await run_in_threadpool(
            run_lump_sum_simulation, prices, dividends, config, lump_sum_total
        )
        return SimulationResponse(
            dca=dca.to_dict(include_points=include_points),
            lump_sum=lump_sum.to_dict(include_points=include_points),
        )

    @app.post("/rolling", response_model=RollingResponsePayload)
    async def rolling(
        request: RollingRequestPayload,
        include_windows: bool = INCLUDE_WINDOWS_QUERY,
    ) -> RollingResponsePayload:
        """
        Run a rolling window analysis.

        Analysis failures, including an unavailable horizon, are reported in
        the response body with ``status="error"`` rather than as HTTP errors.
        """
        rolling_request = RollingRequest(
            request_id=request.request_id,
            prices=tuple(request.price_points()),
            dividends=tuple(request.dividend_records()),
            config=request.config.to_config(),
        )
        response = await run_in_threadpool(execute_rolling_request, rolling_request)
        return RollingResponsePayload.model_validate(
            response.to_dict(include_windows=include_windows)
        )

    @app.post("/horizons", response_model=HorizonsResponse)
    async def horizons(request: HorizonsRequest) -> HorizonsResponse:
        """Return rolling horizons supported by an inline price history."""
        prices = [price.to_price_point() for price in request.prices]
        return HorizonsResponse(
            available_horizons=get_available_horizons(prices),
            first_date=prices[0].date if prices else None,
            last_date=prices[-1].date if prices else None,
        )

    return app
