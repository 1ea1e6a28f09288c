"""Programmatic service workflows for DCALab analyses."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from dcalab.core.config import AppConfig, dump_config_to_yaml, load_config
from dcalab.core.data.base import MarketDataProvider
from dcalab.core.data.cache import ParquetCache
from dcalab.core.data.eodhd_provider import EODHDProvider
from dcalab.core.data.frames import dividends_from_frame, price_points_from_frame
from dcalab.core.rolling.engine import get_available_horizons, run_rolling_window_analysis
from dcalab.core.rolling.report import (
    SUMMARY_FILENAME,
    write_rolling_report,
    write_summary_json,
)
from dcalab.core.rolling.types import RollingWindowConfig, RollingWindowResult
from dcalab.core.simulation.engine import run_dca_simulation, run_lump_sum_simulation
from dcalab.core.simulation.types import DCAConfig, DividendRecord, PricePoint, SimulationResult
from dcalab.core.utils.errors import DataValidationError, HorizonUnavailableError
from dcalab.core.utils.logging import get_logger
from dcalab.core.utils.manifest import RunManifestWriter, new_run_id
from dcalab.core.utils.plotting import save_percentile_band_plot, save_portfolio_plot

ProgressCallback = Callable[[str], None]
_LOGGER_NAME = "dcalab.core.services.analysis_service"
SIMULATION_SUMMARY_FILENAME = "simulation_summary.json"


@dataclass(frozen=True)
class MarketHistory:
    """Prices and dividends loaded for one symbol."""

    symbol: str
    prices: list[PricePoint]
    dividends: list[DividendRecord]

    @property
    def first_date(self) -> date | None:
        return self.prices[0].date if self.prices else None

    @property
    def last_date(self) -> date | None:
        return self.prices[-1].date if self.prices else None


@dataclass(frozen=True)
class SimulationOutcome:
    """Result payload for one completed single-run simulation."""

    run_id: str
    symbol: str
    dca: SimulationResult
    lump_sum: SimulationResult
    summary_path: Path
    artifact_paths: list[str]
    manifest_path: Path


@dataclass(frozen=True)
class RollingOutcome:
    """Result payload for one completed rolling window analysis."""

    run_id: str
    symbol: str
    result: RollingWindowResult
    available_horizons: list[int]
    report_path: Path
    summary_path: Path
    artifact_paths: list[str]
    manifest_path: Path


@dataclass(frozen=True)
class HorizonsOutcome:
    """Available rolling horizons for a configured symbol and range."""

    symbol: str
    first_date: date | None
    last_date: date | None
    available_horizons: list[int]


def _emit_progress(callback: ProgressCallback | None, message: str) -> None:
    """Emit optional progress messages."""
    if callback is not None:
        callback(message)


def load_market_history(
    app_config: AppConfig,
    provider: MarketDataProvider | None = None,
    progress_callback: ProgressCallback | None = None,
) -> MarketHistory:
    """
    Fetch (through the parquet cache) prices and dividends for the configured symbol.

    Args:
        app_config: Loaded application config.
        provider: Market data provider. Defaults to ``EODHDProvider``.
        progress_callback: Optional callback for status messages.

    Returns:
        Loaded market history.

    Raises:
        DataValidationError: If no prices are available for the range.
    """
    logger = get_logger(_LOGGER_NAME)
    symbol = app_config.data.symbol
    start = app_config.data.start.isoformat()
    end = app_config.data.end.isoformat()
    resolved_provider = provider or EODHDProvider()
    cache = ParquetCache(app_config.data.cache_dir)

    logger.info("Loading %s prices and dividends from %s to %s", symbol, start, end)
    _emit_progress(progress_callback, f"Loading {symbol} data from {start} to {end}")
    price_frame = cache.get_prices(symbol, start, end, fetcher=resolved_provider.fetch_prices)
    if price_frame.empty:
        raise DataValidationError(f"Fetched no price data for symbol '{symbol}'.")
    dividend_frame = cache.get_dividends(
        symbol, start, end, fetcher=resolved_provider.fetch_dividends
    )

    history = MarketHistory(
        symbol=symbol,
        prices=price_points_from_frame(price_frame),
        dividends=dividends_from_frame(dividend_frame),
    )
    _emit_progress(
        progress_callback,
        f"{symbol}: bars={len(history.prices)}, dividends={len(history.dividends)}, "
        f"date_range=[{history.first_date}, {history.last_date}]",
    )
    return history


def resolve_horizon(
    app_config: AppConfig,
    available_horizons: list[int],
    requested: int | None = None,
) -> int:
    """
    Pick the horizon to analyse.

    An explicit ``requested`` horizon must be available. Otherwise the
    configured horizon is used, falling back to the longest available one
    when ``rolling.auto_horizon`` is enabled.

    Raises:
        HorizonUnavailableError: If no acceptable horizon is available.
    """
    if requested is not None:
        if requested not in available_horizons:
            raise HorizonUnavailableError(requested, available_horizons)
        return requested

    configured = app_config.rolling.horizon_years
    if configured in available_horizons:
        return configured
    if app_config.rolling.auto_horizon and available_horizons:
        get_logger(_LOGGER_NAME).warning(
            "%s-year horizon unavailable, falling back to %s years",
            configured,
            available_horizons[-1],
        )
        return available_horizons[-1]
    raise HorizonUnavailableError(configured, available_horizons)


def _write_failure_manifest(
    manifest_writer: RunManifestWriter | None,
    exc: Exception,
    context: str,
) -> None:
    if manifest_writer is None:
        return
    try:
        manifest_writer.mark_failure(exc)
        manifest_writer.write()
    except Exception as manifest_exc:
        get_logger(_LOGGER_NAME).error(
            "Failed to write failure manifest for %s: %s", context, manifest_exc
        )


def _simulation_metrics(dca: SimulationResult, lump_sum: SimulationResult) -> dict[str, float]:
    return {
        "total_invested": dca.total_invested,
        "final_value": dca.final_value,
        "total_return": dca.total_return,
        "cagr": dca.cagr,
        "total_dividends": dca.total_dividends,
        "lump_sum_final_value": lump_sum.final_value,
        "lump_sum_total_return": lump_sum.total_return,
        "lump_sum_cagr": lump_sum.cagr,
    }


def run_simulation_workflow(
    config_path: Path,
    provider: MarketDataProvider | None = None,
    progress_callback: ProgressCallback | None = None,
) -> SimulationOutcome:
    """
    Run a DCA simulation and its dollar-matched lump-sum comparison.

    Args:
        config_path: Path to YAML config file.
        provider: Optional market data provider override.
        progress_callback: Optional callback for status messages.

    Returns:
        Completed simulation outcome.
    """
    manifest_writer: RunManifestWriter | None = None
    try:
        app_config = load_config(config_path)
        symbol = app_config.data.symbol
        run_id = new_run_id("simulate", symbol)
        run_artifact_dir = app_config.output.artifacts_dir / run_id
        manifest_writer = RunManifestWriter(
            output_dir=run_artifact_dir,
            command="simulate",
            run_id=run_id,
        )
        manifest_writer.set_inputs(
            config_path=config_path,
            config_yaml=dump_config_to_yaml(app_config),
        )
        manifest_writer.set_context(
            symbol=symbol,
            start=app_config.data.start.isoformat(),
            end=app_config.data.end.isoformat(),
        )

        history = load_market_history(app_config, provider, progress_callback)
        dca_config = DCAConfig(
            amount=app_config.dca.amount,
            frequency=app_config.dca.frequency,
            start_date=app_config.schedule_start,
            is_drip=app_config.dca.drip,
        )
        dca = run_dca_simulation(history.prices, history.dividends, dca_config)
        lump_sum = run_lump_sum_simulation(
            history.prices,
            history.dividends,
            dca_config,
            total_investment=dca.total_invested,
        )
        _emit_progress(
            progress_callback,
            f"Simulated {len(dca.points)} trading days, invested {dca.total_invested:.2f}",
        )

        artifact_paths: list[str] = []
        if app_config.output.save_plots and dca.points:
            plot_path = save_portfolio_plot(
                result=dca,
                output_dir=run_artifact_dir,
                lump_sum=lump_sum,
                title=f"{symbol} {app_config.dca.frequency} DCA",
            )
            artifact_paths.append(str(plot_path))

        summary_path = write_summary_json(
            {
                "run_id": run_id,
                "symbol": symbol,
                "config": dca_config.to_dict(),
                "dca": dca.to_dict(include_points=False),
                "lump_sum": lump_sum.to_dict(include_points=False),
            },
            run_artifact_dir,
            SIMULATION_SUMMARY_FILENAME,
        )
        artifact_paths.append(str(summary_path))

        manifest_writer.mark_success(
            metrics=_simulation_metrics(dca, lump_sum),
            artifact_paths=artifact_paths,
        )
        manifest_path = manifest_writer.write()
        return SimulationOutcome(
            run_id=run_id,
            symbol=symbol,
            dca=dca,
            lump_sum=lump_sum,
            summary_path=summary_path,
            artifact_paths=artifact_paths,
            manifest_path=manifest_path,
        )
    except Exception as exc:
        _write_failure_manifest(manifest_writer, exc, "run_simulation_workflow")
        raise


def run_rolling_workflow(
    config_path: Path,
    horizon_years: int | None = None,
    provider: MarketDataProvider | None = None,
    progress_callback: ProgressCallback | None = None,
) -> RollingOutcome:
    """
    Run a rolling window analysis and write its report artifacts.

    Args:
        config_path: Path to YAML config file.
        horizon_years: Optional horizon overriding ``rolling.horizon_years``.
        provider: Optional market data provider override.
        progress_callback: Optional callback for status messages.

    Returns:
        Completed rolling outcome.
    """
    logger = get_logger(_LOGGER_NAME)
    manifest_writer: RunManifestWriter | None = None
    try:
        app_config = load_config(config_path)
        symbol = app_config.data.symbol
        run_id = new_run_id("rolling", symbol)
        run_artifact_dir = app_config.output.artifacts_dir / run_id
        manifest_writer = RunManifestWriter(
            output_dir=run_artifact_dir,
            command="rolling",
            run_id=run_id,
        )
        manifest_writer.set_inputs(
            config_path=config_path,
            config_yaml=dump_config_to_yaml(app_config),
        )
        start = app_config.data.start.isoformat()
        end = app_config.data.end.isoformat()
        manifest_writer.set_context(symbol=symbol, start=start, end=end)

        history = load_market_history(app_config, provider, progress_callback)
        available = get_available_horizons(history.prices)
        horizon = resolve_horizon(app_config, available, requested=horizon_years)
        manifest_writer.set_context(symbol=symbol, start=start, end=end, horizon_years=horizon)

        rolling_config = RollingWindowConfig(
            amount=app_config.dca.amount,
            frequency=app_config.dca.frequency,
            horizon_years=horizon,
            is_drip=app_config.dca.drip,
        )
        result = run_rolling_window_analysis(history.prices, history.dividends, rolling_config)
        logger.info("%s %s-year rolling windows: %s", symbol, horizon, result.stats.window_count)
        _emit_progress(
            progress_callback,
            f"Analysed {result.stats.window_count} {horizon}-year windows for {symbol}",
        )

        artifact_paths: list[str] = []
        if app_config.output.save_plots and result.stats.window_count > 0:
            title = f"{symbol} {horizon}-year rolling DCA"
            artifact_paths.append(
                str(
                    save_percentile_band_plot(
                        result.normalized_bands,
                        run_artifact_dir,
                        filename="rolling_value_bands.png",
                        title=f"{title}: portfolio value",
                    )
                )
            )
            artifact_paths.append(
                str(
                    save_percentile_band_plot(
                        result.normalized_bands,
                        run_artifact_dir,
                        filename="rolling_return_bands.png",
                        use_returns=True,
                        title=f"{title}: return",
                    )
                )
            )

        summary_path = write_summary_json(
            {
                "run_id": run_id,
                "symbol": symbol,
                "available_horizons": available,
                **result.to_dict(include_windows=True),
            },
            run_artifact_dir,
            SUMMARY_FILENAME,
        )
        report_path = write_rolling_report(
            result,
            symbol=symbol,
            output_dir=run_artifact_dir,
            artifact_paths=[Path(path) for path in artifact_paths] + [summary_path],
        )
        artifact_paths.extend([str(summary_path), str(report_path)])

        stats = result.stats
        manifest_writer.mark_success(
            metrics={
                "window_count": float(stats.window_count),
                "median_return": stats.median_return,
                "median_cagr": stats.median_cagr,
                "success_rate": stats.success_rate,
            },
            artifact_paths=artifact_paths,
            extra={"available_horizons": available},
        )
        manifest_path = manifest_writer.write()
        return RollingOutcome(
            run_id=run_id,
            symbol=symbol,
            result=result,
            available_horizons=available,
            report_path=report_path,
            summary_path=summary_path,
            artifact_paths=artifact_paths,
            manifest_path=manifest_path,
        )
    except Exception as exc:
        _write_failure_manifest(manifest_writer, exc, "run_rolling_workflow")
        raise


def get_horizons_for_config(
    config_path: Path,
    provider: MarketDataProvider | None = None,
) -> HorizonsOutcome:
    """
    Report which rolling horizons the configured data range supports.

    Args:
        config_path: Path to YAML config file.
        provider: Optional market data provider override.

    Returns:
        Available horizons with the loaded date range.
    """
    app_config = load_config(config_path)
    history = load_market_history(app_config, provider)
    return HorizonsOutcome(
        symbol=history.symbol,
        first_date=history.first_date,
        last_date=history.last_date,
        available_horizons=get_available_horizons(history.prices),
    )
