"""DCALab command-line interface."""

from __future__ import annotations

from pathlib import Path

import typer

from dcalab.core.services.analysis_service import (
    get_horizons_for_config,
    run_rolling_workflow,
    run_simulation_workflow,
)
from dcalab.core.utils.env import load_dotenv
from dcalab.core.utils.errors import HorizonUnavailableError, exit_code_for_exception
from dcalab.core.utils.logging import configure_logging, get_logger

app = typer.Typer(help="DCALab CLI", no_args_is_help=True)

CONFIG_OPTION = typer.Option(
    ...,
    "--config",
    file_okay=True,
    dir_okay=False,
    resolve_path=True,
    help="Path to YAML configuration file.",
)
HORIZON_OPTION = typer.Option(
    None,
    "--horizon",
    help="Rolling horizon in years (5, 10, 15 or 20). Overrides rolling.horizon_years.",
)


@app.callback()
def callback() -> None:
    """DCALab CLI commands."""


def _print_metrics(metrics: dict[str, float]) -> None:
    for key, value in metrics.items():
        typer.echo(f"{key}={value:.6f}")


def _handle_cli_exception(logger_name: str, context: str, exc: Exception) -> None:
    """Log diagnostics and exit with the typed code for ``exc``."""
    logger = get_logger(logger_name)
    logger.exception("%s failed: %s", context, exc)
    if isinstance(exc, HorizonUnavailableError):
        available = ",".join(str(value) for value in exc.available_horizons) or "none"
        typer.echo(f"available_horizons={available}")
    typer.echo(f"error={exc}")
    raise typer.Exit(code=exit_code_for_exception(exc)) from None


@app.command("simulate")
def simulate(config: Path = CONFIG_OPTION) -> None:
    """Run a single DCA simulation with a dollar-matched lump-sum comparison."""
    load_dotenv(Path(".env"))
    configure_logging()
    logger_name = __name__

    try:
        outcome = run_simulation_workflow(config, progress_callback=typer.echo)
    except Exception as exc:
        _handle_cli_exception(logger_name, "Simulate command", exc)

    dca = outcome.dca
    lump_sum = outcome.lump_sum
    typer.echo(f"run_id={outcome.run_id}")
    typer.echo(f"symbol={outcome.symbol}")
    _print_metrics(
        {
            "total_invested": dca.total_invested,
            "final_value": dca.final_value,
            "total_return": dca.total_return,
            "cagr": dca.cagr,
            "total_dividends": dca.total_dividends,
            "lump_sum_final_value": lump_sum.final_value,
            "lump_sum_total_return": lump_sum.total_return,
            "lump_sum_cagr": lump_sum.cagr,
        }
    )
    for path in outcome.artifact_paths:
        typer.echo(f"artifact={path}")
    typer.echo(f"manifest={outcome.manifest_path}")


@app.command("rolling")
def rolling(
    config: Path = CONFIG_OPTION,
    horizon: int | None = HORIZON_OPTION,
) -> None:
    """Run a rolling window analysis and write the percentile report."""
    load_dotenv(Path(".env"))
    configure_logging()
    logger_name = __name__

    try:
        outcome = run_rolling_workflow(
            config,
            horizon_years=horizon,
            progress_callback=typer.echo,
        )
    except Exception as exc:
        _handle_cli_exception(logger_name, "Rolling command", exc)

    stats = outcome.result.stats
    typer.echo(f"run_id={outcome.run_id}")
    typer.echo(f"symbol={outcome.symbol}")
    typer.echo(f"horizon_years={outcome.result.config.horizon_years}")
    typer.echo(f"available_horizons={','.join(str(h) for h in outcome.available_horizons)}")
    typer.echo(f"window_count={stats.window_count}")
    _print_metrics(
        {
            "median_return": stats.median_return,
            "median_cagr": stats.median_cagr,
            "success_rate": stats.success_rate,
        }
    )
    typer.echo(f"report={outcome.report_path}")
    for path in outcome.artifact_paths:
        typer.echo(f"artifact={path}")
    typer.echo(f"manifest={outcome.manifest_path}")


@app.command("horizons")
def horizons(config: Path = CONFIG_OPTION) -> None:
    """List the rolling horizons the configured data range supports."""
    load_dotenv(Path(".env"))
    configure_logging()

    try:
        outcome = get_horizons_for_config(config)
    except Exception as exc:
        _handle_cli_exception(__name__, "Horizons command", exc)

    typer.echo(f"symbol={outcome.symbol}")
    typer.echo(f"date_range=[{outcome.first_date}, {outcome.last_date}]")
    available = ",".join(str(value) for value in outcome.available_horizons) or "none"
    typer.echo(f"available_horizons={available}")


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()
