"""Plotting utilities for local analysis artifacts."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dcalab.core.utils.errors import ArtifactError

if TYPE_CHECKING:
    from dcalab.core.rolling.types import NormalizedBands
    from dcalab.core.simulation.types import SimulationResult


def get_matplotlib_pyplot() -> Any:
    """
    Import and return ``matplotlib.pyplot`` with a writable config directory.

    Returns:
        Imported pyplot module.
    """
    if "MPLCONFIGDIR" not in os.environ:
        mpl_config_dir = Path("/tmp/dcalab-mplconfig")
        mpl_config_dir.mkdir(parents=True, exist_ok=True)
        os.environ["MPLCONFIGDIR"] = str(mpl_config_dir)

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    return plt


def save_portfolio_plot(
    result: SimulationResult,
    output_dir: Path,
    filename: str = "portfolio_value.png",
    lump_sum: SimulationResult | None = None,
    title: str = "DCA Portfolio Value",
) -> Path:
    """
    Save a portfolio value vs. principal plot.

    Args:
        result: DCA simulation result.
        output_dir: Artifact directory.
        filename: Output image filename.
        lump_sum: Optional lump-sum result drawn for comparison.
        title: Figure title.

    Returns:
        Saved plot path.
    """
    plt = get_matplotlib_pyplot()
    plot_path = output_dir / filename
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        dates = [point.date for point in result.points]

        figure, axis = plt.subplots(figsize=(10, 4))
        axis.plot(
            dates,
            [point.total_value for point in result.points],
            linewidth=1.2,
            color="#0f3d3e",
            label="Total value",
        )
        axis.plot(
            dates,
            [point.principal for point in result.points],
            linewidth=1.0,
            color="#9a8c98",
            linestyle="--",
            label="Principal",
        )
        if lump_sum is not None and lump_sum.points:
            axis.plot(
                [point.date for point in lump_sum.points],
                [point.total_value for point in lump_sum.points],
                linewidth=1.0,
                color="#D4A373",
                label="Lump sum",
            )
        axis.set_title(title)
        axis.set_xlabel("Date")
        axis.set_ylabel("Value")
        axis.legend(loc="upper left")
        axis.grid(alpha=0.25, linestyle="--", linewidth=0.7)
        figure.tight_layout()
        figure.savefig(plot_path, dpi=150)
        plt.close(figure)
        return plot_path
    except Exception as exc:
        raise ArtifactError(f"Failed to save portfolio plot to {plot_path}: {exc}") from exc


def save_percentile_band_plot(
    bands: NormalizedBands,
    output_dir: Path,
    filename: str = "rolling_value_bands.png",
    use_returns: bool = False,
    title: str = "Rolling Window Percentile Bands",
) -> Path:
    """
    Save a fan chart of percentile bands by years since window start.

    Args:
        bands: Normalized bands from a rolling analysis.
        output_dir: Artifact directory.
        filename: Output image filename.
        use_returns: Plot return bands (%) instead of value bands.
        title: Figure title.

    Returns:
        Saved plot path.
    """
    plt = get_matplotlib_pyplot()
    plot_path = output_dir / filename
    selected = bands.return_bands if use_returns else bands.value_bands
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        years = [offset / 12 for offset in bands.month_offsets[: len(selected)]]

        figure, axis = plt.subplots(figsize=(10, 4))
        axis.fill_between(
            years, selected.p10, selected.p90, color="#38A3A5", alpha=0.2, label="p10-p90"
        )
        axis.fill_between(
            years, selected.p25, selected.p75, color="#38A3A5", alpha=0.4, label="p25-p75"
        )
        axis.plot(years, selected.p50, color="#22577A", linewidth=1.5, label="Median")
        axis.set_title(title)
        axis.set_xlabel("Years since window start")
        axis.set_ylabel("Return (%)" if use_returns else "Portfolio value")
        axis.legend(loc="upper left")
        axis.grid(alpha=0.25, linestyle="--", linewidth=0.7)
        figure.tight_layout()
        figure.savefig(plot_path, dpi=150)
        plt.close(figure)
        return plot_path
    except Exception as exc:
        raise ArtifactError(f"Failed to save percentile band plot to {plot_path}: {exc}") from exc
