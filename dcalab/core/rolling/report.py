"""Markdown and JSON artifacts for rolling window analysis."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from dcalab.core.rolling.types import PercentileBands, RollingWindowResult
from dcalab.core.utils.errors import ArtifactError

REPORT_FILENAME = "rolling_report.md"
SUMMARY_FILENAME = "rolling_summary.json"


def _markdown_table(rows: list[dict[str, Any]], columns: list[str]) -> list[str]:
    """Render markdown table lines."""
    if not rows:
        return ["_No rows_"]

    header = "| " + " | ".join(columns) + " |"
    separator = "| " + " | ".join(["---"] * len(columns)) + " |"
    body: list[str] = []
    for row in rows:
        rendered: list[str] = []
        for column in columns:
            value = row.get(column, "")
            rendered.append(f"{value:.2f}" if isinstance(value, float) else str(value))
        body.append("| " + " | ".join(rendered) + " |")
    return [header, separator, *body]


def _yearly_band_rows(offsets: tuple[int, ...], bands: PercentileBands) -> list[dict[str, Any]]:
    """Sample bands at whole-year offsets."""
    rows: list[dict[str, Any]] = []
    for index, month in enumerate(offsets):
        if month % 12 != 0 or index >= len(bands):
            continue
        rows.append(
            {
                "year": month // 12,
                "p10": bands.p10[index],
                "p25": bands.p25[index],
                "p50": bands.p50[index],
                "p75": bands.p75[index],
                "p90": bands.p90[index],
            }
        )
    return rows


def write_rolling_report(
    result: RollingWindowResult,
    symbol: str,
    output_dir: Path,
    artifact_paths: list[Path] | None = None,
) -> Path:
    """
    Write a markdown summary of a rolling window analysis.

    Args:
        result: Completed analysis.
        symbol: Ticker the histories belong to.
        output_dir: Artifact directory.
        artifact_paths: Other artifacts to link from the report.

    Returns:
        Written report path.
    """
    stats = result.stats
    config = result.config
    data_range = result.data_range.to_dict()
    lines: list[str] = [
        f"# Rolling Window Report: {symbol} ({config.horizon_years}-year horizon)",
        "",
        f"Generated: {datetime.now(tz=UTC).isoformat()}",
        "",
        f"- Contribution: {config.amount:.2f} {config.frequency}"
        f"{' with DRIP' if config.is_drip else ''}",
        f"- Data range: {data_range['first_date']} to {data_range['last_date']}"
        f" ({result.data_range.years_of_data:.2f} years)",
        "",
        "## Summary",
    ]
    summary_rows = [
        {"metric": "window_count", "value": stats.window_count},
        {"metric": "median_return_pct", "value": stats.median_return},
        {"metric": "median_cagr_pct", "value": stats.median_cagr},
        {"metric": "success_rate_pct", "value": stats.success_rate},
    ]
    lines.extend(_markdown_table(summary_rows, ["metric", "value"]))

    lines.extend(["", "## Best and Worst Windows"])
    extreme_rows: list[dict[str, Any]] = []
    for label, window in (("best", stats.best_window), ("worst", stats.worst_window)):
        if window is None:
            continue
        extreme_rows.append(
            {
                "window": label,
                "start": window.start_date.isoformat(),
                "end": window.end_date.isoformat(),
                "total_return": window.total_return,
                "cagr": window.cagr,
                "final_value": window.final_value,
            }
        )
    lines.extend(
        _markdown_table(
            extreme_rows,
            ["window", "start", "end", "total_return", "cagr", "final_value"],
        )
    )

    lines.extend(["", "## Return Distribution (% of windows)"])
    distribution_rows = [
        {"bucket": bucket, "share": share}
        for bucket, share in result.stats.return_distribution.to_dict().items()
    ]
    lines.extend(_markdown_table(distribution_rows, ["bucket", "share"]))

    columns = ["year", "p10", "p25", "p50", "p75", "p90"]
    offsets = result.normalized_bands.month_offsets
    lines.extend(["", "## Portfolio Value Bands"])
    lines.extend(
        _markdown_table(_yearly_band_rows(offsets, result.normalized_bands.value_bands), columns)
    )
    lines.extend(["", "## Return Bands (%)"])
    lines.extend(
        _markdown_table(_yearly_band_rows(offsets, result.normalized_bands.return_bands), columns)
    )

    if artifact_paths:
        lines.extend(["", "## Artifacts"])
        for path in artifact_paths:
            lines.append(f"- {path}")

    report_path = output_dir / REPORT_FILENAME
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        report_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ArtifactError(f"Failed to write rolling report to {report_path}: {exc}") from exc
    return report_path


def write_summary_json(payload: dict[str, Any], output_dir: Path, filename: str) -> Path:
    """Persist a JSON summary artifact and return its path."""
    summary_path = output_dir / filename
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        summary_path.write_text(
            json.dumps(payload, indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        raise ArtifactError(f"Failed to write summary to {summary_path}: {exc}") from exc
    return summary_path
