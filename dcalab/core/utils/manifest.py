"""Run manifest utilities for diagnostics and reproducibility."""

from __future__ import annotations

import json
import platform
import re
import sys
import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from importlib import metadata
from pathlib import Path
from typing import Any, Literal

from dcalab.core.utils.errors import ArtifactError, error_code_for_exception

MANIFEST_FILENAME = "run_manifest.json"
_RUN_ID_SANITIZE_PATTERN = re.compile(r"[^A-Za-z0-9_-]+")
_TRACKED_DISTRIBUTIONS: tuple[str, ...] = ("dcalab", "pandas", "pyarrow")

RunStatus = Literal["running", "success", "failed"]


def new_run_id(command: str, symbol: str, now: datetime | None = None) -> str:
    """
    Build a sortable, filesystem-safe run id such as ``rolling_SPY_20240131T120000Z``.

    Args:
        command: Workflow name.
        symbol: Ticker the run analyses.
        now: Timestamp override for deterministic ids.

    Returns:
        Run identifier.
    """
    stamp = (now or datetime.now(tz=UTC)).astimezone(UTC).strftime("%Y%m%dT%H%M%S%fZ")
    safe_symbol = _RUN_ID_SANITIZE_PATTERN.sub("_", symbol.strip().upper()) or "UNKNOWN"
    return f"{command}_{safe_symbol}_{stamp}"


def _distribution_versions() -> dict[str, str | None]:
    versions: dict[str, str | None] = {}
    for name in _TRACKED_DISTRIBUTIONS:
        try:
            versions[name] = metadata.version(name)
        except metadata.PackageNotFoundError:
            versions[name] = None
    return versions


@dataclass
class RunManifestWriter:
    """
    Collect what a CLI run consumed and produced, then persist it as JSON.

    A manifest is written for every run that got as far as loading its config,
    whether it succeeded or failed, under ``output_dir/run_manifest.json``.
    """

    output_dir: Path
    command: str
    run_id: str
    started_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    status: RunStatus = field(default="running", init=False)
    inputs: dict[str, Any] = field(default_factory=dict, init=False)
    context: dict[str, Any] = field(default_factory=dict, init=False)
    result: dict[str, Any] = field(default_factory=dict, init=False)
    failure: dict[str, Any] = field(default_factory=dict, init=False)

    @property
    def manifest_path(self) -> Path:
        return self.output_dir / MANIFEST_FILENAME

    def set_inputs(self, config_path: Path | None = None, config_yaml: str | None = None) -> None:
        """Record the config the run was started from."""
        self.inputs = {
            "config_path": None if config_path is None else str(config_path.resolve()),
            "config_yaml": config_yaml,
        }

    def set_context(
        self,
        symbol: str,
        start: str,
        end: str,
        horizon_years: int | None = None,
    ) -> None:
        self.context = {
            "symbol": symbol,
            "date_range": {"start": start, "end": end},
            "horizon_years": horizon_years,
        }

    def mark_success(
        self,
        metrics: dict[str, float],
        artifact_paths: list[str],
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Record headline metrics and the deduplicated artifact list."""
        self.status = "success"
        self.failure = {}
        self.result = {
            "metrics": dict(metrics),
            "artifact_paths": sorted(set(map(str, artifact_paths))),
            "extra": dict(extra or {}),
        }

    def mark_failure(self, exc: Exception) -> None:
        """Record the exception type, wire error code and traceback."""
        self.status = "failed"
        self.result = {}
        self.failure = {
            "exception_type": type(exc).__name__,
            "error_code": error_code_for_exception(exc),
            "message": str(exc),
            "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        }

    def to_dict(self, finished_at: datetime | None = None) -> dict[str, Any]:
        """Assemble the JSON payload, stamping ``finished_at`` when given."""
        return {
            "manifest_version": 1,
            "command": self.command,
            "run_id": self.run_id,
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "finished_at": None if finished_at is None else finished_at.isoformat(),
            "duration_seconds": (
                None
                if finished_at is None
                else (finished_at - self.started_at).total_seconds()
            ),
            "environment": {
                "python_version": platform.python_version(),
                "platform": platform.platform(),
                "executable": sys.executable,
                "packages": _distribution_versions(),
            },
            "inputs": self.inputs,
            "context": self.context,
            "result": self.result,
            "failure": self.failure,
        }

    def write(self) -> Path:
        """
        Persist the manifest.

        Returns:
            Path of the written JSON file.

        Raises:
            ArtifactError: If the directory or file cannot be written.
        """
        payload = self.to_dict(finished_at=datetime.now(tz=UTC))
        path = self.manifest_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        except OSError as exc:
            raise ArtifactError(f"Failed to write run manifest to {path}: {exc}") from exc
        return path
