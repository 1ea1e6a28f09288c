"""Configuration models and YAML loading."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from dcalab.core.rolling.types import HORIZON_YEARS
from dcalab.core.simulation.types import InvestmentFrequency
from dcalab.core.utils.errors import ConfigLoadError


class DataConfig(BaseModel):
    """Market data settings."""

    provider: Literal["eodhd"] = "eodhd"
    symbol: str
    start: date
    end: date
    cache_dir: Path = Path("../data/cache")

    @model_validator(mode="after")
    def validate_dates_and_symbol(self) -> DataConfig:
        """Ensure date boundaries and symbol are valid."""
        if self.start > self.end:
            raise ValueError("data.start must be before or equal to data.end.")
        normalized_symbol = self.symbol.strip().upper()
        if not normalized_symbol:
            raise ValueError("data.symbol must be non-empty.")
        self.symbol = normalized_symbol
        return self


class DCASettings(BaseModel):
    """Contribution schedule settings."""

    amount: float = 100.0
    frequency: InvestmentFrequency = "monthly"
    start_date: date | None = None
    drip: bool = True

    @model_validator(mode="after")
    def validate_amount(self) -> DCASettings:
        """Ensure contributions are positive."""
        if self.amount <= 0:
            raise ValueError("dca.amount must be > 0.")
        return self


class RollingSettings(BaseModel):
    """Rolling window analysis settings."""

    horizon_years: int = 10
    auto_horizon: bool = True

    @model_validator(mode="after")
    def validate_horizon(self) -> RollingSettings:
        """Ensure the horizon is supported."""
        if self.horizon_years not in HORIZON_YEARS:
            allowed = ", ".join(str(value) for value in HORIZON_YEARS)
            raise ValueError(f"rolling.horizon_years must be one of {allowed}.")
        return self


class OutputConfig(BaseModel):
    """Output and artifact settings."""

    artifacts_dir: Path = Path("../artifacts")
    save_plots: bool = True


class AppConfig(BaseModel):
    """Top-level application configuration."""

    data: DataConfig
    dca: DCASettings = Field(default_factory=DCASettings)
    rolling: RollingSettings = Field(default_factory=RollingSettings)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @property
    def schedule_start(self) -> date:
        """First scheduled contribution date, defaulting to ``data.start``."""
        return self.dca.start_date or self.data.start

    @model_validator(mode="after")
    def validate_schedule_window(self) -> AppConfig:
        """Ensure the schedule starts inside the data range."""
        if self.dca.start_date is not None and not (
            self.data.start <= self.dca.start_date <= self.data.end
        ):
            raise ValueError("dca.start_date must fall within [data.start, data.end].")
        return self


def _resolve_config_path(path: Path) -> Path:
    """Resolve and validate a config file path."""
    resolved_path = path.expanduser().resolve()
    if not resolved_path.exists():
        raise ConfigLoadError(f"Config file not found: {resolved_path}")
    if not resolved_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {resolved_path}")
    return resolved_path


def _resolve_relative(path: Path, base_dir: Path) -> Path:
    return path.expanduser().resolve() if path.is_absolute() else (base_dir / path).resolve()


def _build_config(raw_config: dict[str, Any], base_dir: Path) -> AppConfig:
    """Build and path-resolve config from raw data."""
    try:
        config = AppConfig.model_validate(raw_config)
    except Exception as exc:
        raise ConfigLoadError(f"Config validation failed: {exc}") from exc

    updated_data = config.data.model_copy(
        update={"cache_dir": _resolve_relative(config.data.cache_dir, base_dir)}
    )
    updated_output = config.output.model_copy(
        update={"artifacts_dir": _resolve_relative(config.output.artifacts_dir, base_dir)}
    )
    return config.model_copy(update={"data": updated_data, "output": updated_output})


def load_config(path: Path) -> AppConfig:
    """
    Load and validate application config from YAML.

    Relative paths are resolved from the YAML file parent directory.

    Args:
        path: YAML config file path.

    Returns:
        Validated application config.
    """
    config_path = _resolve_config_path(path)
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw_config: Any = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigLoadError(f"Failed to read config file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML in config file {config_path}: {exc}") from exc

    if not isinstance(raw_config, dict):
        raise ConfigLoadError("YAML root must be a mapping/object.")

    return _build_config(raw_config, config_path.parent)


def dump_config_to_yaml(config: AppConfig) -> str:
    """Serialize config to canonical YAML for run artifacts."""
    payload = config.model_dump(mode="json")
    return yaml.safe_dump(payload, sort_keys=True, default_flow_style=False)
