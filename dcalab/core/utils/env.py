"""Environment variable helpers."""

from __future__ import annotations

import os
from pathlib import Path

EODHD_API_KEY_ENV = "EODHD_API_KEY"


def _strip_wrapping_quotes(value: str) -> str:
    """Remove matching single or double wrapping quotes from a value."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _parse_line(line: str, location: str) -> tuple[str, str] | None:
    """Parse one dotenv line into a key/value pair, or ``None`` for blanks and comments."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None
    if stripped.startswith("export "):
        stripped = stripped[len("export ") :].strip()
    if "=" not in stripped:
        raise ValueError(f"Invalid dotenv line at {location}")

    key, raw_value = stripped.split("=", 1)
    key = key.strip()
    if not key:
        raise ValueError(f"Invalid dotenv key at {location}")
    return key, _strip_wrapping_quotes(raw_value.strip())


def load_dotenv(path: Path = Path(".env"), override: bool = False) -> dict[str, str]:
    """
    Load environment variables from a ``.env`` file.

    Args:
        path: Dotenv file path.
        override: Whether loaded values should overwrite existing environment variables.

    Returns:
        Mapping of environment variables that were set in this call.
    """
    resolved_path = path.expanduser().resolve()
    if not resolved_path.exists():
        return {}
    if not resolved_path.is_file():
        raise ValueError(f"Dotenv path is not a file: {resolved_path}")

    loaded: dict[str, str] = {}
    with resolved_path.open("r", encoding="utf-8") as handle:
        for line_number, raw_line in enumerate(handle, start=1):
            parsed = _parse_line(raw_line, f"{resolved_path}:{line_number}")
            if parsed is None:
                continue
            key, value = parsed
            if not override and key in os.environ:
                continue
            os.environ[key] = value
            loaded[key] = value

    return loaded


def read_api_key(explicit: str | None = None) -> str | None:
    """Return an explicit market data API key or the one from ``EODHD_API_KEY``."""
    return explicit or os.getenv(EODHD_API_KEY_ENV) or None
