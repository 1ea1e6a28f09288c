"""Executable entrypoint for the DCALab FastAPI server."""

from __future__ import annotations

import argparse
import os
import socket
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from dcalab.core.utils.env import load_dotenv
from dcalab.core.utils.logging import configure_logging, get_logger

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8030
PORT_SCAN_ATTEMPTS = 50


@dataclass(frozen=True)
class ServerSettings:
    """Resolved uvicorn runtime settings."""

    host: str
    port: int
    log_level: str
    reload: bool = False


def _port_from_env() -> int:
    """Return the API port from ``DCALAB_API_PORT`` or the default."""
    raw_value = os.getenv("DCALAB_API_PORT")
    if raw_value is None:
        return DEFAULT_PORT
    try:
        port = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"Invalid DCALAB_API_PORT value: {raw_value}") from exc
    if not 1 <= port <= 65535:
        raise ValueError("DCALAB_API_PORT must be between 1 and 65535.")
    return port


def parse_settings(argv: Sequence[str] | None = None) -> ServerSettings:
    """
    Parse server settings from CLI args, falling back to ``DCALAB_API_*`` env vars.

    Args:
        argv: Argument list; ``None`` reads ``sys.argv``.

    Returns:
        Resolved settings.
    """
    parser = argparse.ArgumentParser(description="Run the DCALab API server.")
    parser.add_argument(
        "--host",
        default=os.getenv("DCALAB_API_HOST", DEFAULT_HOST),
        help=f"Bind host (default: {DEFAULT_HOST} or DCALAB_API_HOST).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=_port_from_env(),
        help=f"Bind port (default: {DEFAULT_PORT} or DCALAB_API_PORT).",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("DCALAB_API_LOG_LEVEL", "info"),
        help="Uvicorn log level (default: info or DCALAB_API_LOG_LEVEL).",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server on source changes (development only).",
    )
    args = parser.parse_args(argv)
    if not 1 <= args.port <= 65535:
        parser.error("--port must be between 1 and 65535.")
    return ServerSettings(
        host=args.host,
        port=args.port,
        log_level=str(args.log_level).lower(),
        reload=bool(args.reload),
    )


def _is_port_available(host: str, port: int) -> bool:
    """Return True if a host/port can be bound by this process."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def resolve_port(host: str, requested_port: int, max_attempts: int = PORT_SCAN_ATTEMPTS) -> int:
    """Return the first bindable port at or after ``requested_port``."""
    last_candidate = min(65535, requested_port + max_attempts - 1)
    for candidate in range(requested_port, last_candidate + 1):
        if _is_port_available(host, candidate):
            return candidate
    raise RuntimeError(f"No available port found from {requested_port} to {last_candidate}.")


def main(argv: Sequence[str] | None = None) -> None:
    """Run the DCALab API server."""
    import uvicorn

    load_dotenv(Path(".env"))
    configure_logging()
    settings = parse_settings(argv)
    port = resolve_port(settings.host, settings.port)
    if port != settings.port:
        get_logger("dcalab.api.main").warning(
            "Port %s is in use, starting DCALab API on %s instead.", settings.port, port
        )
    uvicorn.run(
        "dcalab.api.app:create_app",
        factory=True,
        host=settings.host,
        port=port,
        log_level=settings.log_level,
        reload=settings.reload,
    )


if __name__ == "__main__":
    main()
