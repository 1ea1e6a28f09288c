"""Integration tests for CLI typed failures and failure manifests."""

from __future__ import annotations

import json
import os
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest.mock import patch

import pandas as pd
from typer.testing import CliRunner

from dcalab.cli import app
from dcalab.core.utils.errors import DataFetchError
from dcalab.tests.helpers import make_dividend_frame, synthetic_price_frame


def _write_config(root: Path, body: str | None = None) -> Path:
    config_path = root / "config.yaml"
    config_path.write_text(
        body
        or textwrap.dedent(f"""
            data:
              symbol: SPY
              start: "2010-01-01"
              end: "2016-12-31"
              cache_dir: {root / "cache"}
            dca:
              amount: 100
            output:
              artifacts_dir: {root / "artifacts"}
              save_plots: false
            """).strip() + "\n",
        encoding="utf-8",
    )
    return config_path


def _mock_fetch_prices(self: object, symbol: str, start: str, end: str) -> pd.DataFrame:
    _ = (self, symbol)
    return synthetic_price_frame(start, end)


def _mock_fetch_dividends(self: object, symbol: str, start: str, end: str) -> pd.DataFrame:
    _ = (self, symbol, start, end)
    return make_dividend_frame([])


def _failing_fetch(self: object, symbol: str, start: str, end: str) -> pd.DataFrame:
    _ = (self, start, end)
    raise DataFetchError(f"EODHD request failed for {symbol}")


class TestCliFailures(unittest.TestCase):
    """Validate typed exit codes and failure manifest behavior."""

    def setUp(self) -> None:
        self.runner = CliRunner()
        env_patch = patch.dict(os.environ, {"EODHD_API_KEY": "test_key"}, clear=False)
        env_patch.start()
        self.addCleanup(env_patch.stop)

    def test_missing_config_returns_config_exit_code(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            missing_path = Path(temp_dir) / "missing.yaml"
            for command in ("simulate", "rolling", "horizons"):
                with self.subTest(command=command):
                    result = self.runner.invoke(app, [command, "--config", str(missing_path)])
                    self.assertEqual(result.exit_code, 2, msg=result.output)
                    self.assertIn("error=", result.output)

    def test_invalid_config_returns_config_exit_code(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = _write_config(
                Path(temp_dir), "data:\n  symbol: SPY\n  start: 2020-01-01\n  end: 2019-01-01\n"
            )
            result = self.runner.invoke(app, ["simulate", "--config", str(config_path)])
            self.assertEqual(result.exit_code, 2, msg=result.output)

    def test_unavailable_horizon_writes_failed_manifest(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            config_path = _write_config(root)

            with (
                patch(
                    "dcalab.core.data.eodhd_provider.EODHDProvider.fetch_prices",
                    new=_mock_fetch_prices,
                ),
                patch(
                    "dcalab.core.data.eodhd_provider.EODHDProvider.fetch_dividends",
                    new=_mock_fetch_dividends,
                ),
            ):
                result = self.runner.invoke(
                    app, ["rolling", "--config", str(config_path), "--horizon", "20"]
                )

            self.assertEqual(result.exit_code, 7, msg=result.output)
            available_line = next(
                line
                for line in result.output.splitlines()
                if line.startswith("available_horizons=")
            )
            self.assertEqual(available_line, "available_horizons=5")

            manifests = list((root / "artifacts").glob("*/run_manifest.json"))
            self.assertEqual(len(manifests), 1)
            payload = json.loads(manifests[0].read_text(encoding="utf-8"))
            self.assertEqual(payload["status"], "failed")
            self.assertEqual(payload["command"], "rolling")
            self.assertEqual(payload["failure"]["exception_type"], "HorizonUnavailableError")
            self.assertEqual(payload["failure"]["error_code"], "horizon_unavailable")
            self.assertEqual(payload["inputs"]["config_path"], str(config_path.resolve()))

    def test_provider_failure_returns_fetch_exit_code(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            config_path = _write_config(root)

            with patch(
                "dcalab.core.data.eodhd_provider.EODHDProvider.fetch_prices",
                new=_failing_fetch,
            ):
                result = self.runner.invoke(app, ["simulate", "--config", str(config_path)])

            self.assertEqual(result.exit_code, 3, msg=result.output)
            manifests = list((root / "artifacts").glob("*/run_manifest.json"))
            self.assertEqual(len(manifests), 1)
            payload = json.loads(manifests[0].read_text(encoding="utf-8"))
            self.assertEqual(payload["failure"]["error_code"], "data_fetch_error")


if __name__ == "__main__":
    unittest.main()
