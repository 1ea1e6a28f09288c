"""EOD Historical Data provider implementation."""

from __future__ import annotations

import time
from typing import Any

import pandas as pd
import requests

from dcalab.core.data.base import MarketDataProvider
from dcalab.core.data.frames import (
    empty_dividend_frame,
    empty_price_frame,
    normalize_dividend_frame,
    normalize_price_frame,
)
from dcalab.core.utils.env import EODHD_API_KEY_ENV, read_api_key
from dcalab.core.utils.errors import DataFetchError, DataValidationError
from dcalab.core.utils.logging import get_logger

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})
DEFAULT_EXCHANGE_SUFFIX = ".US"

LOGGER = get_logger("dcalab.data.eodhd")


def provider_symbol(symbol: str) -> str:
    """Append the default exchange suffix to bare tickers (``SPY`` -> ``SPY.US``)."""
    cleaned = symbol.strip().upper()
    if not cleaned:
        raise ValueError("Symbol cannot be empty.")
    return cleaned if "." in cleaned else f"{cleaned}{DEFAULT_EXCHANGE_SUFFIX}"


class EODHDProvider(MarketDataProvider):
    """REST client for EOD Historical Data."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://eodhd.com/api",
        session: requests.Session | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
        retry_backoff_seconds: float = 0.5,
    ) -> None:
        """
        Initialize an EODHD provider.

        Args:
            api_key: API token. If omitted, reads from ``EODHD_API_KEY``.
            base_url: Base URL for the EODHD REST API.
            session: Optional requests session for dependency injection.
            timeout_seconds: Request timeout in seconds.
            max_retries: Number of retry attempts for transient failures.
            retry_backoff_seconds: Base seconds for exponential retry backoff.

        Raises:
            ValueError: If no API key is provided.
        """
        resolved_api_key = read_api_key(api_key)
        if not resolved_api_key:
            raise ValueError(
                f"EODHD API key is required. Set {EODHD_API_KEY_ENV} or pass api_key explicitly."
            )

        self._api_key = resolved_api_key
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout_seconds = timeout_seconds
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0.")
        if retry_backoff_seconds < 0:
            raise ValueError("retry_backoff_seconds must be >= 0.")
        self._max_retries = max_retries
        self._retry_backoff_seconds = retry_backoff_seconds

    def _sleep_before_retry(self, attempt: int) -> None:
        """Sleep exponential backoff before a retry attempt."""
        if self._retry_backoff_seconds == 0:
            return
        time.sleep(self._retry_backoff_seconds * (2**attempt))

    def _request_payload(
        self,
        endpoint: str,
        params: dict[str, str],
        symbol: str,
        not_found_ok: bool = False,
    ) -> Any:
        """
        Request a raw JSON payload with retry/backoff on transient failures.

        Returns ``None`` for a 404 when ``not_found_ok`` is set.
        """
        last_exception: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                response = self._session.get(endpoint, params=params, timeout=self._timeout_seconds)
                if response.status_code in RETRYABLE_STATUS_CODES and attempt < self._max_retries:
                    LOGGER.debug(
                        "Retrying %s after HTTP %s (attempt %s)",
                        symbol,
                        response.status_code,
                        attempt + 1,
                    )
                    self._sleep_before_retry(attempt)
                    continue
                if not_found_ok and response.status_code == 404:
                    return None

                response.raise_for_status()
                return response.json()
            except requests.exceptions.RequestException as exc:
                last_exception = exc
                if attempt >= self._max_retries:
                    break
                self._sleep_before_retry(attempt)
            except ValueError as exc:
                raise DataValidationError(f"Invalid JSON response for symbol '{symbol}'.") from exc

        raise DataFetchError(f"Failed to fetch data for symbol '{symbol}': {last_exception}")

    @staticmethod
    def _ensure_list_payload(payload: Any, symbol: str) -> list[Any]:
        """Reject vendor error objects and unexpected payload shapes."""
        if isinstance(payload, dict):
            message = payload.get("message") or payload.get("error") or str(payload)
            raise DataValidationError(f"EODHD error for symbol '{symbol}': {message}")
        if not isinstance(payload, list):
            raise DataValidationError(f"Unexpected EODHD response type for symbol '{symbol}'.")
        return payload

    def _normalize_price_payload(self, payload: Any, symbol: str) -> pd.DataFrame:
        """Validate an ``/eod`` payload and normalize it, preferring adjusted closes."""
        rows = self._ensure_list_payload(payload, symbol)
        if not rows:
            return empty_price_frame()

        frame = pd.DataFrame(rows)
        if "date" not in frame.columns and "datetime" in frame.columns:
            frame["date"] = frame["datetime"].astype(str).str.split(" ").str[0]
        missing = [column for column in ("date", "close") if column not in frame.columns]
        if missing:
            raise DataValidationError(
                f"EODHD payload is missing required columns for symbol '{symbol}': {missing}"
            )

        if "adjusted_close" in frame.columns:
            adjusted = pd.to_numeric(frame["adjusted_close"], errors="coerce")
            frame["close"] = adjusted.fillna(pd.to_numeric(frame["close"], errors="coerce"))

        normalized = normalize_price_frame(frame)
        if normalized.empty:
            raise DataValidationError(
                f"EODHD payload has no bars with a positive close for symbol '{symbol}'."
            )
        if (normalized["high"] < normalized["low"]).any() or (normalized["volume"] < 0).any():
            raise DataValidationError(
                f"EODHD payload failed price integrity checks for symbol '{symbol}'."
            )
        return normalized

    def _normalize_dividend_payload(self, payload: Any, symbol: str) -> pd.DataFrame:
        """Validate a ``/div`` payload; ``value`` is the adjusted per-share amount."""
        if payload is None:
            return empty_dividend_frame()
        rows = self._ensure_list_payload(payload, symbol)
        if not rows:
            return empty_dividend_frame()

        frame = pd.DataFrame(rows)
        missing = [column for column in ("date", "value") if column not in frame.columns]
        if missing:
            raise DataValidationError(
                f"EODHD dividend payload is missing required columns for symbol '{symbol}': "
                f"{missing}"
            )
        frame = frame.rename(columns={"value": "amount", "paymentDate": "payment_date"})
        return normalize_dividend_frame(frame)

    def fetch_prices(self, symbol: str, start: str, end: str) -> pd.DataFrame:
        """
        Fetch daily prices for a symbol from EODHD.

        Args:
            symbol: Ticker; bare tickers are treated as US listings.
            start: Inclusive start date in ``YYYY-MM-DD`` format.
            end: Inclusive end date in ``YYYY-MM-DD`` format.

        Returns:
            Normalized price dataframe with UTC datetime index.
        """
        resolved = provider_symbol(symbol)
        params = {
            "api_token": self._api_key,
            "from": start,
            "to": end,
            "period": "d",
            "order": "a",
            "fmt": "json",
        }
        payload = self._request_payload(f"{self._base_url}/eod/{resolved}", params, symbol)
        return self._normalize_price_payload(payload=payload, symbol=symbol)

    def fetch_dividends(self, symbol: str, start: str, end: str) -> pd.DataFrame:
        """
        Fetch dividends for a symbol from EODHD.

        A 404 means the symbol has no dividend history and yields an empty frame.
        """
        resolved = provider_symbol(symbol)
        params = {
            "api_token": self._api_key,
            "from": start,
            "to": end,
            "fmt": "json",
        }
        payload = self._request_payload(
            f"{self._base_url}/div/{resolved}",
            params,
            symbol,
            not_found_ok=True,
        )
        return self._normalize_dividend_payload(payload=payload, symbol=symbol)
