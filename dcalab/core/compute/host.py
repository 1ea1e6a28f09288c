"""Non-blocking host for rolling window analysis requests.

Only the most recent request is live. Every response carries the id of the
request that produced it and is delivered only while that id is still live,
so late results from superseded or cancelled requests are dropped. Worker
results and fallback results reach the callback through the same scheduler, so
an asyncio caller always receives them on its own loop thread.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from threading import RLock
from typing import Any, Literal

from dcalab.core.rolling.engine import get_available_horizons, run_rolling_window_analysis
from dcalab.core.rolling.types import RollingWindowConfig, RollingWindowResult
from dcalab.core.simulation.types import DividendRecord, PricePoint
from dcalab.core.utils.errors import (
    ComputeHostError,
    HorizonUnavailableError,
    error_code_for_exception,
)
from dcalab.core.utils.logging import get_logger

LOGGER = get_logger("dcalab.compute")

ResponseCallback = Callable[["RollingResponse"], None]
ExecutorFactory = Callable[[], Executor]
FallbackScheduler = Callable[[Callable[[], None]], None]


@dataclass(frozen=True)
class RollingRequest:
    """One rolling analysis request."""

    request_id: int
    prices: tuple[PricePoint, ...]
    dividends: tuple[DividendRecord, ...]
    config: RollingWindowConfig


@dataclass(frozen=True)
class RollingResponse:
    """Outcome of one rolling analysis request."""

    request_id: int
    status: Literal["success", "error"]
    result: RollingWindowResult | None = None
    available_horizons: tuple[int, ...] = ()
    error_code: str | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self, include_windows: bool = True) -> dict[str, Any]:
        """Serialize to a JSON-safe payload."""
        result = self.result
        return {
            "request_id": self.request_id,
            "status": self.status,
            "result": None if result is None else result.to_dict(include_windows=include_windows),
            "available_horizons": list(self.available_horizons),
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


def execute_rolling_request(request: RollingRequest) -> RollingResponse:
    """
    Run one request to completion and convert any failure into an error response.

    Module-level so that process pools can pickle it.

    Args:
        request: Request to execute.

    Returns:
        Success response with the analysis, or an error response tagged with
        the request id.
    """
    available: list[int] = []
    try:
        available = get_available_horizons(request.prices)
        if request.config.horizon_years not in available:
            raise HorizonUnavailableError(request.config.horizon_years, available)
        result = run_rolling_window_analysis(request.prices, request.dividends, request.config)
        return RollingResponse(
            request_id=request.request_id,
            status="success",
            result=result,
            available_horizons=tuple(available),
        )
    except Exception as exc:
        LOGGER.debug("Rolling request %s failed: %s", request.request_id, exc)
        return RollingResponse(
            request_id=request.request_id,
            status="error",
            available_horizons=tuple(available),
            error_code=error_code_for_exception(exc),
            error_message=str(exc),
        )


def _default_executor() -> Executor:
    return ThreadPoolExecutor(max_workers=1, thread_name_prefix="dcalab-rolling")


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _loop_scheduler(loop: asyncio.AbstractEventLoop | None) -> FallbackScheduler:
    """Defer to the next tick of ``loop``, or run inline without one."""

    def schedule(callback: Callable[[], None]) -> None:
        if loop is None or loop.is_closed():
            callback()
            return
        loop.call_soon_threadsafe(callback)

    return schedule


class RollingAnalysisHost:
    """Run rolling analyses off the caller's thread with last-request-wins delivery."""

    def __init__(
        self,
        on_response: ResponseCallback,
        executor_factory: ExecutorFactory | None = None,
        fallback_scheduler: FallbackScheduler | None = None,
    ) -> None:
        """
        Initialize host state.

        Args:
            on_response: Called once with the response of each request that is
                still live when it completes.
            executor_factory: Builds the background worker. Defaults to a
                single-thread pool. Created lazily on first use.
            fallback_scheduler: Runs every delivery, and the synchronous fallback
                when the worker is unavailable, on the caller's side. Defaults
                to the next tick of the event loop running in the thread that
                called ``compute``, or inline without one.
        """
        self._on_response = on_response
        self._executor_factory = executor_factory or _default_executor
        self._fallback_scheduler = fallback_scheduler
        self._lock = RLock()
        self._executor: Executor | None = None
        self._worker_failed = False
        self._closed = False
        self._counter = 0
        self._active_request_id: int | None = None

    @property
    def active_request_id(self) -> int | None:
        with self._lock:
            return self._active_request_id

    @property
    def worker_available(self) -> bool:
        with self._lock:
            return not self._worker_failed and not self._closed

    def compute(
        self,
        prices: Sequence[PricePoint],
        dividends: Sequence[DividendRecord],
        config: RollingWindowConfig,
    ) -> int:
        """
        Start a new analysis, superseding any request still in flight.

        Args:
            prices: Chronologically ordered daily bars.
            dividends: Dividend records.
            config: Rolling window configuration.

        Returns:
            Id assigned to the new request.

        Raises:
            ComputeHostError: If the host has been closed.
        """
        with self._lock:
            if self._closed:
                raise ComputeHostError("Cannot compute on a closed RollingAnalysisHost.")
            self._counter += 1
            request_id = self._counter
            self._active_request_id = request_id

        request = RollingRequest(
            request_id=request_id,
            prices=tuple(prices),
            dividends=tuple(dividends),
            config=config,
        )
        scheduler = self._fallback_scheduler or _loop_scheduler(_running_loop())

        future = self._submit(request)
        if future is None:
            self._run_fallback(request, scheduler)
        else:
            future.add_done_callback(
                lambda done: self._on_worker_done(request, done, scheduler)
            )
        return request_id

    def cancel(self) -> None:
        """Stop listening for the live request; its result will be discarded."""
        with self._lock:
            self._active_request_id = None

    def close(self) -> None:
        """Cancel the live request and release the worker."""
        with self._lock:
            self._closed = True
            self._active_request_id = None
            executor = self._executor
            self._executor = None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> RollingAnalysisHost:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _submit(self, request: RollingRequest) -> Future[RollingResponse] | None:
        """Submit to the worker, or return ``None`` when it cannot take work."""
        with self._lock:
            if self._worker_failed:
                return None
            try:
                if self._executor is None:
                    self._executor = self._executor_factory()
                executor = self._executor
            except Exception as exc:
                LOGGER.warning("Rolling worker unavailable, using fallback: %s", exc)
                self._worker_failed = True
                return None

        try:
            return executor.submit(execute_rolling_request, request)
        except Exception as exc:
            LOGGER.warning("Rolling worker rejected request %s: %s", request.request_id, exc)
            self._mark_worker_failed()
            return None

    def _on_worker_done(
        self,
        request: RollingRequest,
        future: Future[RollingResponse],
        scheduler: FallbackScheduler,
    ) -> None:
        if future.cancelled():
            return
        try:
            response = future.result()
        except Exception as exc:
            LOGGER.warning(
                "Rolling worker failed on request %s, using fallback: %s",
                request.request_id,
                exc,
            )
            self._mark_worker_failed()
            self._run_fallback(request, scheduler)
            return
        scheduler(lambda: self._deliver(response))

    def _mark_worker_failed(self) -> None:
        with self._lock:
            self._worker_failed = True
            executor = self._executor
            self._executor = None
        if executor is not None:
            executor.shutdown(wait=False)

    def _run_fallback(self, request: RollingRequest, scheduler: FallbackScheduler) -> None:
        def run() -> None:
            if not self._is_live(request.request_id):
                return
            self._deliver(execute_rolling_request(request))

        scheduler(run)

    def _is_live(self, request_id: int) -> bool:
        with self._lock:
            return request_id == self._active_request_id

    def _deliver(self, response: RollingResponse) -> None:
        # Liveness check and callback are atomic with respect to compute().
        with self._lock:
            if response.request_id != self._active_request_id:
                LOGGER.debug("Discarding stale rolling response %s", response.request_id)
                return
            self._on_response(response)
