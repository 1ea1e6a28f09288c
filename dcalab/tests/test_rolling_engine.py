"""Unit tests for rolling window generation, sampling and aggregation."""

from __future__ import annotations

import unittest
from datetime import date

from dcalab.core.rolling.engine import (
    compute_window_stats,
    extract_monthly_values,
    generate_window_start_dates,
    get_available_horizons,
    run_rolling_window_analysis,
)
from dcalab.core.rolling.types import DataRange, RollingWindowConfig, WindowResult
from dcalab.core.simulation.types import SimulationPoint
from dcalab.core.utils.errors import RollingAnalysisError
from dcalab.tests.helpers import (
    generate_price_history,
    make_daily_prices,
    make_dividend,
    make_prices,
)

FIVE_YEAR_MONTHLY = RollingWindowConfig(
    amount=100.0,
    frequency="monthly",
    horizon_years=5,
    is_drip=True,
)


def _sim_point(day: date, total_value: float) -> SimulationPoint:
    return SimulationPoint(
        date=day,
        principal=0.0,
        dividends=0.0,
        market_value=total_value,
        shares=0.0,
        total_value=total_value,
    )


def _window(start: date, total_return: float, cagr: float = 0.0) -> WindowResult:
    return WindowResult(
        start_date=start,
        end_date=start.replace(year=start.year + 5),
        total_return=total_return,
        cagr=cagr,
        final_value=100.0 + total_return,
        total_invested=100.0,
        monthly_values=(),
    )


class TestAvailableHorizons(unittest.TestCase):
    """Validate horizon availability thresholds."""

    def test_empty_history(self) -> None:
        self.assertEqual(get_available_horizons([]), [])

    def test_requires_one_year_margin(self) -> None:
        self.assertEqual(get_available_horizons(generate_price_history(date(2020, 1, 1), 5)), [])
        self.assertEqual(get_available_horizons(generate_price_history(date(2018, 1, 1), 7)), [5])
        self.assertEqual(
            get_available_horizons(generate_price_history(date(2012, 1, 1), 12)), [5, 10]
        )
        self.assertEqual(
            get_available_horizons(generate_price_history(date(2000, 1, 1), 25)),
            [5, 10, 15, 20],
        )

    def test_ten_and_a_half_years_never_offers_long_horizons(self) -> None:
        prices = make_prices([(date(2010, 1, 1), 100.0), (date(2020, 7, 2), 150.0)])

        available = get_available_horizons(prices)

        self.assertNotIn(15, available)
        self.assertNotIn(20, available)
        # 10 years needs 11 years of history.
        self.assertEqual(available, [5])


class TestWindowGeneration(unittest.TestCase):
    """Validate first-of-month window starts."""

    def test_starts_are_first_of_month_up_to_latest_start(self) -> None:
        prices = make_daily_prices(date(2010, 1, 15), date(2016, 3, 10))

        starts = generate_window_start_dates(prices, 5)

        self.assertEqual(starts[0], date(2010, 1, 1))
        self.assertEqual(starts[-1], date(2011, 3, 1))
        self.assertTrue(all(start.day == 1 for start in starts))
        self.assertEqual(len(starts), 15)

    def test_insufficient_history_has_no_starts(self) -> None:
        prices = make_daily_prices(date(2020, 1, 1), date(2024, 6, 30))
        self.assertEqual(generate_window_start_dates(prices, 5), [])
        self.assertEqual(generate_window_start_dates([], 5), [])


class TestMonthlySampling(unittest.TestCase):
    """Validate month bucketing and carry-forward gap fill."""

    def test_keeps_last_point_per_month(self) -> None:
        points = [
            _sim_point(date(2020, 1, 2), 100.0),
            _sim_point(date(2020, 1, 31), 110.0),
            _sim_point(date(2020, 2, 3), 120.0),
        ]
        self.assertEqual(extract_monthly_values(points, date(2020, 1, 1), 1), [110.0, 120.0])

    def test_gaps_carry_forward_and_leading_months_are_zero(self) -> None:
        points = [
            _sim_point(date(2020, 2, 10), 50.0),
            _sim_point(date(2020, 4, 5), 80.0),
        ]

        values = extract_monthly_values(points, date(2020, 1, 1), 5)

        self.assertEqual(values, [0.0, 50.0, 50.0, 80.0, 80.0, 80.0])

    def test_no_points(self) -> None:
        self.assertEqual(extract_monthly_values([], date(2020, 1, 1), 12), [])


class TestWindowStats(unittest.TestCase):
    """Validate cross-window statistics."""

    def test_best_and_worst_keep_first_seen_on_ties(self) -> None:
        windows = [
            _window(date(2010, 1, 1), 40.0, cagr=5.0),
            _window(date(2010, 2, 1), -10.0, cagr=-2.0),
            _window(date(2010, 3, 1), 40.0, cagr=5.0),
            _window(date(2010, 4, 1), -10.0, cagr=-2.0),
            _window(date(2010, 5, 1), 120.0, cagr=9.0),
        ]

        stats = compute_window_stats(windows)

        self.assertEqual(stats.window_count, 5)
        self.assertEqual(stats.best_window, windows[4])
        self.assertEqual(stats.worst_window, windows[1])
        self.assertAlmostEqual(stats.median_return, 40.0)
        self.assertAlmostEqual(stats.median_cagr, 5.0)
        self.assertAlmostEqual(stats.success_rate, 60.0)
        self.assertAlmostEqual(stats.return_distribution.negative, 40.0)
        self.assertAlmostEqual(stats.return_distribution.low, 40.0)
        self.assertAlmostEqual(stats.return_distribution.high, 20.0)

    def test_empty_windows(self) -> None:
        stats = compute_window_stats([])
        self.assertEqual(stats.window_count, 0)
        self.assertIsNone(stats.best_window)


class TestRollingWindowAnalysis(unittest.TestCase):
    """Validate end-to-end rolling analysis."""

    def test_window_count_for_seven_years_of_daily_data(self) -> None:
        prices = generate_price_history(date(2010, 1, 1), 7)

        result = run_rolling_window_analysis(prices, [], FIVE_YEAR_MONTHLY)

        self.assertGreaterEqual(result.stats.window_count, 20)
        self.assertLessEqual(result.stats.window_count, 26)
        self.assertEqual(len(result.windows), result.stats.window_count)
        for window in result.windows:
            self.assertEqual(window.start_date.day, 1)
            self.assertEqual(window.end_date.year - window.start_date.year, 5)
            self.assertEqual(len(window.monthly_values), 61)

        bands = result.normalized_bands
        self.assertEqual(bands.month_offsets, tuple(range(61)))
        self.assertEqual(len(bands.value_bands), 61)
        self.assertEqual(len(bands.return_bands), 61)
        for index in range(61):
            values = bands.value_bands
            self.assertLessEqual(values.p10[index], values.p25[index])
            self.assertLessEqual(values.p25[index], values.p50[index])
            self.assertLessEqual(values.p50[index], values.p75[index])
            self.assertLessEqual(values.p75[index], values.p90[index])

    def test_constant_price_return_bands_end_flat(self) -> None:
        prices = make_daily_prices(date(2010, 1, 1), date(2016, 12, 30), close=100.0)
        config = RollingWindowConfig(amount=100.0, frequency="monthly", horizon_years=5)

        result = run_rolling_window_analysis(prices, [], config)

        # Linear pacing assumes everything is invested by the last month offset.
        final_returns = result.normalized_bands.return_bands
        self.assertAlmostEqual(final_returns.p10[-1], 0.0, places=6)
        self.assertAlmostEqual(final_returns.p90[-1], 0.0, places=6)
        for window in result.windows:
            self.assertAlmostEqual(window.total_return, 0.0, places=6)
        self.assertEqual(result.stats.success_rate, 0.0)

    def test_windows_only_see_their_own_dividends(self) -> None:
        prices = generate_price_history(date(2010, 1, 1), 7)
        dividends = [make_dividend(date(2016, 6, 15), 2.0)]

        without = run_rolling_window_analysis(prices, [], FIVE_YEAR_MONTHLY)
        with_dividend = run_rolling_window_analysis(prices, dividends, FIVE_YEAR_MONTHLY)

        # The first window ends in January 2015, before the ex-date.
        self.assertEqual(with_dividend.windows[0], without.windows[0])
        self.assertGreater(with_dividend.windows[-1].final_value, without.windows[-1].final_value)

    def test_data_range_spans_full_history(self) -> None:
        prices = generate_price_history(date(2010, 1, 1), 7)

        result = run_rolling_window_analysis(prices, [], FIVE_YEAR_MONTHLY)

        self.assertEqual(result.data_range.first_date, date(2010, 1, 1))
        self.assertEqual(result.data_range.last_date, date(2016, 12, 29))
        self.assertAlmostEqual(result.data_range.years_of_data, 2554 / 365.25)

    def test_insufficient_history_returns_empty_result(self) -> None:
        prices = generate_price_history(date(2020, 1, 1), 4)

        result = run_rolling_window_analysis(prices, [], FIVE_YEAR_MONTHLY)

        self.assertEqual(result.windows, ())
        self.assertEqual(result.stats.window_count, 0)
        self.assertEqual(result.normalized_bands.month_offsets, ())
        self.assertEqual(len(result.normalized_bands.value_bands), 0)

    def test_empty_history_returns_empty_result(self) -> None:
        result = run_rolling_window_analysis([], [], FIVE_YEAR_MONTHLY)

        self.assertEqual(result.data_range, DataRange())
        self.assertEqual(result.stats.window_count, 0)
        self.assertNotIn("windows", result.to_dict(include_windows=False))

    def test_config_rejects_unsupported_horizon(self) -> None:
        with self.assertRaises(RollingAnalysisError):
            RollingWindowConfig(
                amount=100.0,
                frequency="monthly",
                horizon_years=7,  # type: ignore[arg-type]
            )
        with self.assertRaises(RollingAnalysisError):
            RollingWindowConfig(amount=-1.0, frequency="monthly", horizon_years=5)


if __name__ == "__main__":
    unittest.main()
