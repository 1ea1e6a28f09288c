"""Unit tests for contribution schedules and trading-day resolution."""

from __future__ import annotations

import unittest
from datetime import date

from dcalab.core.simulation.engine import run_dca_simulation
from dcalab.core.simulation.schedule import (
    add_months,
    build_dividend_lookup,
    find_nearest_trading_day,
    generate_schedule_dates,
    resolve_schedule,
)
from dcalab.core.simulation.types import DCAConfig
from dcalab.tests.helpers import make_dividend, make_prices


class TestScheduleGeneration(unittest.TestCase):
    """Validate calendar stepping per frequency."""

    def test_weekly_and_biweekly_step_by_days(self) -> None:
        weekly = generate_schedule_dates(date(2024, 1, 1), date(2024, 1, 29), "weekly")
        biweekly = generate_schedule_dates(date(2024, 1, 1), date(2024, 1, 29), "biweekly")
        self.assertEqual(
            weekly,
            [
                date(2024, 1, 1),
                date(2024, 1, 8),
                date(2024, 1, 15),
                date(2024, 1, 22),
                date(2024, 1, 29),
            ],
        )
        self.assertEqual(biweekly, [date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 29)])

    def test_monthly_steps_one_month_from_previous_date(self) -> None:
        dates = generate_schedule_dates(date(2024, 1, 31), date(2024, 5, 31), "monthly")
        self.assertEqual(
            dates,
            [
                date(2024, 1, 31),
                date(2024, 2, 29),
                date(2024, 3, 29),
                date(2024, 4, 29),
                date(2024, 5, 29),
            ],
        )

    def test_monthly_mid_month_day_is_kept(self) -> None:
        dates = generate_schedule_dates(date(2023, 11, 15), date(2024, 2, 14), "monthly")
        self.assertEqual(dates, [date(2023, 11, 15), date(2023, 12, 15), date(2024, 1, 15)])

    def test_add_months_handles_leap_years(self) -> None:
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2024, 2, 29), 12), date(2025, 2, 28))
        self.assertEqual(add_months(date(2024, 3, 15), -3), date(2023, 12, 15))

    def test_end_is_inclusive_and_empty_when_start_after_end(self) -> None:
        self.assertEqual(
            generate_schedule_dates(date(2024, 1, 1), date(2024, 1, 1), "monthly"),
            [date(2024, 1, 1)],
        )
        self.assertEqual(generate_schedule_dates(date(2024, 2, 1), date(2024, 1, 1), "weekly"), [])


class TestTradingDayResolution(unittest.TestCase):
    """Validate forward-only nearest trading day search."""

    def test_exact_match_is_returned(self) -> None:
        trading_days = {date(2024, 1, 2), date(2024, 1, 3)}
        self.assertEqual(find_nearest_trading_day(date(2024, 1, 2), trading_days), date(2024, 1, 2))

    def test_search_moves_forward_only(self) -> None:
        trading_days = {date(2024, 1, 5), date(2024, 1, 8)}
        # Jan 6 is a Saturday: the earlier Friday is never chosen.
        self.assertEqual(find_nearest_trading_day(date(2024, 1, 6), trading_days), date(2024, 1, 8))

    def test_seven_day_offset_is_inclusive(self) -> None:
        trading_days = {date(2024, 1, 8)}
        self.assertEqual(find_nearest_trading_day(date(2024, 1, 1), trading_days), date(2024, 1, 8))
        self.assertIsNone(find_nearest_trading_day(date(2023, 12, 31), trading_days))

    def test_resolve_schedule_counts_collisions_and_drops_unreachable(self) -> None:
        trading_days = {date(2024, 1, 10), date(2024, 3, 1)}
        resolved = resolve_schedule(
            [date(2024, 1, 5), date(2024, 1, 9), date(2024, 2, 1)],
            trading_days,
        )
        self.assertEqual(dict(resolved), {date(2024, 1, 10): 2})


class TestDividendLookup(unittest.TestCase):
    """Validate dividend aggregation by ex-date."""

    def test_same_day_dividends_are_summed_and_non_positive_ignored(self) -> None:
        lookup = build_dividend_lookup(
            [
                make_dividend(date(2024, 3, 15), 0.25),
                make_dividend(date(2024, 3, 15), 0.10),
                make_dividend(date(2024, 6, 14), 0.0),
                make_dividend(date(2024, 9, 13), -1.0),
            ]
        )
        self.assertEqual(set(lookup), {date(2024, 3, 15)})
        self.assertAlmostEqual(lookup[date(2024, 3, 15)], 0.35)


class TestSkippedContribution(unittest.TestCase):
    """A scheduled date with no trading day within reach is skipped, not deferred."""

    def test_contribution_inside_long_gap_is_dropped(self) -> None:
        prices = make_prices(
            [
                (date(2024, 1, 2), 100.0),
                (date(2024, 1, 31), 100.0),
                # No bars between Feb 1 and Feb 12: the Feb 2 contribution cannot resolve.
                (date(2024, 2, 13), 100.0),
                (date(2024, 3, 4), 100.0),
            ]
        )
        config = DCAConfig(amount=100.0, frequency="monthly", start_date=date(2024, 1, 2))

        result = run_dca_simulation(prices, [], config)

        self.assertAlmostEqual(result.total_invested, 200.0)
        principals = {point.date: point.principal for point in result.points}
        self.assertAlmostEqual(principals[date(2024, 2, 13)], 100.0)
        self.assertAlmostEqual(principals[date(2024, 3, 4)], 200.0)


if __name__ == "__main__":
    unittest.main()
