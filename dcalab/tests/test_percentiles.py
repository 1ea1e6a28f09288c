"""Unit tests for percentile and summary statistics helpers."""

from __future__ import annotations

import random
import unittest

from dcalab.core.rolling.percentiles import (
    calculate_median,
    calculate_percentile,
    calculate_percentile_bands,
    calculate_percentiles,
    calculate_stats,
    categorize_returns,
)
from dcalab.core.rolling.types import ReturnDistribution, SummaryStats


class TestPercentiles(unittest.TestCase):
    """Validate linear-interpolation percentiles."""

    def test_degenerate_inputs(self) -> None:
        self.assertEqual(calculate_percentile([], 50), 0.0)
        for p in (0, 10, 50, 90, 100):
            self.assertEqual(calculate_percentile([42.0], p), 42.0)

    def test_interpolates_between_ranks(self) -> None:
        values = [10.0, 20.0, 30.0, 40.0]
        self.assertAlmostEqual(calculate_percentile(values, 0), 10.0)
        self.assertAlmostEqual(calculate_percentile(values, 50), 25.0)
        self.assertAlmostEqual(calculate_percentile(values, 90), 37.0)
        self.assertAlmostEqual(calculate_percentile(values, 100), 40.0)

    def test_out_of_range_percentiles_are_clamped(self) -> None:
        values = [1.0, 2.0, 3.0]
        self.assertEqual(calculate_percentile(values, -5), 1.0)
        self.assertEqual(calculate_percentile(values, 150), 3.0)

    def test_calculate_percentiles_does_not_mutate_input(self) -> None:
        values = [5.0, 1.0, 4.0, 2.0, 3.0]
        snapshot = list(values)

        result = calculate_percentiles(values, [25, 50, 75])

        self.assertEqual(values, snapshot)
        self.assertEqual(result, {25: 2.0, 50: 3.0, 75: 4.0})

    def test_median(self) -> None:
        self.assertEqual(calculate_median([]), 0.0)
        self.assertEqual(calculate_median([3.0, 1.0, 2.0]), 2.0)
        self.assertEqual(calculate_median([4.0, 1.0, 3.0, 2.0]), 2.5)


class TestPercentileBands(unittest.TestCase):
    """Validate band construction across time indices."""

    def test_bands_are_ordered_at_every_index(self) -> None:
        rng = random.Random(7)
        values_by_index = [
            [rng.uniform(-50.0, 250.0) for _ in range(rng.randint(1, 40))] for _ in range(60)
        ]

        bands = calculate_percentile_bands(values_by_index)

        self.assertEqual(len(bands), 60)
        for index in range(len(bands)):
            self.assertLessEqual(bands.p10[index], bands.p25[index])
            self.assertLessEqual(bands.p25[index], bands.p50[index])
            self.assertLessEqual(bands.p50[index], bands.p75[index])
            self.assertLessEqual(bands.p75[index], bands.p90[index])

    def test_empty_index_yields_zero(self) -> None:
        bands = calculate_percentile_bands([[], [1.0, 3.0]])
        self.assertEqual(bands.p50, (0.0, 2.0))


class TestSummaryStats(unittest.TestCase):
    """Validate descriptive statistics and return buckets."""

    def test_calculate_stats(self) -> None:
        stats = calculate_stats([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])
        self.assertEqual(stats.min, 2.0)
        self.assertEqual(stats.max, 9.0)
        self.assertAlmostEqual(stats.mean, 5.0)
        self.assertAlmostEqual(stats.median, 4.5)
        self.assertAlmostEqual(stats.std_dev, 2.0)

    def test_calculate_stats_empty(self) -> None:
        self.assertEqual(calculate_stats([]), SummaryStats())

    def test_categorize_returns_buckets_sum_to_hundred(self) -> None:
        distribution = categorize_returns([-10.0, 0.0, 49.9, 50.0, 99.9, 100.0, 250.0, -0.1])

        self.assertAlmostEqual(distribution.negative, 25.0)
        self.assertAlmostEqual(distribution.low, 25.0)
        self.assertAlmostEqual(distribution.medium, 25.0)
        self.assertAlmostEqual(distribution.high, 25.0)
        total = distribution.negative + distribution.low + distribution.medium + distribution.high
        self.assertAlmostEqual(total, 100.0)

    def test_categorize_returns_empty(self) -> None:
        self.assertEqual(categorize_returns([]), ReturnDistribution())


if __name__ == "__main__":
    unittest.main()
