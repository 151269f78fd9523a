"""Arithmetic policy tests: rates, averages, YoY, rounding at presentation."""

from __future__ import annotations

import json
import math
import sys
import unittest
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from hms_analytics.engine.aggregator import TimeUnit, group_by_time  # noqa: E402
from hms_analytics.engine.metrics import (  # noqa: E402
    average,
    days_between,
    hours_between,
    make_rate,
    mean,
    rate,
    summarize,
    year_over_year_change,
)
from hms_analytics.engine.schemas import Figure, Period, TrendLabel  # noqa: E402
from hms_analytics.utils.numbers import format_decimal, format_number, format_pct, round_half_up  # noqa: E402
from support import monthly  # noqa: E402


class RateTests(unittest.TestCase):
    def test_rate(self) -> None:
        self.assertEqual(rate(60, 100), 60.0)
        self.assertAlmostEqual(rate(1, 3), 33.3333333, places=5)

    def test_zero_denominator_is_zero(self) -> None:
        self.assertEqual(rate(5, 0), 0.0)
        self.assertEqual(rate(0, 0), 0.0)

    def test_rate_is_bounded(self) -> None:
        for d in range(0, 25):
            for n in range(0, d + 1):
                r = rate(n, d)
                self.assertGreaterEqual(r, 0.0)
                self.assertLessEqual(r, 100.0)

    def test_average(self) -> None:
        self.assertEqual(average(24, 12), 2.0)
        self.assertEqual(average(10, 0), 0.0)


class YearOverYearTests(unittest.TestCase):
    def test_change(self) -> None:
        self.assertEqual(year_over_year_change(120, 100), 20.0)
        self.assertEqual(year_over_year_change(75, 100), -25.0)

    def test_zero_previous_guard(self) -> None:
        for current in (0, 1, 150, 10 ** 9):
            change = year_over_year_change(current, 0)
            self.assertEqual(change, 0.0)
            self.assertFalse(math.isnan(change) or math.isinf(change))
        self.assertEqual(year_over_year_change(150, None), 0.0)


class HelperTests(unittest.TestCase):
    def test_mean_ignores_missing_values(self) -> None:
        self.assertEqual(mean([1.0, None, 3.0]), 2.0)
        self.assertEqual(mean([]), 0.0)
        self.assertEqual(mean([None]), 0.0)

    def test_hours_and_days_between(self) -> None:
        start = datetime(2024, 3, 1, 22, 0)
        end = datetime(2024, 3, 2, 1, 30)
        self.assertEqual(hours_between(start, end), 3.5)
        self.assertEqual(days_between(start, end), 1)
        self.assertIsNone(hours_between(start, None))
        self.assertIsNone(days_between(None, end))


class SummarizeTests(unittest.TestCase):
    def test_peak_low_and_average(self) -> None:
        buckets = group_by_time(monthly(2024, {3: 5, 7: 7}), TimeUnit.MONTH, Period(year=2024))
        metrics = summarize(buckets)
        self.assertEqual(metrics.total, 12)
        self.assertEqual(metrics.average, 1.0)
        self.assertEqual((metrics.peak.label, metrics.peak.count), ("July", 7))
        self.assertEqual((metrics.low.label, metrics.low.count), ("January", 0))
        self.assertIsNone(metrics.yoy_change)
        self.assertIsNone(metrics.trend)

    def test_previous_total_sets_yoy_and_trend(self) -> None:
        buckets = group_by_time(monthly(2024, {1: 6}), TimeUnit.MONTH, Period(year=2024))
        metrics = summarize(buckets, previous_total=4)
        self.assertEqual(metrics.yoy_change, 50.0)
        self.assertEqual(metrics.trend, TrendLabel.INCREASING)

        flat = summarize(buckets, previous_total=0)
        self.assertEqual(flat.yoy_change, 0.0)
        self.assertEqual(flat.trend, TrendLabel.INCREASING)

    def test_empty_buckets(self) -> None:
        metrics = summarize([])
        self.assertEqual(metrics.total, 0)
        self.assertEqual(metrics.average, 0.0)
        self.assertIsNone(metrics.peak)

    def test_rate_lookup(self) -> None:
        metrics = summarize([], rates=(make_rate("completion_rate", "Completion rate", 1, 3),))
        self.assertAlmostEqual(metrics.rate("completion_rate").percent, 33.333333, places=4)
        with self.assertRaises(KeyError):
            metrics.rate("missing")


class RoundingTests(unittest.TestCase):
    def test_round_half_up(self) -> None:
        self.assertEqual(round_half_up(2.25, 1), 2.3)
        self.assertEqual(round_half_up(33.35, 1), 33.4)
        self.assertEqual(round_half_up(-2.25, 1), -2.3)
        self.assertEqual(round_half_up(2.675, 2), 2.68)

    def test_formatters(self) -> None:
        self.assertEqual(format_number(1234.6), "1,235")
        self.assertEqual(format_pct(33.35), "33.4")
        self.assertEqual(format_pct(60), "60.0")
        self.assertEqual(format_decimal(3.14159, 2), "3.14")

    def test_serialization_rounds_once(self) -> None:
        r = make_rate("completion_rate", "Completion rate", 1, 3)
        self.assertAlmostEqual(r.percent, 33.333333, places=4)
        self.assertEqual(json.loads(r.model_dump_json())["percent"], 33.3)

        pct = Figure(name="occupancy_rate", label="Occupancy", value=12.345, unit="pct")
        hours = Figure(name="avg", label="Average", value=12.345, unit="hours")
        count = Figure(name="total", label="Total", value=7.0)
        self.assertEqual(pct.model_dump()["value"], 12.3)
        self.assertEqual(hours.model_dump()["value"], 12.35)
        self.assertEqual(count.model_dump()["value"], 7.0)


if __name__ == "__main__":
    unittest.main()
