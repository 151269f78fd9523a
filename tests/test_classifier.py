"""Peak/low selection and trend classification tests."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from hms_analytics.engine.classifier import (  # noqa: E402
    classify_trend,
    is_seasonal,
    low_bucket,
    occupancy_band,
    peak_bucket,
)
from hms_analytics.engine.schemas import Bucket, Extremum, TrendLabel  # noqa: E402


def _buckets(*counts: int) -> list:
    return [Bucket(key=i + 1, label=f"b{i + 1}", count=c) for i, c in enumerate(counts)]


class PeakLowTests(unittest.TestCase):
    def test_peak_and_low_dominate(self) -> None:
        buckets = _buckets(3, 9, 1, 4, 9, 1)
        peak, low = peak_bucket(buckets), low_bucket(buckets)
        self.assertTrue(all(peak.count >= b.count for b in buckets))
        self.assertTrue(all(low.count <= b.count for b in buckets))

    def test_ties_pick_earliest_bucket(self) -> None:
        buckets = _buckets(3, 9, 1, 4, 9, 1)
        self.assertEqual(peak_bucket(buckets).key, 2)
        self.assertEqual(low_bucket(buckets).key, 3)

    def test_all_zero_and_single_bucket(self) -> None:
        zeros = _buckets(0, 0, 0)
        self.assertEqual(peak_bucket(zeros).key, 1)
        self.assertEqual(low_bucket(zeros).key, 1)
        single = _buckets(5)
        self.assertIs(peak_bucket(single), single[0])
        self.assertIs(low_bucket(single), single[0])

    def test_empty_list(self) -> None:
        self.assertIsNone(peak_bucket([]))
        self.assertIsNone(low_bucket([]))


class TrendTests(unittest.TestCase):
    def test_sign_comparison(self) -> None:
        self.assertEqual(classify_trend(10, 5), TrendLabel.INCREASING)
        self.assertEqual(classify_trend(5, 10), TrendLabel.DECREASING)
        self.assertEqual(classify_trend(7, 7), TrendLabel.STABLE)

    def test_seasonality(self) -> None:
        peak = Extremum(key=7, label="July", count=16)
        self.assertTrue(is_seasonal(peak, Extremum(key=1, label="January", count=10)))
        self.assertFalse(is_seasonal(peak, Extremum(key=1, label="January", count=11)))
        self.assertFalse(is_seasonal(peak, None))
        self.assertTrue(is_seasonal(_buckets(5)[0], _buckets(1)[0], factor=2.0))

    def test_occupancy_band(self) -> None:
        self.assertEqual(occupancy_band(90.0), "high")
        self.assertEqual(occupancy_band(85.0), "optimal")
        self.assertEqual(occupancy_band(60.0), "optimal")
        self.assertEqual(occupancy_band(59.9), "low")


if __name__ == "__main__":
    unittest.main()
