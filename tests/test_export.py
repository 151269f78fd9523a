"""Export tests: JSON payload, chart series and the Markdown document."""

from __future__ import annotations

import json
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from hms_analytics.engine.assembler import ReportRequest, generate_report  # noqa: E402
from hms_analytics.engine.export import (  # noqa: E402
    chart_colors,
    chart_series,
    format_figure,
    render_markdown,
    to_json,
)
from hms_analytics.engine.schemas import Figure  # noqa: E402
from hms_analytics.fetch.records import InMemoryFetcher  # noqa: E402
from support import monthly  # noqa: E402


def _report():
    records = monthly(2024, {1: 2}, "COMPLETED", doctor="Dr. Silva") + monthly(
        2024, {2: 1}, "CANCELLED", doctor="Dr. Silva"
    )
    return generate_report(
        ReportRequest(kind="appointments", year=2024),
        InMemoryFetcher({"appointments": records}),
    )


class ExportTests(unittest.TestCase):
    def test_json_payload_rounds_percentages(self) -> None:
        payload = json.loads(to_json(_report()))
        self.assertEqual(payload["kind"], "appointments")
        self.assertEqual(payload["period"], {"year": 2024, "month": None})
        figures = {f["name"]: f["value"] for f in payload["figures"]}
        self.assertEqual(figures["completion_rate"], 66.7)
        self.assertEqual(figures["total_appointments"], 3)
        status = next(b for b in payload["breakdowns"] if b["name"] == "status")
        rates = {r["name"]: r["percent"] for r in status["metrics"]["rates"]}
        self.assertEqual(rates["cancellation_rate"], 33.3)

    def test_chart_series(self) -> None:
        report = _report()
        series = chart_series(report)
        self.assertEqual(list(series), [b.name for b in report.breakdowns])
        self.assertEqual(len(series["monthly"]), 12)
        self.assertEqual(series["monthly"][0], ("January", 2.0))
        self.assertEqual(series["hourly"][9][0], "09:00-10:00")
        valued = chart_series(report, use_value=True)
        self.assertEqual(valued["hourly"][9][1], 100.0)

    def test_chart_colors_follow_status_metadata(self) -> None:
        colors = chart_colors(_report())
        self.assertEqual(colors["status"], {"Completed": "#4CAF50", "Cancelled": "#F44336"})
        self.assertNotIn("monthly", colors)
        self.assertNotIn("doctors", colors)

    def test_markdown(self) -> None:
        md = render_markdown(_report())
        self.assertTrue(md.startswith("# Appointment Analytics Report (2024)"))
        self.assertIn("## Introduction", md)
        self.assertIn("| Total appointments | 3 |", md)
        self.assertIn("| Completion rate | 66.7% |", md)
        self.assertIn("### Monthly appointments", md)
        self.assertIn("| January | 2 |", md)
        self.assertIn("| **Total** | **3** |", md)

    def test_format_figure(self) -> None:
        self.assertEqual(format_figure(Figure(name="n", label="N", value=1234.0)), "1,234")
        self.assertEqual(format_figure(Figure(name="h", label="H", value=4.5, unit="hours")), "4.50 h")
        self.assertEqual(format_figure(Figure(name="d", label="D", value=3.0, unit="days")), "3.00 days")
        self.assertEqual(format_figure(Figure(name="r", label="R", value=0.25, unit="ratio")), "0.25")


if __name__ == "__main__":
    unittest.main()
