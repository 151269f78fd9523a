"""Report assembly tests: reference scenarios, error taxonomy and idempotence."""

from __future__ import annotations

import sys
import unittest
from pathlib import Path
from typing import List, Tuple

from pydantic import ValidationError

ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from hms_analytics.engine.assembler import (  # noqa: E402
    ReportRequest,
    generate_report,
    generate_reports,
    validate_period,
)
from hms_analytics.engine.registry import OTHER_KEY  # noqa: E402
from hms_analytics.engine.schemas import Period, RawRecord  # noqa: E402
from hms_analytics.errors import (  # noqa: E402
    FetchFailure,
    InvalidPeriod,
    ReportingError,
    UnknownReportKind,
)
from hms_analytics.fetch.records import InMemoryFetcher  # noqa: E402
from support import monthly, rec  # noqa: E402


class RecordingFetcher:
    """InMemoryFetcher wrapper that remembers every (source, period) call."""

    def __init__(self, records_by_source=None):
        self.inner = InMemoryFetcher(records_by_source or {})
        self.calls: List[Tuple[str, Period]] = []

    def __call__(self, source, period):
        self.calls.append((source, period))
        return self.inner(source, period)


def _appointments(records) -> InMemoryFetcher:
    return InMemoryFetcher({"appointments": records})


class ScenarioTests(unittest.TestCase):
    def test_sparse_months_peak_and_low(self) -> None:
        fetcher = _appointments(monthly(2024, {3: 5, 7: 7}))
        report = generate_report(ReportRequest(kind="appointments", year=2024), fetcher)
        bd = report.breakdown("monthly")
        self.assertEqual([b.count for b in bd.buckets], [0, 0, 5, 0, 0, 0, 7, 0, 0, 0, 0, 0])
        self.assertEqual((bd.metrics.peak.label, bd.metrics.peak.count), ("July", 7))
        self.assertEqual((bd.metrics.low.label, bd.metrics.low.count), ("January", 0))
        self.assertIn("July", report.section("trends"))

    def test_empty_input_reports_no_data(self) -> None:
        report = generate_report(ReportRequest(kind="appointments", year=2024), InMemoryFetcher({}))
        for bd in report.breakdowns:
            self.assertTrue(all(b.count == 0 for b in bd.buckets), bd.name)
        self.assertEqual(len(report.breakdown("monthly").buckets), 12)
        self.assertEqual(report.figure("total_appointments"), 0)
        for section in report.narrative:
            self.assertIn("no data available for this period", section.text)

    def test_zero_previous_total_gives_zero_change(self) -> None:
        records = monthly(2024, {m: 12 for m in range(1, 13)}) + monthly(2024, {12: 6})
        report = generate_report(ReportRequest(kind="appointments", year=2024), _appointments(records))
        self.assertEqual(report.figure("total_appointments"), 150)
        metrics = report.breakdown("monthly").metrics
        self.assertEqual(metrics.previous_total, 0)
        self.assertEqual(metrics.yoy_change, 0.0)
        self.assertEqual(report.figure("yoy_change"), 0.0)
        self.assertIn("No appointment visits were recorded for 2023", report.section("impact"))

    def test_status_rates(self) -> None:
        records = (
            monthly(2024, {1: 20, 2: 20, 3: 20}, "COMPLETED")
            + monthly(2024, {4: 15, 5: 15}, "CANCELLED")
            + monthly(2024, {6: 10}, "SCHEDULED")
        )
        report = generate_report(ReportRequest(kind="appointments", year=2024), _appointments(records))
        completion = report.figure("completion_rate")
        cancellation = report.figure("cancellation_rate")
        scheduled = report.figure("scheduled_rate")
        self.assertEqual(completion, 60.0)
        self.assertEqual(cancellation, 30.0)
        self.assertEqual(scheduled, 10.0)
        self.assertLessEqual(completion + cancellation + scheduled, 100.1)

    def test_unknown_status_lands_in_other(self) -> None:
        records = monthly(2024, {1: 8}, "COMPLETED") + monthly(2024, {2: 3}, "ARCHIVED")
        report = generate_report(ReportRequest(kind="appointments", year=2024), _appointments(records))
        status = report.breakdown("status")
        self.assertEqual(status.buckets[-1].key, OTHER_KEY)
        self.assertEqual(status.buckets[-1].count, 3)
        self.assertEqual(sum(b.count for b in status.buckets), len(records))
        self.assertEqual(report.figure("total_appointments"), 11)


class PeriodTests(unittest.TestCase):
    def test_validate_period(self) -> None:
        self.assertEqual(validate_period(2024), Period(year=2024))
        self.assertEqual(validate_period(2024, 2).label, "February 2024")

    def test_invalid_month_is_rejected_before_fetch(self) -> None:
        fetcher = RecordingFetcher()
        for month in (0, 13):
            with self.assertRaises(InvalidPeriod):
                generate_report(ReportRequest(kind="appointments", year=2024, month=month), fetcher)
        self.assertEqual(fetcher.calls, [])

    def test_invalid_year_is_rejected(self) -> None:
        with self.assertRaises(InvalidPeriod) as ctx:
            validate_period(1500)
        self.assertIsInstance(ctx.exception, ReportingError)
        self.assertEqual(ctx.exception.year, 1500)

    def test_period_rejects_out_of_range_month(self) -> None:
        for month in (0, 13):
            with self.assertRaises(ValidationError):
                Period(year=2024, month=month)


class FetchTests(unittest.TestCase):
    def test_current_and_previous_periods_are_fetched(self) -> None:
        fetcher = RecordingFetcher()
        generate_report(ReportRequest(kind="clinic", year=2024, month=5), fetcher)
        self.assertEqual(
            fetcher.calls,
            [
                ("appointments", Period(year=2024, month=5)),
                ("admissions", Period(year=2024, month=5)),
                ("appointments", Period(year=2023, month=5)),
                ("admissions", Period(year=2023, month=5)),
            ],
        )

    def test_fetcher_errors_are_wrapped(self) -> None:
        def broken(source, period):
            raise ConnectionError("database unreachable")

        with self.assertRaises(FetchFailure) as ctx:
            generate_report(ReportRequest(kind="lab", year=2024), broken)
        self.assertEqual(ctx.exception.source, "lab_tests")
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)

    def test_reporting_errors_pass_through(self) -> None:
        failure = FetchFailure("appointments", "timeout")

        def broken(source, period):
            raise failure

        with self.assertRaises(FetchFailure) as ctx:
            generate_report(ReportRequest(kind="appointments", year=2024), broken)
        self.assertIs(ctx.exception, failure)

    def test_unknown_kind(self) -> None:
        fetcher = RecordingFetcher()
        with self.assertRaises(UnknownReportKind) as ctx:
            generate_report(ReportRequest(kind="radiology", year=2024), fetcher)
        self.assertIn("appointments", str(ctx.exception))
        self.assertEqual(fetcher.calls, [])


class AssemblyTests(unittest.TestCase):
    def test_idempotent(self) -> None:
        records = monthly(2024, {1: 3, 6: 4}, "COMPLETED", doctor="Dr. Silva") + [
            rec("2023-06-01T10:00:00", "CANCELLED")
        ]
        fetcher = _appointments(records)
        request = ReportRequest(kind="appointments", year=2024)
        first = generate_report(request, fetcher)
        second = generate_report(request, fetcher)
        self.assertEqual(first, second)
        self.assertEqual(first.model_dump_json(), second.model_dump_json())

    def test_timing_is_logged(self) -> None:
        with self.assertLogs("hms_analytics.engine.assembler", level="INFO") as logs:
            generate_report(ReportRequest(kind="lab", year=2024), InMemoryFetcher({}))
        self.assertTrue(any("report_generated_ms=" in line for line in logs.output))
        self.assertTrue(any("kind=lab period=2024" in line for line in logs.output))

    def test_generate_reports_keeps_request_order(self) -> None:
        requests = [ReportRequest(kind=k, year=2024) for k in ("wards", "dialysis", "prescriptions")]
        reports = generate_reports(requests, InMemoryFetcher({}))
        self.assertEqual([r.kind for r in reports], ["wards", "dialysis", "prescriptions"])

    def test_timezone_aware_records(self) -> None:
        appointments = [
            RawRecord(id="a1", timestamp="2024-03-01T10:00:00Z", status="COMPLETED"),
            RawRecord(id="a2", timestamp="2024-03-04T09:00:00+02:00", status="CANCELLED"),
        ]
        self.assertIsNone(appointments[0].timestamp.tzinfo)
        self.assertEqual(appointments[1].timestamp.hour, 9)
        report = generate_report(
            ReportRequest(kind="appointments", year=2024),
            lambda source, period: appointments if period.year == 2024 else [],
        )
        self.assertEqual(report.figure("total_appointments"), 2)
        self.assertEqual(report.breakdown("monthly").bucket(3).count, 2)

        admissions = [
            RawRecord(
                id="w1",
                timestamp="2024-01-10T08:00:00Z",
                ended_at="2024-01-13T08:00:00Z",
                status="DISCHARGED",
                category="Ward1",
            ),
        ]
        wards = generate_report(
            ReportRequest(kind="wards", year=2024),
            InMemoryFetcher({"admissions": admissions}),
        )
        self.assertEqual(wards.figure("total_admissions"), 1)
        self.assertEqual(wards.figure("total_discharges"), 1)

    def test_report_is_frozen(self) -> None:
        report = generate_report(ReportRequest(kind="appointments", year=2024), InMemoryFetcher({}))
        with self.assertRaises(Exception):
            report.title = "changed"


if __name__ == "__main__":
    unittest.main()
