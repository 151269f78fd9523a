# src/hms_analytics/reports/lab.py
"""
Laboratory annual report built from lab test records.

Records carry the test name in `category`, the patient in `subject_id`, the
turnaround time in hours in `value`, and the `test_category`, `ward` and
`priority` (URGENT / NORMAL) tags.
"""
from __future__ import annotations

from hms_analytics.engine.aggregator import (
    Dimension,
    TimeUnit,
    bucket_count,
    group_by_category,
    group_by_time,
    records_frame,
)
from hms_analytics.engine.metrics import make_rate, mean
from hms_analytics.engine.narrative import generate_narrative
from hms_analytics.engine.registry import LAB_PRIORITIES, LAB_STATUSES
from hms_analytics.engine.schemas import Report

from .base import (
    BuildContext,
    base_context,
    comparison_context,
    daily_breakdown,
    extremum_context,
    figure,
    make_breakdown,
    previous_total,
    report_title,
)

KIND = "lab"
TITLE = "Laboratory Department Annual Report"
SOURCE = "lab_tests"
SECTIONS = ("introduction", "trends", "performance", "impact", "conclusion")

_PRIORITY = Dimension("priority", enumeration=LAB_PRIORITIES, normalize=lambda v: v.upper() if v else None)


def build(ctx: BuildContext) -> Report:
    period = ctx.period
    records = [r for r in ctx.records(SOURCE) if period.contains(r.timestamp)]
    frame = records_frame(records)

    status = group_by_category(frame, "status", enumeration=LAB_STATUSES)
    total = sum(b.count for b in status)
    completed = bucket_count(status, "COMPLETED")
    cancelled = bucket_count(status, "CANCELLED")
    priorities = group_by_category(frame, _PRIORITY)
    urgent = bucket_count(priorities, "URGENT")
    normal = total - urgent
    completion = make_rate("completion_rate", "Completion rate", completed, total)
    urgent_rate = make_rate("urgent_rate", "Urgent share", urgent, total)
    patients = len({r.subject_id for r in records if r.subject_id})
    avg_turnaround = mean(r.value for r in records if r.status == "COMPLETED")

    prev_total = previous_total(ctx, SOURCE)
    test_types = group_by_category(frame, "category", measure="mean")
    wards = group_by_category(frame, "ward", inner=_PRIORITY)

    breakdowns = [
        make_breakdown(
            "monthly_volume", "Monthly test volume", TimeUnit.MONTH.value,
            group_by_time(frame, TimeUnit.MONTH, period, measure="mean"), previous_total=prev_total,
        ),
        make_breakdown("test_types", "Tests by type", "test_type", test_types),
        make_breakdown(
            "test_categories", "Tests by category", "test_category",
            group_by_category(frame, "test_category"),
        ),
        make_breakdown("wards", "Lab requests by ward", "ward", wards),
        make_breakdown("status", "Tests by status", "status", status, rates=(completion, urgent_rate)),
    ]
    daily = daily_breakdown(frame, period, "Daily test volume")
    if daily is not None:
        breakdowns.append(daily)

    monthly_bd = breakdowns[0]
    timeline = daily if daily is not None else monthly_bd

    figures = [
        figure("total_tests", "Total tests", total),
        figure("unique_patients", "Unique patients", patients),
        figure("urgent_tests", "Urgent tests", urgent),
        figure("normal_tests", "Normal tests", normal),
        figure("cancelled_tests", "Cancelled tests", cancelled),
        figure("completion_rate", "Completion rate", completion.percent, "pct"),
        figure("average_turnaround_hours", "Average turnaround time", avg_turnaround, "hours"),
    ]
    if prev_total is not None:
        figures.append(figure("yoy_change", "Year-over-year change", monthly_bd.metrics.yoy_change, "pct"))

    top_test = test_types[0] if test_types else None
    top_ward = wards[0] if wards else None
    context = {
        **base_context("laboratory tests", period, has_data=total > 0),
        **extremum_context(timeline.metrics),
        **comparison_context(period, monthly_bd.metrics),
        "total": total,
        "patients": patients,
        "urgent": urgent,
        "normal": normal,
        "urgent_rate": urgent_rate.percent,
        "cancelled": cancelled,
        "completion_rate": completion.percent,
        "avg_turnaround": avg_turnaround,
        "top_test": top_test.label if top_test else "",
        "top_test_count": top_test.count if top_test else 0,
        "top_ward": top_ward.label if top_ward else "",
        "top_ward_count": top_ward.count if top_ward else 0,
        "top_ward_urgent": top_ward.child_count("URGENT") if top_ward else 0,
    }

    return Report(
        kind=KIND,
        title=report_title(TITLE, period),
        period=period,
        figures=tuple(figures),
        breakdowns=tuple(breakdowns),
        narrative=generate_narrative(KIND, SECTIONS, context),
    )
