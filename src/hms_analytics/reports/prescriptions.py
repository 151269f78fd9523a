# src/hms_analytics/reports/prescriptions.py
"""
Prescription dispensing report.

Prescription records carry the requesting ward in the `ward` tag and the
last status change in `ended_at`. Processing time is measured on completed
prescriptions only, in whole hours, and values outside [0, 168) are ignored.
"""
from __future__ import annotations

from typing import Optional

from hms_analytics.engine.aggregator import (
    Dimension,
    TimeUnit,
    bucket_count,
    group_by_category,
    group_by_time,
    records_frame,
)
from hms_analytics.engine.metrics import hours_between, make_rate, mean, rate, summarize
from hms_analytics.engine.narrative import generate_narrative
from hms_analytics.engine.registry import PRESCRIPTION_STATUSES
from hms_analytics.engine.schemas import Report
from hms_analytics.utils import config

from .base import (
    BuildContext,
    base_context,
    comparison_context,
    extremum_context,
    figure,
    make_breakdown,
    previous_total,
    report_title,
    with_values,
)

KIND = "prescriptions"
TITLE = "Prescription Dispensing Report"
SOURCE = "prescriptions"
SECTIONS = ("introduction", "trends", "performance", "impact")

_COMPLETION = Dimension(
    "status",
    enumeration=("COMPLETED", "PENDING"),
    normalize=lambda v: "COMPLETED" if v == "COMPLETED" else "PENDING",
)


def processing_hours(records) -> list:
    """Whole hours from creation to completion of completed prescriptions within [0, 168)."""
    out = []
    for r in records:
        if r.status != "COMPLETED":
            continue
        hours: Optional[float] = hours_between(r.timestamp, r.ended_at)
        if hours is None:
            continue
        whole = int(hours)
        if 0 <= whole < config.MAX_PROCESSING_HOURS:
            out.append(whole)
    return out


def build(ctx: BuildContext) -> Report:
    period = ctx.period
    records = [r for r in ctx.records(SOURCE) if period.contains(r.timestamp)]
    frame = records_frame(records)

    status = group_by_category(frame, "status", enumeration=PRESCRIPTION_STATUSES)
    total = sum(b.count for b in status)
    completed = bucket_count(status, "COMPLETED")
    pending = bucket_count(status, "PENDING", "ACTIVE")
    in_progress = bucket_count(status, "IN_PROGRESS")
    ready = bucket_count(status, "READY")
    cancelled = bucket_count(status, "DISCONTINUED")
    completion = make_rate("completion_rate", "Completion rate", completed, total)
    avg_processing = mean(processing_hours(records))

    if period.is_monthly:
        timeline = make_breakdown(
            "daily", "Daily prescriptions", TimeUnit.DAY.value, group_by_time(frame, TimeUnit.DAY, period)
        )
    else:
        timeline = make_breakdown(
            "monthly", "Monthly prescriptions", TimeUnit.MONTH.value, group_by_time(frame, TimeUnit.MONTH, period)
        )

    wards = with_values(
        group_by_category(frame, "ward", inner=_COMPLETION),
        lambda b: rate(b.child_count("COMPLETED"), b.count),
    )

    prev_total = previous_total(ctx, SOURCE)
    volume = summarize(group_by_time(frame, TimeUnit.MONTH, period), previous_total=prev_total)
    breakdowns = (
        make_breakdown("status", "Prescriptions by status", "status", status, rates=(completion,)),
        timeline,
        make_breakdown("wards", "Prescriptions by ward", "ward", wards),
    )

    figures = [
        figure("total_prescriptions", "Total prescriptions", total),
        figure("completed_prescriptions", "Completed", completed),
        figure("pending_prescriptions", "Pending", pending),
        figure("in_progress_prescriptions", "In progress", in_progress),
        figure("ready_prescriptions", "Ready for dispensing", ready),
        figure("cancelled_prescriptions", "Cancelled", cancelled),
        figure("completion_rate", "Completion rate", completion.percent, "pct"),
        figure("average_processing_hours", "Average processing time", avg_processing, "hours"),
    ]
    if prev_total is not None:
        figures.append(figure("yoy_change", "Year-over-year change", volume.yoy_change, "pct"))

    top_ward = wards[0] if wards else None
    context = {
        **base_context("prescriptions", period, has_data=total > 0),
        **extremum_context(timeline.metrics),
        **comparison_context(period, volume),
        "total": total,
        "completed": completed,
        "pending": pending,
        "ready": ready,
        "completion_rate": completion.percent,
        "avg_processing": avg_processing,
        "top_ward": top_ward.label if top_ward else "",
        "top_ward_count": top_ward.count if top_ward else 0,
        "top_ward_rate": top_ward.value if top_ward else 0.0,
    }

    return Report(
        kind=KIND,
        title=report_title(TITLE, period),
        period=period,
        figures=tuple(figures),
        breakdowns=breakdowns,
        narrative=generate_narrative(KIND, SECTIONS, context),
    )
