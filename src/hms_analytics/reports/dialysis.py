# src/hms_analytics/reports/dialysis.py
"""
Dialysis annual report: sessions, machine load and patient flow.

Session records carry the machine in `category`, the patient in `subject_id`,
the session duration in hours in `value`, and the `priority` and
`session_type` tags. URGENT priority counts as an emergency session.
"""
from __future__ import annotations

from typing import Set

from hms_analytics.engine.aggregator import (
    Dimension,
    TimeUnit,
    bucket_count,
    group_by_category,
    group_by_time,
    records_frame,
)
from hms_analytics.engine.metrics import average, make_rate, mean, rate
from hms_analytics.engine.narrative import generate_narrative
from hms_analytics.engine.registry import SESSION_STATUSES, SESSION_TYPES
from hms_analytics.engine.schemas import Report
from hms_analytics.utils import config

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
    with_values,
)

KIND = "dialysis"
TITLE = "Dialysis Annual Report"
SOURCE = "dialysis_sessions"
SECTIONS = ("introduction", "trends", "machines", "patients", "impact", "conclusion")


def _subjects(records) -> Set[str]:
    return {r.subject_id for r in records if r.subject_id}


def build(ctx: BuildContext) -> Report:
    period = ctx.period
    records = [r for r in ctx.records(SOURCE) if period.contains(r.timestamp)]
    frame = records_frame(records)

    status = group_by_category(frame, "status", enumeration=SESSION_STATUSES)
    total = sum(b.count for b in status)
    completed = bucket_count(status, "COMPLETED")
    cancelled = bucket_count(status, "CANCELLED")
    emergency = sum(1 for r in records if (r.tags.get("priority") or "").upper() == "URGENT")
    completion = make_rate("completion_rate", "Completion rate", completed, total)
    emergency_rate = make_rate("emergency_rate", "Emergency rate", emergency, total)

    # Patient flow
    patients = _subjects(records)
    prev_records = ctx.previous_records(SOURCE)
    if prev_records is not None:
        prev_period = period.previous()
        seen_before = _subjects(r for r in prev_records if prev_period.contains(r.timestamp))
        new_patients = len(patients - seen_before)
    else:
        new_patients = len(patients)
    returning_patients = len(patients) - new_patients
    sessions_per_patient = average(total, len(patients))
    avg_duration = mean(r.value for r in records if r.status == "COMPLETED")

    capacity = config.DIALYSIS_MONTHLY_CAPACITY
    monthly_sessions = with_values(
        group_by_time(frame, TimeUnit.MONTH, period),
        lambda b: min(rate(b.count, capacity), 100.0),
    )
    active_months = 1 if period.is_monthly else 12
    utilization = min(rate(total, capacity * active_months), 100.0)

    machines = with_values(
        group_by_category(frame, "category", inner=Dimension("status", enumeration=SESSION_STATUSES)),
        lambda b: rate(b.child_count("COMPLETED"), b.count),
    )

    prev_total = previous_total(ctx, SOURCE)
    breakdowns = [
        make_breakdown(
            "monthly_sessions", "Monthly dialysis sessions", TimeUnit.MONTH.value,
            monthly_sessions, previous_total=prev_total,
        ),
        make_breakdown(
            "monthly_patients", "Monthly unique patients", TimeUnit.MONTH.value,
            group_by_time(frame, TimeUnit.MONTH, period, distinct="subject_id"),
        ),
        make_breakdown("machines", "Sessions by machine", "machine", machines),
        make_breakdown(
            "session_types", "Sessions by type", "session_type",
            group_by_category(frame, "session_type", enumeration=SESSION_TYPES),
        ),
        make_breakdown("status", "Sessions by status", "status", status, rates=(completion, emergency_rate)),
    ]
    daily = daily_breakdown(frame, period, "Daily dialysis sessions")
    if daily is not None:
        breakdowns.append(daily)

    monthly_bd = breakdowns[0]
    timeline = daily if daily is not None else monthly_bd

    figures = [
        figure("total_sessions", "Total sessions", total),
        figure("completed_sessions", "Completed sessions", completed),
        figure("cancelled_sessions", "Cancelled sessions", cancelled),
        figure("emergency_sessions", "Emergency sessions", emergency),
        figure("completion_rate", "Completion rate", completion.percent, "pct"),
        figure("emergency_rate", "Emergency rate", emergency_rate.percent, "pct"),
        figure("unique_patients", "Unique patients", len(patients)),
        figure("new_patients", "New patients", new_patients),
        figure("returning_patients", "Returning patients", returning_patients),
        figure("sessions_per_patient", "Average sessions per patient", sessions_per_patient, "ratio"),
        figure("average_session_hours", "Average session duration", avg_duration, "hours"),
        figure("capacity_utilization", "Capacity utilization", utilization, "pct"),
    ]
    if prev_total is not None:
        figures.append(figure("yoy_change", "Year-over-year change", monthly_bd.metrics.yoy_change, "pct"))

    top_machine = machines[0] if machines else None
    context = {
        **base_context("dialysis sessions", period, has_data=total > 0),
        **extremum_context(timeline.metrics),
        **comparison_context(period, monthly_bd.metrics),
        "total": total,
        "completed": completed,
        "cancelled": cancelled,
        "emergency": emergency,
        "completion_rate": completion.percent,
        "emergency_rate": emergency_rate.percent,
        "patients": len(patients),
        "new_patients": new_patients,
        "returning_patients": returning_patients,
        "sessions_per_patient": sessions_per_patient,
        "avg_duration": avg_duration,
        "utilization": utilization,
        "machine_count": len(machines),
        "top_machine": top_machine.label if top_machine else "",
        "top_machine_count": top_machine.count if top_machine else 0,
        "top_machine_efficiency": top_machine.value if top_machine else 0.0,
    }

    return Report(
        kind=KIND,
        title=report_title(TITLE, period),
        period=period,
        figures=tuple(figures),
        breakdowns=tuple(breakdowns),
        narrative=generate_narrative(KIND, SECTIONS, context),
    )
