# src/hms_analytics/reports/appointments.py
"""Appointment analytics: status mix, types, monthly/weekday/hourly load, doctors."""
from __future__ import annotations

from hms_analytics.engine.aggregator import (
    Dimension,
    TimeUnit,
    bucket_count,
    cross_tab,
    group_by_category,
    group_by_time,
    records_frame,
)
from hms_analytics.engine.classifier import peak_bucket
from hms_analytics.engine.metrics import average, make_rate, rate
from hms_analytics.engine.narrative import generate_narrative
from hms_analytics.engine.registry import APPOINTMENT_STATUSES, APPOINTMENT_TYPES
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

KIND = "appointments"
TITLE = "Appointment Analytics Report"
SOURCE = "appointments"
SECTIONS = ("introduction", "trends", "impact", "recommendations")


def build(ctx: BuildContext) -> Report:
    period = ctx.period
    records = [r for r in ctx.records(SOURCE) if period.contains(r.timestamp)]
    frame = records_frame(records)

    # Status mix
    status = group_by_category(frame, "status", enumeration=APPOINTMENT_STATUSES)
    total = sum(b.count for b in status)
    completed = bucket_count(status, "COMPLETED")
    cancelled = bucket_count(status, "CANCELLED")
    scheduled = bucket_count(status, "SCHEDULED")
    rates = (
        make_rate("completion_rate", "Completion rate", completed, total),
        make_rate("cancellation_rate", "Cancellation rate", cancelled, total),
        make_rate("scheduled_rate", "Scheduled rate", scheduled, total),
    )

    # Time patterns
    prev_total = previous_total(ctx, SOURCE)
    monthly = cross_tab(frame, TimeUnit.MONTH, period, "status", enumeration=APPOINTMENT_STATUSES)
    weeks = config.WEEKS_PER_YEAR if not period.is_monthly else period.days / 7.0
    weekday = with_values(
        group_by_time(frame, TimeUnit.WEEKDAY, period), lambda b: average(b.count, weeks)
    )
    hourly_raw = group_by_time(frame, TimeUnit.HOUR, period)
    busiest = max((b.count for b in hourly_raw), default=0)
    hourly = with_values(hourly_raw, lambda b: rate(b.count, busiest))

    working_days = config.WORKING_DAYS_PER_YEAR if not period.is_monthly else period.days
    doctors = with_values(
        group_by_category(
            frame, "doctor", inner=Dimension("status", enumeration=APPOINTMENT_STATUSES)
        ),
        lambda b: average(b.count, working_days),
    )

    breakdowns = [
        make_breakdown("status", "Appointments by status", "status", status, rates=rates),
        make_breakdown(
            "type", "Appointments by type", "type",
            group_by_category(frame, "type", enumeration=APPOINTMENT_TYPES),
        ),
        make_breakdown("monthly", "Monthly appointments", TimeUnit.MONTH.value, monthly, previous_total=prev_total),
        make_breakdown("weekday", "Appointments by day of week", TimeUnit.WEEKDAY.value, weekday),
        make_breakdown("hourly", "Appointments by hour of day", TimeUnit.HOUR.value, hourly),
        make_breakdown("doctors", "Appointments by doctor", "doctor", doctors),
    ]
    daily = daily_breakdown(frame, period, "Daily appointments")
    if daily is not None:
        breakdowns.append(daily)

    monthly_bd = breakdowns[2]
    timeline = daily if daily is not None else monthly_bd

    figures = [
        figure("total_appointments", "Total appointments", total),
        figure("completed_appointments", "Completed appointments", completed),
        figure("cancelled_appointments", "Cancelled appointments", cancelled),
        figure("scheduled_appointments", "Scheduled appointments", scheduled),
        figure("completion_rate", "Completion rate", rates[0].percent, "pct"),
        figure("cancellation_rate", "Cancellation rate", rates[1].percent, "pct"),
        figure("scheduled_rate", "Scheduled rate", rates[2].percent, "pct"),
        figure("monthly_average", "Monthly average", average(total, 12), "ratio"),
    ]
    if prev_total is not None:
        figures.append(figure("yoy_change", "Year-over-year change", monthly_bd.metrics.yoy_change, "pct"))

    busiest_day = peak_bucket(weekday)
    busiest_hour = peak_bucket(hourly)
    top_doctor = doctors[0] if doctors else None
    context = {
        **base_context("appointments", period, has_data=total > 0),
        **extremum_context(timeline.metrics),
        **comparison_context(period, monthly_bd.metrics),
        "total": total,
        "completed": completed,
        "cancelled": cancelled,
        "scheduled": scheduled,
        "completion_rate": rates[0].percent,
        "cancellation_rate": rates[1].percent,
        "scheduled_rate": rates[2].percent,
        "busiest_day": busiest_day.label if busiest_day and busiest_day.count else "",
        "busiest_day_count": busiest_day.count if busiest_day else 0,
        "busiest_hour": busiest_hour.label if busiest_hour and busiest_hour.count else "",
        "top_doctor": top_doctor.label if top_doctor else "",
        "top_doctor_count": top_doctor.count if top_doctor else 0,
    }

    return Report(
        kind=KIND,
        title=report_title(TITLE, period),
        period=period,
        figures=tuple(figures),
        breakdowns=tuple(breakdowns),
        narrative=generate_narrative(KIND, SECTIONS, context),
    )
