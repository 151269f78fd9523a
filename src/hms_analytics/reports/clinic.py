# src/hms_analytics/reports/clinic.py
"""
Clinic statistics: completed visits and admissions per month, visits per
specialization and a monthly table per clinical unit.

Visits are appointments with status COMPLETED. Appointment records carry the
clinical unit in the `unit` tag and its specialization in `specialization`.
"""
from __future__ import annotations

from typing import Dict, List

from hms_analytics.engine.aggregator import TimeUnit, group_by_category, group_by_time, records_frame
from hms_analytics.engine.metrics import average, mean
from hms_analytics.engine.narrative import generate_narrative
from hms_analytics.engine.registry import unit_meta
from hms_analytics.engine.schemas import Breakdown, RawRecord, Report

from .base import (
    BuildContext,
    base_context,
    comparison_context,
    extremum_context,
    figure,
    make_breakdown,
    previous_total,
    report_title,
)
from .wards import ward_occupancy

KIND = "clinic"
TITLE = "Clinic Statistics Report"
SECTIONS = ("introduction", "trends", "units", "impact", "conclusion")


def _is_visit(r: RawRecord) -> bool:
    return r.status == "COMPLETED"


def _unit_breakdowns(visits: List[RawRecord], ctx: BuildContext) -> List[Breakdown]:
    by_unit: Dict[str, List[RawRecord]] = {}
    for r in visits:
        name = (r.tags.get("unit") or "").strip()
        if name:
            by_unit.setdefault(name, []).append(r)

    out = []
    for name, recs in by_unit.items():
        specialization = next((r.tags["specialization"] for r in recs if r.tags.get("specialization")), None)
        meta = unit_meta(name, specialization)
        out.append(
            make_breakdown(
                f"unit:{name}", f"Monthly visits: {name}", TimeUnit.MONTH.value,
                group_by_time(recs, TimeUnit.MONTH, ctx.period),
                description=meta.description,
                table_number=meta.table_number,
            )
        )
    return sorted(out, key=lambda b: (b.table_number or "", b.name))


def build(ctx: BuildContext) -> Report:
    period = ctx.period
    visits = [r for r in ctx.records("appointments") if _is_visit(r) and period.contains(r.timestamp)]
    admissions = [r for r in ctx.records("admissions") if period.contains(r.timestamp)]
    visit_frame = records_frame(visits)

    prev_visits = previous_total(ctx, "appointments", where=_is_visit)
    prev_admissions = previous_total(ctx, "admissions")

    monthly_visits = make_breakdown(
        "monthly_visits", "Monthly clinic visits", TimeUnit.MONTH.value,
        group_by_time(visit_frame, TimeUnit.MONTH, period), previous_total=prev_visits,
    )
    monthly_admissions = make_breakdown(
        "monthly_admissions", "Monthly admissions", TimeUnit.MONTH.value,
        group_by_time(admissions, TimeUnit.MONTH, period), previous_total=prev_admissions,
    )
    specializations = make_breakdown(
        "specializations", "Visits by specialization", "specialization",
        group_by_category(visit_frame, "specialization"),
    )
    units = _unit_breakdowns(visits, ctx)

    total_visits = monthly_visits.metrics.total
    total_admissions = monthly_admissions.metrics.total
    occupancy = ward_occupancy(admissions)
    avg_occupancy = mean(occupancy.values())

    figures = [
        figure("total_visits", "Clinic visits", total_visits),
        figure("total_admissions", "Admissions", total_admissions),
        figure("monthly_average_visits", "Monthly average visits", average(total_visits, 12), "ratio"),
        figure("monthly_average_admissions", "Monthly average admissions", average(total_admissions, 12), "ratio"),
        figure("average_ward_occupancy", "Average ward occupancy", avg_occupancy, "pct"),
    ]
    if prev_visits is not None:
        figures.append(figure("yoy_change", "Year-over-year change in visits", monthly_visits.metrics.yoy_change, "pct"))

    admissions_ctx = extremum_context(monthly_admissions.metrics)
    top = specializations.buckets[0] if specializations.buckets else None
    context = {
        **base_context("clinic visits", period, has_data=(total_visits + total_admissions) > 0),
        **extremum_context(monthly_visits.metrics),
        **comparison_context(period, monthly_visits.metrics),
        "total": total_visits,
        "admissions": total_admissions,
        "visits_monthly_average": average(total_visits, 12),
        "admissions_monthly_average": average(total_admissions, 12),
        "admissions_peak_label": admissions_ctx["peak_label"],
        "admissions_peak_count": admissions_ctx["peak_count"],
        "admissions_low_label": admissions_ctx["low_label"],
        "admissions_low_count": admissions_ctx["low_count"],
        "top_specialization": top.label if top else "",
        "top_specialization_count": top.count if top else 0,
        "average_occupancy": avg_occupancy,
        "units": [
            {
                "name": b.name.split(":", 1)[1],
                "table_number": b.table_number,
                "description": b.description,
                "total": b.metrics.total,
                "monthly_average": b.metrics.average,
                "peak_label": b.metrics.peak.label if b.metrics.peak else "",
                "low_label": b.metrics.low.label if b.metrics.low else "",
            }
            for b in units
        ],
    }

    return Report(
        kind=KIND,
        title=report_title(TITLE, period),
        period=period,
        figures=tuple(figures),
        breakdowns=(monthly_visits, monthly_admissions, specializations, *units),
        narrative=generate_narrative(KIND, SECTIONS, context),
    )
