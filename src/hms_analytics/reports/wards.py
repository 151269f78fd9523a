# src/hms_analytics/reports/wards.py
"""
Ward statistics: admissions, discharges, occupancy, length of stay, demographics.

Admission records carry the ward name in `category`, the discharge time in
`ended_at` (None while the patient is still admitted) and the `age` and
`gender` tags. Ward names are compared after normalization, so "Ward 1" and
"Ward1" select the same ward.
"""
from __future__ import annotations

from typing import Dict, Optional, Sequence

from hms_analytics.engine.aggregator import (
    Dimension,
    TimeUnit,
    group_by_category,
    group_by_time,
    records_frame,
)
from hms_analytics.engine.classifier import occupancy_band
from hms_analytics.engine.metrics import average, days_between, mean, rate
from hms_analytics.engine.narrative import generate_narrative
from hms_analytics.engine.registry import (
    AGE_GROUPS,
    GENDERS,
    HOSPITAL_WARDS,
    UNKNOWN_LABEL,
    age_group,
    normalize_ward,
    ward_label,
    ward_type,
)
from hms_analytics.engine.schemas import RawRecord, Report
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

KIND = "wards"
TITLE = "Ward Statistics Report"
SOURCE = "admissions"
SECTIONS = ("introduction", "trends", "performance", "impact", "recommendations")


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
def _age_group(value: Optional[str]) -> str:
    if value is None:
        return UNKNOWN_LABEL
    try:
        return age_group(float(value))
    except ValueError:
        return UNKNOWN_LABEL


def _gender(value: Optional[str]) -> Optional[str]:
    return value.upper() if value else None


def _in_ward(ward: str):
    key = normalize_ward(ward)
    return lambda r: normalize_ward(r.category) == key


def length_of_stay(records: Sequence[RawRecord]) -> list:
    """Days between admission and discharge for every discharged record."""
    return [days_between(r.timestamp, r.ended_at) for r in records if r.ended_at is not None]


def ward_occupancy(records: Sequence[RawRecord]) -> Dict[str, float]:
    """Occupancy (%) of each hospital ward: active admissions over bed capacity."""
    active: Dict[str, int] = {}
    for r in records:
        if r.ended_at is None:
            key = normalize_ward(r.category)
            active[key] = active.get(key, 0) + 1
    return {w: rate(active.get(w, 0), config.WARD_BED_CAPACITY) for w in HOSPITAL_WARDS}


# ------------------------------------------------------------------------------
# Builder
# ------------------------------------------------------------------------------
def build(ctx: BuildContext) -> Report:
    period = ctx.period
    ward = ctx.option("ward")
    records = list(ctx.records(SOURCE))
    where = None
    scope = None
    if ward:
        where = _in_ward(ward)
        records = [r for r in records if where(r)]
        scope = ward_label(normalize_ward(ward))
    frame = records_frame(records)
    in_period = [r for r in records if period.contains(r.timestamp)]
    admitted = records_frame(in_period)

    ward_count = 1 if ward else len(HOSPITAL_WARDS)
    beds = config.WARD_BED_CAPACITY * ward_count
    days_in_period = 365 if not period.is_monthly else period.days

    prev_total = previous_total(ctx, SOURCE, where=where)
    monthly_admissions = group_by_time(frame, TimeUnit.MONTH, period)
    monthly_discharges = group_by_time(frame, TimeUnit.MONTH, period, time_field="ended_at")
    total = sum(b.count for b in monthly_admissions)
    discharges = sum(b.count for b in monthly_discharges)
    active = sum(1 for r in in_period if r.ended_at is None)

    stays = length_of_stay(in_period)
    avg_los = mean(stays)
    occupancy = rate(active, beds)
    bed_utilization = rate(sum(stays), beds * days_in_period)

    breakdowns = [
        make_breakdown(
            "monthly_admissions", "Monthly admissions", TimeUnit.MONTH.value,
            monthly_admissions, previous_total=prev_total,
        ),
        make_breakdown("monthly_discharges", "Monthly discharges", TimeUnit.MONTH.value, monthly_discharges),
        make_breakdown(
            "age_groups", "Admissions by age group", "age",
            group_by_category(
                admitted,
                Dimension("age", enumeration=AGE_GROUPS + (UNKNOWN_LABEL,), labels=str, normalize=_age_group),
            ),
        ),
        make_breakdown(
            "genders", "Admissions by gender", "gender",
            group_by_category(admitted, "gender", enumeration=GENDERS, normalize=_gender),
        ),
    ]

    occupancy_by_ward = ward_occupancy(in_period)
    if not ward:
        wards = with_values(
            group_by_category(admitted, Dimension("category", labels=ward_label, normalize=normalize_ward)),
            lambda b: occupancy_by_ward.get(b.key, 0.0),
        )
        breakdowns.append(make_breakdown("wards", "Admissions by ward", "ward", wards))
        breakdowns.append(
            make_breakdown(
                "ward_types", "Admissions by ward type", "ward_type",
                group_by_category(admitted, Dimension("category", normalize=ward_type)),
            )
        )
    daily = daily_breakdown(frame, period, "Daily admissions")
    if daily is not None:
        breakdowns.append(daily)

    monthly_bd = breakdowns[0]
    timeline = daily if daily is not None else monthly_bd

    figures = [
        figure("total_admissions", "Total admissions", total),
        figure("total_discharges", "Discharges", discharges),
        figure("active_admissions", "Active admissions", active),
        figure("occupancy_rate", "Occupancy rate", occupancy, "pct"),
        figure("average_length_of_stay", "Average length of stay", avg_los, "days"),
        figure("bed_utilization_rate", "Bed utilization rate", bed_utilization, "pct"),
        figure("monthly_average", "Monthly average admissions", average(total, 12), "ratio"),
    ]
    if prev_total is not None:
        figures.append(figure("yoy_change", "Year-over-year change", monthly_bd.metrics.yoy_change, "pct"))

    context = {
        **base_context(scope or "all wards", period, has_data=total > 0),
        **extremum_context(timeline.metrics),
        **comparison_context(period, monthly_bd.metrics),
        "scope": scope,
        "ward_count": ward_count,
        "total": total,
        "discharges": discharges,
        "active": active,
        "occupancy": occupancy,
        "occupancy_band": occupancy_band(occupancy),
        "avg_los": avg_los,
        "long_stay": avg_los > config.LONG_STAY_DAYS,
        "bed_utilization": bed_utilization,
    }

    return Report(
        kind=KIND,
        title=report_title(TITLE, period, scope),
        period=period,
        scope=scope,
        figures=tuple(figures),
        breakdowns=tuple(breakdowns),
        narrative=generate_narrative(KIND, SECTIONS, context),
    )
