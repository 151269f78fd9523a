# src/hms_analytics/reports/base.py
"""
Shared building blocks for report builders.

A report kind is described by a `ReportSpec`: the record sources it needs,
whether it compares against the previous period, and a `build` function that
turns a `BuildContext` into a `Report`. Builders only read the records held by
the context; they never fetch.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from hms_analytics.engine.aggregator import Records, TimeUnit, group_by_time
from hms_analytics.engine.classifier import is_seasonal
from hms_analytics.engine.metrics import summarize
from hms_analytics.engine.schemas import (
    Breakdown,
    Bucket,
    Figure,
    FigureUnit,
    MetricSet,
    Period,
    RawRecord,
    Rate,
)


@dataclass(frozen=True)
class BuildContext:
    """Records of the current (and optionally previous) period, keyed by source."""

    period: Period
    current: Mapping[str, Sequence[RawRecord]]
    previous: Mapping[str, Sequence[RawRecord]] = field(default_factory=dict)
    options: Mapping[str, Any] = field(default_factory=dict)

    def records(self, source: str) -> Sequence[RawRecord]:
        return self.current.get(source, ())

    def previous_records(self, source: str) -> Optional[Sequence[RawRecord]]:
        """None when the previous period was not fetched."""
        if source not in self.previous:
            return None
        return self.previous[source]

    def option(self, name: str, default: Any = None) -> Any:
        return self.options.get(name, default)


@dataclass(frozen=True)
class ReportSpec:
    kind: str
    title: str
    sources: Tuple[str, ...]
    build: Callable[[BuildContext], Any]
    compare_previous: bool = True


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
def make_breakdown(
    name: str,
    title: str,
    dimension: str,
    buckets: Sequence[Bucket],
    *,
    previous_total: Optional[int] = None,
    rates: Sequence[Rate] = (),
    period_count: Optional[int] = None,
    description: Optional[str] = None,
    table_number: Optional[str] = None,
) -> Breakdown:
    return Breakdown(
        name=name,
        title=title,
        dimension=dimension,
        buckets=tuple(buckets),
        metrics=summarize(buckets, previous_total=previous_total, rates=rates, period_count=period_count),
        description=description,
        table_number=table_number,
    )


def with_values(buckets: Sequence[Bucket], fn: Callable[[Bucket], Optional[float]]) -> Tuple[Bucket, ...]:
    """Copies of `buckets` with `value` replaced by fn(bucket)."""
    return tuple(b.model_copy(update={"value": fn(b)}) for b in buckets)


def previous_total(
    ctx: BuildContext,
    source: str,
    *,
    where: Optional[Callable[[RawRecord], bool]] = None,
    time_field: str = "timestamp",
) -> Optional[int]:
    """Record count of the previous period, or None when it was not fetched."""
    prev = ctx.previous_records(source)
    if prev is None:
        return None
    if where is not None:
        prev = [r for r in prev if where(r)]
    buckets = group_by_time(prev, TimeUnit.MONTH, ctx.period.previous(), time_field=time_field)
    return sum(b.count for b in buckets)


def daily_breakdown(records: Records, period: Period, title: str, **kwargs: Any) -> Optional[Breakdown]:
    """Day-of-month breakdown, only for monthly periods."""
    if not period.is_monthly:
        return None
    return make_breakdown("daily", title, TimeUnit.DAY.value, group_by_time(records, TimeUnit.DAY, period, **kwargs))


def figure(name: str, label: str, value: float, unit: FigureUnit = "count") -> Figure:
    return Figure(name=name, label=label, value=float(value), unit=unit)


def report_title(title: str, period: Period, scope: Optional[str] = None) -> str:
    if scope:
        return f"{title}: {scope} ({period.label})"
    return f"{title} ({period.label})"


def extremum_context(metrics: MetricSet) -> Dict[str, Any]:
    """Peak/low/seasonality values shared by the narrative templates."""
    peak, low = metrics.peak, metrics.low
    return {
        "peak_label": peak.label if peak else "",
        "peak_count": peak.count if peak else 0,
        "low_label": low.label if low else "",
        "low_count": low.count if low else 0,
        "seasonal": bool(peak and low and is_seasonal(peak, low)),
    }


def comparison_context(period: Period, metrics: MetricSet) -> Dict[str, Any]:
    """Previous-period values; `has_previous` is false when nothing comparable exists."""
    previous_total = metrics.previous_total
    return {
        "previous_label": period.previous().label,
        "previous_total": previous_total or 0,
        "has_previous": bool(previous_total),
        "yoy": metrics.yoy_change or 0.0,
        "yoy_abs": abs(metrics.yoy_change or 0.0),
        "trend": metrics.trend.value if metrics.trend is not None else "stable",
    }


def base_context(subject: str, period: Period, *, has_data: bool) -> Dict[str, Any]:
    return {
        "subject": subject,
        "period_label": period.label,
        "year": period.year,
        "is_monthly": period.is_monthly,
        "has_data": has_data,
    }
