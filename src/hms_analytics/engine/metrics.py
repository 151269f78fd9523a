# src/hms_analytics/engine/metrics.py
"""
Arithmetic over aggregated buckets.

Zero denominators are a policy, not an error: `rate`, `average` and
`year_over_year_change` all resolve to 0.0 instead of raising or returning
NaN/inf. Values are returned unrounded; rounding happens at presentation.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from .classifier import classify_trend, low_bucket, peak_bucket
from .schemas import Bucket, Extremum, MetricSet, Rate


def rate(numerator: float, denominator: float) -> float:
    """numerator / denominator * 100, or 0.0 when the denominator is not positive."""
    if denominator is None or denominator <= 0:
        return 0.0
    return float(numerator) / float(denominator) * 100.0


def average(total: float, period_count: int) -> float:
    if period_count is None or period_count <= 0:
        return 0.0
    return float(total) / float(period_count)


def year_over_year_change(current: float, previous: Optional[float]) -> float:
    """
    Percent change vs the previous period.

    A previous total of 0 (or None) means "no comparable change" and yields 0.0.
    """
    if previous is None or previous <= 0:
        return 0.0
    return (float(current) - float(previous)) / float(previous) * 100.0


def mean(values: Iterable[Optional[float]]) -> float:
    """Arithmetic mean of the non-null values, 0.0 when there are none."""
    vals = [float(v) for v in values if v is not None]
    if not vals:
        return 0.0
    return sum(vals) / len(vals)


def hours_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / 3600.0


def days_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[int]:
    """Whole calendar days between two timestamps (dates only)."""
    if start is None or end is None:
        return None
    return (end.date() - start.date()).days


def make_rate(name: str, label: str, numerator: float, denominator: float) -> Rate:
    return Rate(
        name=name,
        label=label,
        numerator=numerator,
        denominator=denominator,
        percent=rate(numerator, denominator),
    )


def _extremum(bucket: Optional[Bucket]) -> Optional[Extremum]:
    if bucket is None:
        return None
    return Extremum(key=bucket.key, label=bucket.label, count=bucket.count)


def summarize(
    buckets: Sequence[Bucket],
    *,
    previous_total: Optional[int] = None,
    rates: Sequence[Rate] = (),
    period_count: Optional[int] = None,
) -> MetricSet:
    """
    Build the MetricSet of a bucket list.

    Parameters
    ----------
    buckets : Sequence[Bucket]
        Ordered buckets of one breakdown.
    previous_total : Optional[int]
        Total of the equivalent prior period. When given, YoY change and trend are set.
    rates : Sequence[Rate]
        Precomputed named rates to attach.
    period_count : Optional[int]
        Divisor of the average. Defaults to the number of buckets (the dense domain size).
    """
    total = sum(b.count for b in buckets)
    divisor = len(buckets) if period_count is None else period_count

    yoy = None
    trend = None
    if previous_total is not None:
        yoy = year_over_year_change(total, previous_total)
        trend = classify_trend(total, previous_total)

    return MetricSet(
        total=total,
        average=average(total, divisor),
        peak=_extremum(peak_bucket(buckets)),
        low=_extremum(low_bucket(buckets)),
        previous_total=previous_total,
        yoy_change=yoy,
        trend=trend,
        rates=tuple(rates),
    )
