# src/hms_analytics/engine/schemas.py
"""
Typed value objects used across the reporting engine.

These Pydantic schemas define the contract between:
- the record fetcher (RawRecord collections for a period),
- the aggregation / metrics / classification stages (Bucket, MetricSet),
- and the consumers of a finished report (JSON API, chart and PDF renderers).

Every model is frozen and stores its collections as tuples: a Report is built
once by the assembler and never mutated afterwards. Percentages are kept raw
in memory and rounded (half-up, one decimal) only when serialized.
"""
from __future__ import annotations

import calendar
from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from hms_analytics.utils.numbers import round_half_up


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class TrendLabel(str, Enum):
    """Direction of change between two consecutive period totals."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class Period(_Frozen):
    """
    Reporting period: a whole year, or one month of a year.

    Attributes:
        year: Calendar year.
        month: Optional month number (1-12). None means the whole year.
    """

    year: int = Field(..., description="Calendar year.")
    month: Optional[int] = Field(None, ge=1, le=12, description="Month 1-12, or None for the whole year.")

    @property
    def is_monthly(self) -> bool:
        return self.month is not None

    @property
    def label(self) -> str:
        if self.month is None:
            return str(self.year)
        return f"{calendar.month_name[self.month]} {self.year}"

    @property
    def start(self) -> datetime:
        return datetime(self.year, self.month or 1, 1)

    @property
    def end(self) -> datetime:
        """Exclusive upper bound of the period."""
        if self.month is None or self.month == 12:
            return datetime(self.year + 1, 1, 1)
        return datetime(self.year, self.month + 1, 1)

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    def previous(self) -> "Period":
        """Same period one year earlier (year-over-year comparison)."""
        return Period(year=self.year - 1, month=self.month)

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts < self.end


class RawRecord(_Frozen):
    """
    One clinical/operational event as delivered by the fetcher.

    Attributes:
        id: Source identifier of the event.
        timestamp: When the event happened (appointment time, admission date...).
        status: Categorical status from the source's closed enumeration.
        category: Primary categorical dimension (ward, test type, machine...).
        value: Optional numeric payload (duration, turnaround hours...).
        ended_at: Optional closing timestamp (discharge, dispensing...).
        subject_id: Optional patient identifier, used for distinct counts.
        tags: Secondary dimensions (doctor, type, gender, priority...).
    """

    id: str
    timestamp: datetime
    status: Optional[str] = None
    category: Optional[str] = None
    value: Optional[float] = None
    ended_at: Optional[datetime] = None
    subject_id: Optional[str] = None
    tags: Dict[str, str] = Field(default_factory=dict)

    @field_validator("timestamp", "ended_at")
    @classmethod
    def _naive(cls, v: Optional[datetime]) -> Optional[datetime]:
        # periods are naive; aware stamps keep their wall-clock reading
        if v is not None and v.tzinfo is not None:
            return v.replace(tzinfo=None)
        return v


class Bucket(_Frozen):
    """
    One grouping cell: a time unit or a category value.

    Attributes:
        key: Month/weekday/hour/day number, or the category value.
        label: Display label ('March', 'Monday', '09:00-10:00', 'Completed').
        count: Number of records (or distinct subjects) in the cell.
        value: Optional derived measure (sum/mean of record values, utilization...).
        color: Display color of an enumerated category value, for chart renderers.
        children: Sparse inner buckets of a cross-tabulation.
    """

    key: Union[int, str]
    label: str
    count: int = 0
    value: Optional[float] = None
    color: Optional[str] = None
    children: Tuple["Bucket", ...] = ()

    def child(self, key: Union[int, str]) -> Optional["Bucket"]:
        for c in self.children:
            if c.key == key:
                return c
        return None

    def child_count(self, key: Union[int, str]) -> int:
        c = self.child(key)
        return c.count if c is not None else 0


class Extremum(_Frozen):
    """A reference to the peak or low bucket of a breakdown."""

    key: Union[int, str]
    label: str
    count: int


class Rate(_Frozen):
    """
    A percentage of a total.

    Attributes:
        name: Machine name ('completion_rate').
        label: Display label ('Completion rate').
        numerator / denominator: Raw counts the rate derives from.
        percent: numerator / denominator * 100, 0.0 when the denominator is 0.
    """

    name: str
    label: str
    numerator: float
    denominator: float
    percent: float

    @field_serializer("percent")
    def _round_percent(self, v: float) -> float:
        return round_half_up(v, 1)


class MetricSet(_Frozen):
    """
    Derived numeric summary of one breakdown.

    Attributes:
        total: Sum of bucket counts.
        average: Total divided by the number of buckets in the domain.
        peak / low: First-encountered maximum / minimum bucket.
        previous_total: Total of the equivalent prior period, when compared.
        yoy_change: Year-over-year change in percent (0.0 if prior total is 0).
        trend: Sign comparison of total vs previous_total.
        rates: Named percentages derived from the buckets.
    """

    total: int = 0
    average: float = 0.0
    peak: Optional[Extremum] = None
    low: Optional[Extremum] = None
    previous_total: Optional[int] = None
    yoy_change: Optional[float] = None
    trend: Optional[TrendLabel] = None
    rates: Tuple[Rate, ...] = ()

    @field_serializer("average")
    def _round_average(self, v: float) -> float:
        return round_half_up(v, 2)

    @field_serializer("yoy_change")
    def _round_yoy(self, v: Optional[float]) -> Optional[float]:
        return None if v is None else round_half_up(v, 1)

    def rate(self, name: str) -> Rate:
        for r in self.rates:
            if r.name == name:
                return r
        raise KeyError(name)


class Breakdown(_Frozen):
    """
    One named grouping view of a report.

    Attributes:
        name: Stable identifier ('monthly', 'status', 'unit:Nephrology Unit 1').
        title: Human title for renderers.
        dimension: What the buckets are keyed by ('month', 'weekday', 'hour', 'day' or a field name).
        buckets: Ordered buckets. Time dimensions are always dense.
        metrics: Summary of the buckets.
        description: Optional descriptive paragraph (unit descriptions).
        table_number: Optional table reference used by printed reports.
    """

    name: str
    title: str
    dimension: str
    buckets: Tuple[Bucket, ...] = ()
    metrics: MetricSet = Field(default_factory=MetricSet)
    description: Optional[str] = None
    table_number: Optional[str] = None

    def chart_points(self, *, use_value: bool = False) -> List[Tuple[str, float]]:
        """Ordered (label, value) pairs for chart renderers."""
        if use_value:
            return [(b.label, b.value if b.value is not None else 0.0) for b in self.buckets]
        return [(b.label, float(b.count)) for b in self.buckets]

    def chart_colors(self) -> Dict[str, str]:
        """Label -> color of the buckets that carry one (enumerated dimensions only)."""
        return {b.label: b.color for b in self.buckets if b.color is not None}

    def bucket(self, key: Union[int, str]) -> Bucket:
        for b in self.buckets:
            if b.key == key:
                return b
        raise KeyError(key)


FigureUnit = Literal["count", "pct", "hours", "days", "ratio"]


class Figure(_Frozen):
    """A headline number of a report (total admissions, completion rate...)."""

    name: str
    label: str
    value: float
    unit: FigureUnit = "count"

    @field_serializer("value")
    def _round_value(self, v: float) -> float:
        if self.unit == "count":
            return v
        return round_half_up(v, 1 if self.unit == "pct" else 2)


class NarrativeSection(_Frozen):
    """One templated prose paragraph, keyed by a fixed section name."""

    name: str
    text: str


class Report(_Frozen):
    """
    Root aggregate handed to API/chart/PDF collaborators.

    Attributes:
        kind: Report kind ('appointments', 'wards', ...).
        title: Report title.
        period: Reporting period.
        scope: Optional narrowing (ward name) or None for the whole hospital.
        figures: Headline numbers.
        breakdowns: Named grouping views.
        narrative: Templated prose sections.
    """

    kind: str
    title: str
    period: Period
    scope: Optional[str] = None
    figures: Tuple[Figure, ...] = ()
    breakdowns: Tuple[Breakdown, ...] = ()
    narrative: Tuple[NarrativeSection, ...] = ()

    def breakdown(self, name: str) -> Breakdown:
        for b in self.breakdowns:
            if b.name == name:
                return b
        raise KeyError(name)

    def figure(self, name: str) -> float:
        for f in self.figures:
            if f.name == name:
                return f.value
        raise KeyError(name)

    def section(self, name: str) -> str:
        for s in self.narrative:
            if s.name == name:
                return s.text
        raise KeyError(name)


Bucket.model_rebuild()
