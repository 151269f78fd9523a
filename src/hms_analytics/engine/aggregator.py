# src/hms_analytics/engine/aggregator.py
"""
Grouping of raw records into ordered Bucket lists.

Two families of grouping are supported:

- Time grouping (month, ISO weekday, hour of day, day of month). The result is
  always dense: every unit of the domain is present, in ascending order, with a
  zero count when no record falls into it.
- Categorical grouping (status, ward, test type, doctor...). One bucket per
  observed value. With a declared enumeration, values outside it (missing ones
  included) are folded into a single "Other" bucket emitted last, and buckets
  follow the enumeration order. Without one, missing values land in "Unknown"
  and buckets are ordered by count (descending) then label.

Every record lands in exactly one bucket of a breakdown. Counting is done with
pandas; the frame is rebuilt per call from the immutable records.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Literal, Optional, Sequence, Tuple, Union

import pandas as pd

from .registry import DAY_NAMES, MONTH_NAMES, OTHER_KEY, OTHER_LABEL, UNKNOWN_LABEL, color_for, label_for
from .schemas import Bucket, Period, RawRecord

log = logging.getLogger(__name__)

Measure = Literal["sum", "mean"]
Records = Union[Sequence[RawRecord], pd.DataFrame]

_BASE_COLUMNS = ("id", "timestamp", "status", "category", "value", "ended_at", "subject_id")


class TimeUnit(str, Enum):
    MONTH = "month"
    WEEKDAY = "weekday"
    HOUR = "hour"
    DAY = "day"


@dataclass(frozen=True)
class Dimension:
    """
    A categorical grouping key.

    Attributes:
        field: RawRecord attribute or tag name.
        enumeration: Declared closed set, in display order. None for open dimensions.
        labels: Key -> display label. Defaults to the registry labels for
            enumerated dimensions and to the raw value otherwise.
        normalize: Applied to every cleaned value (None included) before grouping.
    """

    field: str
    enumeration: Optional[Sequence[str]] = None
    labels: Optional[Callable[[str], str]] = None
    normalize: Optional[Callable[[Optional[str]], Optional[str]]] = None


# ------------------------------------------------------------------------------
# Frame helpers
# ------------------------------------------------------------------------------
def records_frame(records: Iterable[RawRecord]) -> pd.DataFrame:
    """
    Flatten records into a DataFrame: one column per attribute plus one per tag.
    Attributes win over tags of the same name.
    """
    rows = [{**r.tags, **r.model_dump(exclude={"tags"})} for r in records]
    frame = pd.DataFrame.from_records(rows) if rows else pd.DataFrame()
    for col in _BASE_COLUMNS:
        if col not in frame.columns:
            frame[col] = pd.Series(dtype=object)
    return frame


def _frame(records: Records) -> pd.DataFrame:
    if isinstance(records, pd.DataFrame):
        return records
    return records_frame(records)


def _column(frame: pd.DataFrame, field: str) -> pd.Series:
    if field in frame.columns:
        return frame[field]
    return pd.Series([None] * len(frame), index=frame.index, dtype=object)


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return str(value)


def _py(key: Any) -> Any:
    # numpy scalars -> python scalars
    return key.item() if hasattr(key, "item") else key


def _timestamps(series: pd.Series) -> pd.Series:
    ts = pd.to_datetime(series, errors="coerce")
    if getattr(ts.dt, "tz", None) is not None:
        ts = ts.dt.tz_localize(None)
    return ts


def _tally(
    frame: pd.DataFrame,
    keys: pd.Series,
    *,
    distinct: Optional[str] = None,
    measure: Optional[Measure] = None,
) -> Tuple[Dict[Any, int], Dict[Any, Optional[float]]]:
    """Count records (or distinct values of a field) and aggregate `value` per key."""
    work = pd.DataFrame({"key": keys})
    if distinct is not None:
        work["subject"] = _column(frame, distinct).map(_clean)
    if measure is not None:
        work["value"] = pd.to_numeric(_column(frame, "value"), errors="coerce")

    grouped = work.groupby("key", sort=False)
    sizes = grouped["subject"].nunique() if distinct is not None else grouped.size()
    counts = {_py(k): int(v) for k, v in sizes.items()}

    values: Dict[Any, Optional[float]] = {}
    if measure == "sum":
        values = {_py(k): float(v) for k, v in grouped["value"].sum().items()}
    elif measure == "mean":
        values = {
            _py(k): (None if pd.isna(v) else float(v))
            for k, v in grouped["value"].mean().items()
        }
    return counts, values


# ------------------------------------------------------------------------------
# Time grouping
# ------------------------------------------------------------------------------
def time_domain(unit: TimeUnit, period: Period) -> range:
    """Full ordered key range of a time unit within a period."""
    unit = TimeUnit(unit)
    if unit is TimeUnit.MONTH:
        return range(1, 13)
    if unit is TimeUnit.WEEKDAY:
        return range(1, 8)
    if unit is TimeUnit.HOUR:
        return range(0, 24)
    if not period.is_monthly:
        raise ValueError("DAY grouping requires a monthly period")
    return range(1, period.days + 1)


def time_label(unit: TimeUnit, key: int, period: Optional[Period] = None) -> str:
    unit = TimeUnit(unit)
    if unit is TimeUnit.MONTH:
        return MONTH_NAMES[key - 1]
    if unit is TimeUnit.WEEKDAY:
        return DAY_NAMES[key - 1]
    if unit is TimeUnit.HOUR:
        return "%02d:00-%02d:00" % (key, key + 1)
    if period is not None and period.month is not None:
        return f"{MONTH_NAMES[period.month - 1]} {key}"
    return str(key)


def _time_keys(
    frame: pd.DataFrame, unit: TimeUnit, period: Period, time_field: str
) -> Tuple[pd.DataFrame, pd.Series]:
    """Restrict the frame to rows whose `time_field` falls in the period and key them."""
    ts = _timestamps(_column(frame, time_field))
    mask = ts.notna() & (ts >= pd.Timestamp(period.start)) & (ts < pd.Timestamp(period.end))
    frame, ts = frame[mask], ts[mask]

    if unit is TimeUnit.MONTH:
        keys = ts.dt.month
    elif unit is TimeUnit.WEEKDAY:
        keys = ts.dt.dayofweek + 1
    elif unit is TimeUnit.HOUR:
        keys = ts.dt.hour
    else:
        keys = ts.dt.day
    return frame, keys.astype(int)


def group_by_time(
    records: Records,
    unit: TimeUnit,
    period: Period,
    *,
    measure: Optional[Measure] = None,
    distinct: Optional[str] = None,
    time_field: str = "timestamp",
) -> Tuple[Bucket, ...]:
    """
    Dense time buckets for the period.

    Parameters
    ----------
    records : Records
        RawRecords (or a frame built by `records_frame`).
    unit : TimeUnit
        MONTH (1-12), WEEKDAY (1-7, Monday = 1), HOUR (0-23) or DAY (1..n, monthly periods only).
    period : Period
        Records whose `time_field` falls outside the period are ignored.
    measure : Optional["sum" | "mean"]
        Fill `Bucket.value` with the sum / mean of record values.
    distinct : Optional[str]
        Count unique values of this field instead of records.
    time_field : str
        Timestamp attribute to key by ("timestamp" or "ended_at").
    """
    unit = TimeUnit(unit)
    domain = time_domain(unit, period)
    frame, keys = _time_keys(_frame(records), unit, period, time_field)
    counts, values = _tally(frame, keys, distinct=distinct, measure=measure)

    buckets = []
    for k in domain:
        value = None
        if measure == "sum":
            value = values.get(k, 0.0)
        elif measure == "mean":
            value = values.get(k)
        buckets.append(Bucket(key=k, label=time_label(unit, k, period), count=counts.get(k, 0), value=value))
    return tuple(buckets)


# ------------------------------------------------------------------------------
# Categorical grouping
# ------------------------------------------------------------------------------
def _category_keys(frame: pd.DataFrame, dim: Dimension) -> pd.Series:
    raw = [_clean(v) for v in _column(frame, dim.field).tolist()]
    if dim.normalize is not None:
        raw = [_clean(dim.normalize(v)) for v in raw]

    if dim.enumeration is None:
        keys = [UNKNOWN_LABEL if v is None else v for v in raw]
    else:
        known = set(dim.enumeration)
        folded = [v for v in raw if v is not None and v not in known]
        if folded:
            log.warning(
                "category_folded field=%s records=%d values=%s into=%s",
                dim.field, len(folded), sorted(set(folded)), OTHER_LABEL,
            )
        keys = [v if v in known else OTHER_KEY for v in raw]
    return pd.Series(keys, index=frame.index, dtype=object)


def _labeler(dim: Dimension) -> Callable[[str], str]:
    if dim.labels is None:
        return label_for if dim.enumeration is not None else str
    custom = dim.labels
    return lambda k: OTHER_LABEL if k == OTHER_KEY else custom(k)


def _category_buckets(
    frame: pd.DataFrame,
    keys: pd.Series,
    dim: Dimension,
    *,
    distinct: Optional[str] = None,
    measure: Optional[Measure] = None,
    inner: Optional[Tuple[pd.Series, Dimension]] = None,
) -> Tuple[Bucket, ...]:
    counts, values = _tally(frame, keys, distinct=distinct, measure=measure)
    label = _labeler(dim)

    enumerated = dim.enumeration is not None
    if enumerated:
        order = [k for k in (*dim.enumeration, OTHER_KEY) if k in counts]
    else:
        order = sorted(counts, key=lambda k: (-counts[k], label(k)))

    buckets = []
    for k in order:
        children: Tuple[Bucket, ...] = ()
        if inner is not None:
            inner_keys, inner_dim = inner
            mask = keys == k
            children = _category_buckets(frame[mask], inner_keys[mask], inner_dim)
        buckets.append(
            Bucket(
                key=k,
                label=label(k),
                count=counts[k],
                value=values.get(k),
                color=color_for(k) if enumerated else None,
                children=children,
            )
        )
    return tuple(buckets)


def _dimension(
    field: Union[str, Dimension],
    enumeration: Optional[Sequence[str]],
    labels: Optional[Callable[[str], str]],
    normalize: Optional[Callable[[Optional[str]], Optional[str]]],
) -> Dimension:
    if isinstance(field, Dimension):
        return field
    return Dimension(field=field, enumeration=enumeration, labels=labels, normalize=normalize)


def group_by_category(
    records: Records,
    field: Union[str, Dimension],
    *,
    enumeration: Optional[Sequence[str]] = None,
    labels: Optional[Callable[[str], str]] = None,
    normalize: Optional[Callable[[Optional[str]], Optional[str]]] = None,
    distinct: Optional[str] = None,
    measure: Optional[Measure] = None,
    inner: Optional[Dimension] = None,
) -> Tuple[Bucket, ...]:
    """
    One bucket per observed category value.

    `inner` adds a second categorical level as each bucket's children
    (e.g. statuses per doctor).
    """
    frame = _frame(records)
    dim = _dimension(field, enumeration, labels, normalize)
    keys = _category_keys(frame, dim)
    inner_spec = (_category_keys(frame, inner), inner) if inner is not None else None
    return _category_buckets(frame, keys, dim, distinct=distinct, measure=measure, inner=inner_spec)


def cross_tab(
    records: Records,
    unit: TimeUnit,
    period: Period,
    field: Union[str, Dimension],
    *,
    enumeration: Optional[Sequence[str]] = None,
    labels: Optional[Callable[[str], str]] = None,
    normalize: Optional[Callable[[Optional[str]], Optional[str]]] = None,
    time_field: str = "timestamp",
) -> Tuple[Bucket, ...]:
    """Dense outer time buckets, each with sparse inner category buckets."""
    unit = TimeUnit(unit)
    domain = time_domain(unit, period)
    dim = _dimension(field, enumeration, labels, normalize)
    frame, tkeys = _time_keys(_frame(records), unit, period, time_field)
    ckeys = _category_keys(frame, dim)
    counts, _ = _tally(frame, tkeys)

    buckets = []
    for k in domain:
        mask = tkeys == k
        children = _category_buckets(frame[mask], ckeys[mask], dim)
        buckets.append(
            Bucket(key=k, label=time_label(unit, k, period), count=counts.get(k, 0), children=children)
        )
    return tuple(buckets)


def bucket_count(buckets: Sequence[Bucket], *keys: Union[int, str]) -> int:
    """Sum of the counts of the buckets with the given keys (0 for absent keys)."""
    wanted = set(keys)
    return sum(b.count for b in buckets if b.key in wanted)
