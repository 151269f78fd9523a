# src/hms_analytics/engine/classifier.py
"""Peak/low bucket selection and trend labelling."""
from __future__ import annotations

from typing import Literal, Optional, Sequence, Union

from hms_analytics.utils import config

from .schemas import Bucket, Extremum, TrendLabel

OccupancyBand = Literal["high", "optimal", "low"]


def peak_bucket(buckets: Sequence[Bucket]) -> Optional[Bucket]:
    """Bucket with the highest count; the first one in list order wins ties."""
    best: Optional[Bucket] = None
    for b in buckets:
        if best is None or b.count > best.count:
            best = b
    return best


def low_bucket(buckets: Sequence[Bucket]) -> Optional[Bucket]:
    """Bucket with the lowest count; the first one in list order wins ties."""
    best: Optional[Bucket] = None
    for b in buckets:
        if best is None or b.count < best.count:
            best = b
    return best


def classify_trend(current: float, previous: float) -> TrendLabel:
    if current > previous:
        return TrendLabel.INCREASING
    if current < previous:
        return TrendLabel.DECREASING
    return TrendLabel.STABLE


def is_seasonal(
    peak: Optional[Union[Bucket, Extremum]],
    low: Optional[Union[Bucket, Extremum]],
    factor: Optional[float] = None,
) -> bool:
    """True when the peak count exceeds the low count by more than `factor` times."""
    if peak is None or low is None:
        return False
    factor = config.SEASONAL_FACTOR if factor is None else factor
    return peak.count > low.count * factor


def occupancy_band(occupancy_pct: float) -> OccupancyBand:
    if occupancy_pct > config.OCCUPANCY_HIGH:
        return "high"
    if occupancy_pct < config.OCCUPANCY_LOW:
        return "low"
    return "optimal"
