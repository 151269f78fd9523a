# src/hms_analytics/engine/assembler.py
"""
Report assembly: the single entry point of the reporting engine.

Order of work for one request:
1. validate the period (before anything is fetched),
2. fetch every source the report kind declares, for the period and, when the
   kind compares year-over-year, for the same period one year earlier,
3. hand the records to the kind's builder, which aggregates, summarizes and
   renders the narrative,
4. return the immutable Report.

There are no retries and no partial results: any failure aborts the call.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from hms_analytics.errors import FetchFailure, InvalidPeriod, ReportingError, UnknownReportKind
from hms_analytics.fetch.records import Fetcher
from hms_analytics.reports.base import BuildContext, ReportSpec
from hms_analytics.reports.catalog import REPORTS, available_kinds
from hms_analytics.utils import config

from .schemas import Period, RawRecord, Report

log = logging.getLogger(__name__)


class ReportRequest(BaseModel):
    """
    What to build.

    Attributes:
        kind: Report kind registered in the catalog ('wards', 'lab', ...).
        year: Calendar year of the period.
        month: Optional month (1-12); None requests the annual report.
        options: Kind-specific options, e.g. {"ward": "Ward 1"}.
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    year: int
    month: Optional[int] = None
    options: Dict[str, Any] = Field(default_factory=dict)


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
def validate_period(year: int, month: Optional[int] = None) -> Period:
    """Build the Period of a request, raising InvalidPeriod when out of range."""
    if not config.MIN_YEAR <= year <= config.MAX_YEAR:
        raise InvalidPeriod(year, month, f"year must be within {config.MIN_YEAR}-{config.MAX_YEAR}")
    if month is not None and not 1 <= month <= 12:
        raise InvalidPeriod(year, month, "month must be within 1-12")
    return Period(year=year, month=month)


def _resolve(kind: str) -> ReportSpec:
    try:
        return REPORTS[kind]
    except KeyError:
        raise UnknownReportKind(kind, available_kinds()) from None


def _fetch(fetcher: Fetcher, source: str, period: Period) -> Sequence[RawRecord]:
    try:
        records = fetcher(source, period)
    except ReportingError:
        raise
    except Exception as exc:
        raise FetchFailure(source, f"{type(exc).__name__}: {exc}") from exc
    log.debug("fetched source=%s period=%s records=%d", source, period.label, len(records))
    return tuple(records)


def _fetch_all(fetcher: Fetcher, sources: Sequence[str], period: Period) -> Mapping[str, Sequence[RawRecord]]:
    return {source: _fetch(fetcher, source, period) for source in sources}


# ------------------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------------------
def generate_report(request: ReportRequest, fetcher: Fetcher) -> Report:
    """
    Build one report.

    Parameters
    ----------
    request : ReportRequest
        Kind, period and options of the report.
    fetcher : Fetcher
        Callable `(source, period) -> Sequence[RawRecord]`.

    Returns
    -------
    Report
        Fully built, immutable report.

    Raises
    ------
    InvalidPeriod
        Year or month out of range (nothing is fetched).
    UnknownReportKind
        The kind is not in the catalog.
    FetchFailure
        The fetcher raised; the original exception is chained.
    """
    t0 = time.perf_counter()
    period = validate_period(request.year, request.month)
    spec = _resolve(request.kind)

    t_fetch = time.perf_counter()
    current = _fetch_all(fetcher, spec.sources, period)
    previous = _fetch_all(fetcher, spec.sources, period.previous()) if spec.compare_previous else {}
    fetch_ms = int((time.perf_counter() - t_fetch) * 1000)

    t_build = time.perf_counter()
    ctx = BuildContext(period=period, current=current, previous=previous, options=dict(request.options))
    report = spec.build(ctx)
    build_ms = int((time.perf_counter() - t_build) * 1000)

    total_ms = int((time.perf_counter() - t0) * 1000)
    log.info(
        "report_generated_ms=%d fetch_ms=%d build_ms=%d kind=%s period=%s",
        total_ms,
        fetch_ms,
        build_ms,
        spec.kind,
        period.label,
    )
    return report


def generate_reports(requests: Sequence[ReportRequest], fetcher: Fetcher) -> List[Report]:
    """Build several reports with the same fetcher, in request order."""
    return [generate_report(r, fetcher) for r in requests]
