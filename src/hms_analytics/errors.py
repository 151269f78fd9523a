"""
Typed failures raised by the reporting engine.

Arithmetic degeneracies (zero denominators) and unknown category values are
not errors: they resolve to 0.0 and to an "Other" bucket respectively.
"""
from __future__ import annotations


class ReportingError(Exception):
    """Base class for every failure surfaced by the engine."""


class InvalidPeriod(ReportingError):
    """Requested year/month is outside the supported range."""

    def __init__(self, year: int, month: int | None, reason: str):
        self.year = year
        self.month = month
        super().__init__(f"Invalid period year={year} month={month}: {reason}")


class FetchFailure(ReportingError):
    """The record fetcher could not deliver the records for a source."""

    def __init__(self, source: str, detail: str):
        self.source = source
        super().__init__(f"Could not fetch '{source}' records: {detail}")


class UnknownReportKind(ReportingError):
    """No report builder is registered under the requested kind."""

    def __init__(self, kind: str, available: list[str]):
        self.kind = kind
        super().__init__(f"Unknown report kind '{kind}'. Available: {', '.join(available)}")
