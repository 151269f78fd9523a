# src/hms_analytics/fetch/records.py
"""
Record fetchers: the collaborators that deliver RawRecords to the engine.

A fetcher is any callable `(source, period) -> Sequence[RawRecord]` returning
the records of one source whose timestamp falls within the period. The
assembler calls it once per source and period; fetchers hold no report state.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import duckdb

from hms_analytics.engine.schemas import Period, RawRecord
from hms_analytics.errors import FetchFailure
from hms_analytics.utils import config
from hms_analytics.utils.duck import check_identifier
from hms_analytics.utils.io import records_from_frame

from . import queries as Q
from .sql_client import SQLClient

log = logging.getLogger(__name__)

Fetcher = Callable[[str, Period], Sequence[RawRecord]]


class InMemoryFetcher:
    """Serve records already held in memory, keyed by source."""

    def __init__(self, records_by_source: Mapping[str, Iterable[RawRecord]]):
        self._records: Dict[str, Tuple[RawRecord, ...]] = {
            source: tuple(records) for source, records in records_by_source.items()
        }

    def __call__(self, source: str, period: Period) -> List[RawRecord]:
        return [r for r in self._records.get(source, ()) if period.contains(r.timestamp)]


class DuckDBFetcher:
    """
    Read records from the DuckDB records table.

    Parameters
    ----------
    sql : Optional[SQLClient]
        Read-only client. Defaults to a new SQLClient() on DUCKDB_PATH.
    table : Optional[str]
        Records table. Defaults to config.RECORDS_TABLE.
    """

    def __init__(self, sql: Optional[SQLClient] = None, *, table: Optional[str] = None):
        self.sql = sql or SQLClient()
        self.table = check_identifier(table or config.RECORDS_TABLE)

    def __call__(self, source: str, period: Period) -> List[RawRecord]:
        params = {"source": source, "start": period.start, "end": period.end}
        try:
            df = self.sql.df(Q.SQL_RECORDS_FOR_SOURCE.format(table=self.table), params)
        except duckdb.Error as exc:
            raise FetchFailure(source, str(exc)) from exc
        try:
            records = records_from_frame(df)
        except ValueError as exc:
            raise FetchFailure(source, f"malformed record: {exc}") from exc
        log.debug("duckdb_fetch source=%s period=%s rows=%d", source, period.label, len(records))
        return records

    def sources(self) -> Dict[str, int]:
        """Record count per source in the table."""
        df = self.sql.df(Q.SQL_SOURCES.format(table=self.table))
        return {str(row["source"]): int(row["records"]) for _, row in df.iterrows()}
