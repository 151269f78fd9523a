# src/hms_analytics/utils/duck.py
"""
DuckDB helpers: connections with lock retries and the records table DDL.
"""
from __future__ import annotations

import logging
import os
import re
import time
from typing import Union

import duckdb
import pandas as pd

log = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def connect(
    db_path: Union[str, "os.PathLike[str]"],
    *,
    read_only: bool = False,
    retries: int = 6,
    wait_seconds: float = 1.25,
) -> duckdb.DuckDBPyConnection:
    """
    Connect to DuckDB, retrying while another process holds the writer lock.

    Args:
        db_path: DuckDB file path.
        read_only: Open in read-only mode.
        retries: Number of lock retries.
        wait_seconds: Backoff between retries.

    Returns:
        An open DuckDB connection.
    """
    last_exc = None
    for _ in range(max(1, retries)):
        try:
            return duckdb.connect(str(db_path), read_only=read_only)
        except duckdb.IOException as exc:
            last_exc = exc
            if "lock" in str(exc).lower():
                log.warning("duckdb_locked path=%s retry_in=%.2fs", db_path, wait_seconds)
                time.sleep(wait_seconds)
                continue
            raise
    raise RuntimeError(f"DuckDB locked: {last_exc}") from last_exc


def check_identifier(name: str) -> str:
    """Table names are interpolated into SQL, so only plain identifiers are accepted."""
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid table name: {name!r}")
    return name


def create_records_table(con: duckdb.DuckDBPyConnection, table: str) -> None:
    con.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {check_identifier(table)} (
          source     VARCHAR NOT NULL,
          id         VARCHAR NOT NULL,
          timestamp  TIMESTAMP NOT NULL,
          status     VARCHAR,
          category   VARCHAR,
          value      DOUBLE,
          ended_at   TIMESTAMP,
          subject_id VARCHAR,
          tags       VARCHAR
        );
        """
    )


def write_records(
    con: duckdb.DuckDBPyConnection,
    frame: pd.DataFrame,
    table: str,
    *,
    replace: bool = False,
) -> int:
    """
    Append (or replace) rows of the flat record layout into `table`.

    Returns:
        Number of rows written.
    """
    table = check_identifier(table)
    if replace:
        con.execute(f"DROP TABLE IF EXISTS {table};")
    create_records_table(con, table)
    # NaN -> NULL
    frame = frame.astype(object).where(frame.notna(), None)
    con.register("incoming_records", frame)
    try:
        con.execute(
            f"""
            INSERT INTO {table}
            SELECT
              CAST(source AS VARCHAR),
              CAST(id AS VARCHAR),
              CAST(timestamp AS TIMESTAMP),
              CAST(status AS VARCHAR),
              CAST(category AS VARCHAR),
              CAST(value AS DOUBLE),
              CAST(ended_at AS TIMESTAMP),
              CAST(subject_id AS VARCHAR),
              CAST(tags AS VARCHAR)
            FROM incoming_records;
            """
        )
    finally:
        con.unregister("incoming_records")
    log.info("records_written table=%s rows=%d replace=%s", table, len(frame), replace)
    return len(frame)
