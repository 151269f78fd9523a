# src/hms_analytics/fetch/sql_client.py
from __future__ import annotations

from pathlib import Path

import pandas as pd

from hms_analytics.utils import config
from hms_analytics.utils.duck import connect


class SQLClient:
    """Minimal DuckDB read-only client (defaults to config.DUCKDB_PATH)."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = Path(db_path) if db_path else config.DUCKDB_PATH
        if not self.db_path.exists():
            raise FileNotFoundError(f"DuckDB not found at {self.db_path}")
        self.con = connect(self.db_path, read_only=True)

    def df(self, sql: str, params: dict | None = None) -> pd.DataFrame:
        return self.con.execute(sql, params or {}).df()

    def close(self):
        self.con.close()

    def __enter__(self) -> "SQLClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
