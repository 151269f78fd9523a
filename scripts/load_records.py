# scripts/load_records.py
"""
Load a records CSV (source, id, timestamp, status, category, value, ended_at,
subject_id, tags) into the DuckDB records table.

Run:
  poetry run python scripts/load_records.py data/records.csv --replace
"""
from __future__ import annotations
import argparse
import logging
from pathlib import Path

from hms_analytics.utils import config
from hms_analytics.utils.duck import connect, write_records
from hms_analytics.utils.io import read_records_csv


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Load records into DuckDB.")
    parser.add_argument("csv", type=Path, help="Records CSV file.")
    parser.add_argument("--db", type=Path, default=config.DUCKDB_PATH, help="DuckDB file.")
    parser.add_argument("--table", default=config.RECORDS_TABLE, help="Target table.")
    parser.add_argument("--replace", action="store_true", help="Drop the table before loading.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    frame = read_records_csv(args.csv)
    args.db.parent.mkdir(parents=True, exist_ok=True)
    con = connect(args.db)
    try:
        rows = write_records(con, frame, args.table, replace=args.replace)
    finally:
        con.close()
    print(f"Loaded {rows} records into {args.db}:{args.table}")


if __name__ == "__main__":
    main()
