# scripts/run_report.py
"""
Generate one hospital statistics report and write it as Markdown or JSON.

Records come from a CSV export (--csv) or from the DuckDB records table
(--db, defaults to DUCKDB_PATH). Reporting errors and unreadable input exit
with code 2.

Run:
  poetry run python scripts/run_report.py --kind wards --year 2024 --ward "Ward 1"
  poetry run python scripts/run_report.py --kind lab --year 2024 --month 3 --csv data/records.csv --format json
"""
from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path

from hms_analytics.engine.assembler import ReportRequest, generate_report
from hms_analytics.engine.export import render_markdown, to_json
from hms_analytics.errors import ReportingError
from hms_analytics.fetch.records import DuckDBFetcher, InMemoryFetcher
from hms_analytics.fetch.sql_client import SQLClient
from hms_analytics.reports.catalog import available_kinds
from hms_analytics.utils import config
from hms_analytics.utils.io import load_records_csv

log = logging.getLogger("run_report")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate a hospital statistics report.")
    parser.add_argument("--kind", required=True, choices=available_kinds(), help="Report kind.")
    parser.add_argument("--year", required=True, type=int, help="Report year.")
    parser.add_argument("--month", type=int, default=None, help="Optional month (1-12) for a monthly report.")
    parser.add_argument("--ward", default=None, help="Restrict a wards report to one ward (e.g. 'Ward 1').")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--csv", type=Path, default=None, help="Read records from a CSV file.")
    src.add_argument("--db", type=Path, default=None, help="DuckDB file (defaults to DUCKDB_PATH).")
    parser.add_argument("--format", default="md", choices=["md", "json"], help="Output format.")
    parser.add_argument("--out", default="reports", help="Output folder.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    options = {"ward": args.ward} if args.ward else {}
    request = ReportRequest(kind=args.kind, year=args.year, month=args.month, options=options)

    sql = None
    try:
        if args.csv is not None:
            fetcher = InMemoryFetcher(load_records_csv(args.csv))
        else:
            sql = SQLClient(args.db)
            fetcher = DuckDBFetcher(sql)
        report = generate_report(request, fetcher)
    except (ReportingError, FileNotFoundError, ValueError) as exc:
        log.error("report_failed kind=%s error=%s", args.kind, exc)
        return 2
    finally:
        if sql is not None:
            sql.close()

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    suffix = f"{args.year}-{args.month:02d}" if args.month else str(args.year)
    scope = f"_{report.scope.replace(' ', '').lower()}" if report.scope else ""
    out_file = out_dir / f"report_{args.kind}{scope}_{suffix}.{args.format}"
    body = render_markdown(report) if args.format == "md" else to_json(report)
    out_file.write_text(body, encoding="utf-8")

    print(f"Report saved: {out_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
