"""Command-line entry point tests (scripts/run_report.py, scripts/load_records.py)."""

from __future__ import annotations

import importlib.util
import json
import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from test_fetch import CSV_TEXT  # noqa: E402


def _load_script(name: str):
    path = ROOT / "scripts" / f"{name}.py"
    spec = importlib.util.spec_from_file_location(f"script_{name}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class RunReportTests(unittest.TestCase):
    def test_markdown_from_csv(self) -> None:
        run_report = _load_script("run_report")
        with TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            csv_path = folder / "records.csv"
            csv_path.write_text(CSV_TEXT, encoding="utf-8")
            out = folder / "out"
            code = run_report.main([
                "--kind", "appointments", "--year", "2024", "--csv", str(csv_path), "--out", str(out),
            ])
            self.assertEqual(code, 0)
            text = (out / "report_appointments_2024.md").read_text(encoding="utf-8")
        self.assertIn("# Appointment Analytics Report (2024)", text)

    def test_json_for_one_ward_and_month(self) -> None:
        run_report = _load_script("run_report")
        with TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            csv_path = folder / "records.csv"
            csv_path.write_text(CSV_TEXT, encoding="utf-8")
            code = run_report.main([
                "--kind", "wards", "--year", "2024", "--month", "1", "--ward", "Ward 1",
                "--csv", str(csv_path), "--format", "json", "--out", str(folder),
            ])
            self.assertEqual(code, 0)
            payload = json.loads((folder / "report_wards_ward1_2024-01.json").read_text(encoding="utf-8"))
        self.assertEqual(payload["scope"], "Ward 1")
        self.assertEqual(payload["period"], {"year": 2024, "month": 1})

    def test_invalid_period_exits_with_code_2(self) -> None:
        run_report = _load_script("run_report")
        with TemporaryDirectory() as tmpdir:
            csv_path = Path(tmpdir) / "records.csv"
            csv_path.write_text(CSV_TEXT, encoding="utf-8")
            code = run_report.main([
                "--kind", "lab", "--year", "2024", "--month", "13", "--csv", str(csv_path), "--out", tmpdir,
            ])
        self.assertEqual(code, 2)

    def test_unreadable_csv_exits_with_code_2(self) -> None:
        run_report = _load_script("run_report")
        bad_rows = {
            "missing_id.csv": "source,timestamp\nappointments,2024-03-01 09:00:00\n",
            "bad_tags.csv": 'source,id,timestamp,tags\nappointments,a1,2024-03-01 09:00:00,"[1, 2]"\n',
        }
        with TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            for name, text in bad_rows.items():
                csv_path = folder / name
                csv_path.write_text(text, encoding="utf-8")
                code = run_report.main([
                    "--kind", "appointments", "--year", "2024", "--csv", str(csv_path), "--out", tmpdir,
                ])
                self.assertEqual(code, 2, name)


class LoadRecordsTests(unittest.TestCase):
    def test_loads_csv_into_duckdb(self) -> None:
        load_records = _load_script("load_records")
        run_report = _load_script("run_report")
        with TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            csv_path = folder / "records.csv"
            csv_path.write_text(CSV_TEXT, encoding="utf-8")
            db_path = folder / "db" / "hms.duckdb"
            load_records.main([str(csv_path), "--db", str(db_path), "--table", "records", "--replace"])
            self.assertTrue(db_path.exists())
            code = run_report.main([
                "--kind", "lab", "--year", "2024", "--db", str(db_path), "--format", "json", "--out", str(folder),
            ])
            self.assertEqual(code, 0)
            payload = json.loads((folder / "report_lab_2024.json").read_text(encoding="utf-8"))
        figures = {f["name"]: f["value"] for f in payload["figures"]}
        self.assertEqual(figures["total_tests"], 1)
        self.assertEqual(figures["urgent_tests"], 1)


if __name__ == "__main__":
    unittest.main()
