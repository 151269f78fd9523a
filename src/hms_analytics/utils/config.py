"""
Global configuration for the HMS analytics engine.

Centralizes paths, table names, supported period range and the operational
constants used by the report builders. Every value can be overridden via
environment variables; a `.env` file at the project root is loaded first
(without overriding variables that are already exported).

Environment variables (selected):
  - HMS_MIN_YEAR / HMS_MAX_YEAR   (default: 2000 / 2100)
  - WARD_BED_CAPACITY             (default: 20 beds per ward)
  - DIALYSIS_MONTHLY_CAPACITY     (default: 100 sessions per month)
  - WEEKS_PER_YEAR                (default: 52)
  - WORKING_DAYS_PER_YEAR         (default: 250)
  - MAX_PROCESSING_HOURS          (default: 168)
  - SEASONAL_FACTOR               (default: 1.5)
  - OCCUPANCY_HIGH / OCCUPANCY_LOW (default: 85 / 60, percent)
  - LONG_STAY_DAYS                (default: 7)
  - DUCKDB_PATH                   (default: data/hms.duckdb)
  - RECORDS_TABLE                 (default: records)
  - LOG_LEVEL                     (default: INFO)
"""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: .../hms-analytics
PROJECT_ROOT = Path(__file__).resolve().parents[3]
load_dotenv(dotenv_path=PROJECT_ROOT / ".env", override=False, encoding="utf-8")

# Data
DATA_DIR = PROJECT_ROOT / "data"
DUCKDB_PATH = Path(os.getenv("DUCKDB_PATH", DATA_DIR / "hms.duckdb"))
if not DUCKDB_PATH.is_absolute():
    DUCKDB_PATH = PROJECT_ROOT / DUCKDB_PATH
RECORDS_TABLE = os.getenv("RECORDS_TABLE", "records")

# Supported reporting window
MIN_YEAR = int(os.getenv("HMS_MIN_YEAR", "2000"))
MAX_YEAR = int(os.getenv("HMS_MAX_YEAR", "2100"))

# Capacities and calendar constants
WARD_BED_CAPACITY = int(os.getenv("WARD_BED_CAPACITY", "20"))
DIALYSIS_MONTHLY_CAPACITY = int(os.getenv("DIALYSIS_MONTHLY_CAPACITY", "100"))
WEEKS_PER_YEAR = int(os.getenv("WEEKS_PER_YEAR", "52"))
WORKING_DAYS_PER_YEAR = int(os.getenv("WORKING_DAYS_PER_YEAR", "250"))
MAX_PROCESSING_HOURS = float(os.getenv("MAX_PROCESSING_HOURS", "168"))

# Classification thresholds
SEASONAL_FACTOR = float(os.getenv("SEASONAL_FACTOR", "1.5"))
OCCUPANCY_HIGH = float(os.getenv("OCCUPANCY_HIGH", "85"))
OCCUPANCY_LOW = float(os.getenv("OCCUPANCY_LOW", "60"))
LONG_STAY_DAYS = float(os.getenv("LONG_STAY_DAYS", "7"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
