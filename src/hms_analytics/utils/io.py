# src/hms_analytics/utils/io.py
"""
Record loading helpers.

The flat record layout shared by CSV files and the DuckDB `records` table is:

    source, id, timestamp, status, category, value, ended_at, subject_id, tags

where `tags` is a JSON object of secondary dimensions (doctor, ward, gender...).
"""
from __future__ import annotations

import json
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from hms_analytics.engine.schemas import RawRecord

RECORD_COLUMNS = ("source", "id", "timestamp", "status", "category", "value", "ended_at", "subject_id", "tags")
REQUIRED_COLUMNS = ("source", "id", "timestamp")


def _missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value is pd.NaT


def _text(value: Any) -> Optional[str]:
    if _missing(value):
        return None
    text = str(value).strip()
    return text or None


def _number(value: Any) -> Optional[float]:
    if _missing(value) or value == "":
        return None
    return float(value)


def _ts(value: Any) -> Optional[datetime]:
    if _missing(value) or value == "":
        return None
    ts = pd.Timestamp(value)
    if ts is pd.NaT:
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.to_pydatetime()


def parse_tags(raw: Any) -> Dict[str, str]:
    """Decode the `tags` column (JSON text or mapping) into a str -> str dict."""
    if _missing(raw):
        return {}
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return {}
        raw = json.loads(raw)
    if not isinstance(raw, dict):
        raise ValueError(f"tags must be a JSON object, got {raw!r}")
    return {str(k): str(v) for k, v in raw.items() if v is not None}


def records_from_frame(frame: pd.DataFrame) -> List[RawRecord]:
    """Convert rows of the flat record layout into RawRecords (unknown columns are ignored)."""
    out: List[RawRecord] = []
    for row in frame.to_dict(orient="records"):
        out.append(
            RawRecord(
                id=_text(row.get("id")) or "",
                timestamp=_ts(row.get("timestamp")),
                status=_text(row.get("status")),
                category=_text(row.get("category")),
                value=_number(row.get("value")),
                ended_at=_ts(row.get("ended_at")),
                subject_id=_text(row.get("subject_id")),
                tags=parse_tags(row.get("tags")),
            )
        )
    return out


def read_records_csv(path: str | Path) -> pd.DataFrame:
    """
    Read a records CSV into a frame with every column of the flat layout.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a required column is missing.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Records CSV not found at {p}")
    df = pd.read_csv(p, dtype=str, keep_default_na=False, na_values=[""])
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{p} is missing required columns: {', '.join(missing)}")
    for col in RECORD_COLUMNS:
        if col not in df.columns:
            df[col] = None
    return df[list(RECORD_COLUMNS)]


def load_records_csv(path: str | Path) -> Dict[str, List[RawRecord]]:
    """Load a records CSV grouped by its `source` column."""
    df = read_records_csv(path)
    grouped: Dict[str, List[RawRecord]] = {}
    for source, part in df.groupby("source", sort=True):
        grouped[str(source)] = records_from_frame(part)
    return grouped
