"""Record factories shared by the test modules."""

from __future__ import annotations

import itertools
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from hms_analytics.engine.schemas import RawRecord  # noqa: E402

_ids = itertools.count(1)

When = Union[str, datetime]


def ts(value: When) -> datetime:
    return value if isinstance(value, datetime) else datetime.fromisoformat(value)


def rec(
    when: When,
    status: Optional[str] = None,
    *,
    category: Optional[str] = None,
    value: Optional[float] = None,
    ended_at: Optional[When] = None,
    subject_id: Optional[str] = None,
    **tags: str,
) -> RawRecord:
    return RawRecord(
        id=f"r{next(_ids)}",
        timestamp=ts(when),
        status=status,
        category=category,
        value=value,
        ended_at=ts(ended_at) if ended_at is not None else None,
        subject_id=subject_id,
        tags=tags,
    )


def monthly(year: int, counts: dict, status: str = "COMPLETED", **kwargs) -> list:
    """`counts[month]` records per month, spread over the first days of the month."""
    out = []
    for month, n in counts.items():
        for i in range(n):
            out.append(rec(datetime(year, month, 1 + i % 28, 9 + i % 8), status, **kwargs))
    return out
