# src/hms_analytics/engine/export.py
"""
Read-only views of a finished Report for downstream collaborators:

- `to_json` for API responses (rounding happens in the schema serializers),
- `chart_series` and `chart_colors` for chart renderers,
- `render_markdown` for the plain-text export used by the CLI.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from hms_analytics.utils.numbers import format_decimal, format_number, format_pct

from .narrative import environment
from .schemas import Breakdown, Figure, Report

REPORT_TEMPLATE = "report.md.j2"

_DIMENSION_HEADERS = {
    "month": "Month",
    "weekday": "Day",
    "hour": "Hour",
    "day": "Date",
}


def format_figure(fig: Figure) -> str:
    if fig.unit == "count":
        return format_number(fig.value)
    if fig.unit == "pct":
        return f"{format_pct(fig.value)}%"
    if fig.unit == "hours":
        return f"{format_decimal(fig.value, 2)} h"
    if fig.unit == "days":
        return f"{format_decimal(fig.value, 2)} days"
    return format_decimal(fig.value, 2)


def _value(v: Optional[float]) -> str:
    return "-" if v is None else format_decimal(v, 2)


def _breakdown_view(bd: Breakdown) -> Dict[str, Any]:
    has_values = any(b.value is not None for b in bd.buckets)
    return {
        "title": bd.title,
        "table_number": bd.table_number,
        "description": bd.description,
        "header": _DIMENSION_HEADERS.get(bd.dimension, bd.dimension.replace("_", " ").title()),
        "has_values": has_values,
        "rows": [{"label": b.label, "count": b.count, "value": _value(b.value)} for b in bd.buckets],
        "total": bd.metrics.total,
    }


# ------------------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------------------
def to_json(report: Report, *, indent: Optional[int] = 2) -> str:
    return report.model_dump_json(indent=indent)


def chart_series(report: Report, *, use_value: bool = False) -> Dict[str, List[Tuple[str, float]]]:
    """Breakdown name -> ordered (label, value) pairs, in report order."""
    return {bd.name: bd.chart_points(use_value=use_value) for bd in report.breakdowns}


def chart_colors(report: Report) -> Dict[str, Dict[str, str]]:
    """Breakdown name -> label -> color, for breakdowns over enumerated categories."""
    out = {}
    for bd in report.breakdowns:
        colors = bd.chart_colors()
        if colors:
            out[bd.name] = colors
    return out


def render_markdown(report: Report) -> str:
    """Render the whole report (narrative, figures, one table per breakdown) as Markdown."""
    tpl = environment().get_template(REPORT_TEMPLATE)
    return tpl.render(
        report=report,
        figures=[(f.label, format_figure(f)) for f in report.figures],
        breakdowns=[_breakdown_view(bd) for bd in report.breakdowns],
    )
