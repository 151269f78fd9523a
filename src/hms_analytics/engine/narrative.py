# src/hms_analytics/engine/narrative.py
"""
Narrative generation from computed metrics.

Each report kind owns one Jinja2 template under `templates/narratives/` that
defines one macro per narrative section (`introduction`, `trends`, ...). A
macro receives a single mapping `r` with the numbers and labels already
computed by the report builder; it never computes anything itself.

When the context says there is no data (`has_data` false), every section is
rendered from the shared `no_data` macro instead, so an empty period never
produces sentences filled with zeros.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from hms_analytics.utils.numbers import format_decimal, format_number, format_pct

from .registry import SECTION_NAMES
from .schemas import NarrativeSection

# ------------------------------------------------------------------------------
# Constants & logger
# ------------------------------------------------------------------------------
TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"
COMMON_TEMPLATE = "narratives/_common.j2"

log = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Environment
# ------------------------------------------------------------------------------
@lru_cache(maxsize=1)
def environment() -> Environment:
    """Shared read-only Jinja2 environment for narrative and export templates."""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=False,
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=False,
    )
    env.filters["number"] = format_number
    env.filters["pct"] = format_pct
    env.filters["decimal"] = format_decimal
    return env


def _tidy(text: str) -> str:
    """Collapse template whitespace: a section is a single paragraph."""
    return " ".join(text.split())


# ------------------------------------------------------------------------------
# Public API
# ------------------------------------------------------------------------------
def generate_narrative(
    template: str,
    sections: Sequence[str],
    context: Mapping[str, Any],
) -> Tuple[NarrativeSection, ...]:
    """
    Render the requested narrative sections of a report kind.

    Parameters
    ----------
    template : str
        Report kind; resolves to `templates/narratives/<template>.j2`.
    sections : Sequence[str]
        Section names in output order. Each must be a known section name and
        a macro defined by the template.
    context : Mapping[str, Any]
        Values exposed to the macros as `r`. Must contain `has_data`,
        `subject` and `period_label`.

    Returns
    -------
    Tuple[NarrativeSection, ...]
        One section per requested name, in the requested order.
    """
    env = environment()
    module = env.get_template(f"narratives/{template}.j2").module
    common = env.get_template(COMMON_TEMPLATE).module
    has_data = bool(context.get("has_data", True))

    out = []
    for name in sections:
        if name not in SECTION_NAMES:
            raise ValueError(f"Unknown narrative section '{name}'")
        if has_data:
            macro = getattr(module, name)
            text = macro(context)
        else:
            text = common.no_data(name, context)
        out.append(NarrativeSection(name=name, text=_tidy(str(text))))

    log.debug("narrative_rendered template=%s sections=%d has_data=%s", template, len(out), has_data)
    return tuple(out)
