"""
Presentation-time number formatting.

Percentages are rounded once, here, when a value leaves the engine (JSON
serialization or narrative text). Nothing in the engine feeds a rounded value
back into arithmetic.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int = 1) -> float:
    """Round `value` to `places` decimals, halves away from zero (2.25 -> 2.3)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_number(value: float) -> str:
    """Thousands separators, no decimals (1234.6 -> '1,235')."""
    return f"{int(round_half_up(value, 0)):,}"


def format_pct(value: float) -> str:
    """One decimal, round-half-up, no percent sign (33.35 -> '33.4')."""
    return f"{round_half_up(value, 1):.1f}"


def format_decimal(value: float, places: int = 1) -> str:
    return f"{round_half_up(value, places):.{places}f}"
