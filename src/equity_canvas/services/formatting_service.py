"""Display formatting helpers shared by the table and metric views."""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any


def safe_format(value: Any, decimals: int = 2, fallback: str = "0.00") -> str:
    """Render a nullable number with exactly `decimals` fractional digits.

    None, NaN, infinities and anything that is not a number degrade to
    `fallback`. Rounding is half-away-from-zero on the shortest decimal
    representation of the value, so `safe_format(2.675)` is "2.68" and
    `safe_format(-0.125)` is "-0.13".
    """
    if value is None or isinstance(value, bool):
        return fallback
    if not isinstance(value, (int, float, Decimal)):
        return fallback
    if isinstance(value, float) and not math.isfinite(value):
        return fallback
    if isinstance(value, Decimal) and not value.is_finite():
        return fallback

    quantum = Decimal(1).scaleb(-decimals) if decimals > 0 else Decimal(1)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{rounded:.{max(decimals, 0)}f}"


def format_percent(value: Any, decimals: int = 2) -> str:
    return f"{safe_format(value, decimals)}%"


def format_price(value: Any, decimals: int = 2) -> str:
    """Prices without a value are shown as "N/A" rather than zero."""
    if value is None:
        return "N/A"
    return f"${safe_format(value, decimals)}"
