"""Numeric parsing and display helpers for quote values."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any

from .models import ChangeDirection, ChangeInfo

# wide enough to quantize any finite float
_DECIMAL_CONTEXT = Context(prec=400)


def is_finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def parse_number(value: Any) -> float | None:
    """Parse provider numbers such as 1469.1, "1,469.10", "+0.52%" or "−3.2"."""
    if is_finite(value):
        return float(value)
    if not isinstance(value, str):
        return None
    text = value.strip().replace(',', '').replace('%', '').replace('−', '-')
    text = text.strip('()')
    if not text:
        return None
    try:
        num = float(text)
    except ValueError:
        return None
    return num if math.isfinite(num) else None


def format_numeric_value(value: float) -> str:
    """Grouped display: 2 decimals from 1000 up, 4 from 1, else 8; trailing zeros dropped."""
    a = abs(value)
    digits = 2 if a >= 1000 else 4 if a >= 1 else 8
    # half-way cases round away from zero, on the shortest decimal repr
    rounded = Decimal(repr(float(value))).quantize(
        Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP, context=_DECIMAL_CONTEXT
    )
    text = f"{rounded:,f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return '0' if text == '-0' else text


def format_percent(value: float) -> str:
    """Absolute value with two decimals; half-way cases on the exact binary value round up."""
    rounded = Decimal(abs(value)).quantize(
        Decimal('0.01'), rounding=ROUND_HALF_UP, context=_DECIMAL_CONTEXT
    )
    return f"{rounded}%"


def direction_of(delta: float) -> ChangeDirection:
    if delta > 0:
        return ChangeDirection.UP
    if delta < 0:
        return ChangeDirection.DOWN
    return ChangeDirection.UNCHANGED


def to_change_info(change: float | None, change_percent: float | None) -> ChangeInfo | None:
    if not is_finite(change) or not is_finite(change_percent):
        return None
    return ChangeInfo(
        direction=direction_of(change),
        value=format_numeric_value(abs(change)),
        percent=format_percent(change_percent),
    )
