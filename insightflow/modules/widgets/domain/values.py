from __future__ import annotations

import math
from decimal import Decimal
from typing import Any

SCALAR_TYPES = (str, int, float, bool, Decimal)


def is_scalar(value: Any) -> bool:
    return isinstance(value, SCALAR_TYPES)


def to_number(value: Any) -> float:
    """Coerce a cell to a number; anything non-numeric counts as 0."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def round2(value: float) -> int | float:
    """Half-up rounding to 2 decimals; integral results come back as int."""
    scaled = value * 100
    if not math.isfinite(scaled):
        return value
    rounded = math.floor(scaled + 0.5) / 100
    if rounded == int(rounded):
        return int(rounded)
    return rounded


def to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
