"""Normalization helpers.

Centralizes defensive parsing of values read from untrusted map files.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    """Parse *value* as a finite float, ``None`` when impossible."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def positive_int(token: str) -> int | None:
    """Parse a header token as a strictly positive decimal integer."""
    text = token.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    parsed = int(text)
    return parsed if parsed > 0 else None


def parse_number_list(text: str) -> list[float] | None:
    """Parse ``"[a, b, c]"`` or ``"a, b, c"`` into floats.

    Returns ``None`` when the text has neither brackets nor commas, or when
    any component is not numeric.
    """
    value = text.strip()
    open_at = value.find("[")
    close_at = value.find("]", open_at + 1) if open_at >= 0 else -1
    if open_at >= 0 and close_at >= 0:
        inner = value[open_at + 1 : close_at]
    elif "," in value:
        inner = value
    else:
        return None

    numbers: list[float] = []
    for part in inner.split(","):
        parsed = safe_float(part)
        if parsed is None:
            return None
        numbers.append(parsed)
    return numbers
