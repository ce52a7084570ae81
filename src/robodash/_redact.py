"""Helpers for safe debug logging.

Bridge traffic can carry very large arrays (occupancy grids, laser scans)
and, on some deployments, authentication tokens. This module shrinks and
redacts envelopes before they are emitted as DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "secret",
        "token",
        "authorization",
        "cookie",
    }
)


def summarize_for_log(
    value: Any,
    *,
    max_string: int = 512,
    max_items: int = 32,
    _depth: int = 0,
) -> Any:
    """Return a shortened, redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        summarized: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            if key.lower() in _SENSITIVE_VALUE_KEYS:
                summarized[key] = "<redacted>"
            else:
                summarized[key] = summarize_for_log(
                    v, max_string=max_string, max_items=max_items, _depth=_depth + 1
                )
        return summarized

    if isinstance(value, Sequence):
        if len(value) > max_items:
            return f"<sequence:{len(value)} items>"
        return [summarize_for_log(v, max_string=max_string, max_items=max_items, _depth=_depth + 1) for v in value]

    return repr(value)
