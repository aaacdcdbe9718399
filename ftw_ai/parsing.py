"""Helpers for pulling structured values out of free-form model output."""
from __future__ import annotations

import json
import math
from typing import Any

_DECODER = json.JSONDecoder()


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first complete JSON object embedded in *text*, or None.

    Each ``{`` is tried as a decode start, so prose, code fences and braces
    inside string values do not confuse the extraction.
    """
    if not text:
        return None
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError:
            obj = None
        if isinstance(obj, dict):
            return obj
        start = text.find("{", start + 1)
    return None


def clamp_number(value: Any, lo: float, hi: float, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        n = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(n):
        return default
    return max(lo, min(hi, n))


def string_list(value: Any, default: list[str] | None = None) -> list[str]:
    if not isinstance(value, list):
        return list(default or [])
    return [str(v).strip() for v in value if str(v).strip()]
