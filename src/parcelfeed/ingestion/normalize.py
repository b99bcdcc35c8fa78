"""Normalization helpers.

Centralizes tolerant parsing of device text. Nothing here raises on bad
input; unusable values come back as ``None``.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    """Parse *value* as a finite float, or return ``None``."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def fee_type_code(value: Any) -> str | None:
    """Normalize a category code to a single uppercase letter."""
    text = safe_str(value)
    if text is None or len(text) != 1 or not (text.isascii() and text.isalpha()):
        return None
    return text.upper()
