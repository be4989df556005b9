"""Tolerant field access for raw Evolution API payloads.

Gateway records come from several client versions with partial fields, so
these helpers never raise: a missing or ill-typed field reads as None.
"""

import math
from typing import Any


def as_mapping(value: Any) -> dict[str, Any]:
    """Return value if it is a dict, else an empty dict."""
    return value if isinstance(value, dict) else {}


def coerce_number(value: Any) -> float | None:
    """Read a numeric field that may arrive as int, float or numeric string.

    Returns None for absent, boolean, non-numeric and non-finite values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def number_or_zero(value: Any) -> float:
    """coerce_number with 0 for anything unusable; integral values come back as int."""
    number = coerce_number(value)
    if not number:
        return 0
    return int(number) if number.is_integer() else number


def is_present(value: Any) -> bool:
    """True for any content block, including an empty one ({} marks the type)."""
    return isinstance(value, dict) or bool(value)
