"""Validation of positional keys taken from untrusted provider payloads."""

import math
from typing import Any, Optional


def normalize_output_index(value: Any) -> Optional[int]:
    """
    Convert a raw ``output_index`` into a validated non-negative integer.

    Accepts ints, integral floats and numeric strings. Booleans, non-finite
    numbers, negatives and anything unparseable yield None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return int(math.floor(number))


def first_present(payload: Any, *keys: str) -> Any:
    """Return the first key of ``payload`` whose value is not None."""
    if not isinstance(payload, dict):
        return None
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None
