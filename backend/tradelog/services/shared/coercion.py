"""Tolerant numeric coercion for broker export values.

Broker exports mix thousands separators, non-breaking spaces and trailing
units into numeric cells. Anything that cannot be read as a number becomes
0.0; these helpers never raise.
"""

import math
import re
from typing import Any

# Leading numeric prefix, read the way a lenient float parser would
# ("12.5 USD" -> 12.5, "-.5" -> -0.5)
_NUMERIC_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_SPACES = (" ", "\u00a0", "\u202f", "\t")

# Exactly three digits after a lone comma: a thousands group ("1,000")
_THOUSANDS_GROUP = re.compile(r"\d{3}(?!\d)")


def _clean_number_text(text: str) -> str:
    """Strip grouping so the decimal mark, if any, is a single '.'."""
    for space in _SPACES:
        text = text.replace(space, "")

    last_comma = text.rfind(",")
    last_dot = text.rfind(".")

    if last_comma != -1 and last_dot != -1:
        # Whichever separator comes last is the decimal mark
        if last_comma > last_dot:
            # 1.234,56
            text = text.replace(".", "").replace(",", ".")
        else:
            # 1,234.56
            text = text.replace(",", "")
    elif text.count(",") > 1:
        # 1,234,567
        text = text.replace(",", "")
    elif last_comma != -1:
        head, tail = text.split(",")
        digits = head.lstrip("+-")
        if digits[:1] not in ("", "0") and _THOUSANDS_GROUP.match(tail):
            # 1,000
            text = head + tail
        else:
            # 12,5 or 0,125
            text = f"{head}.{tail}"
    elif text.count(".") > 1:
        # 1.234.567
        text = text.replace(".", "")
    return text


def parse_float(value: Any) -> float | None:
    """Parse a raw cell value as float, returning None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        result = float(value)
        return result if math.isfinite(result) else None

    match = _NUMERIC_PREFIX.match(_clean_number_text(str(value).strip()))
    if not match:
        return None

    try:
        result = float(match.group(0))
    except ValueError:
        return None
    return result if math.isfinite(result) else None


def to_float(value: Any) -> float:
    """Coerce a raw cell value to float, returning 0.0 when it is not a number.

    Args:
        value: Raw value (string, number, or None)

    Returns:
        Parsed float, or 0.0 for missing, empty, non-numeric or non-finite input
    """
    result = parse_float(value)
    return 0.0 if result is None else result
