"""Parsing of the human-readable counts YouTube shows in its UI.

Handles both abbreviated ("1.4K", "27.2M subscribers") and literal
("7,569,331,655 views") formats. Unparsable input yields ``None`` because an
absent count is an expected outcome for a display field.
"""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

DISPLAY_WORDS_PATTERN = re.compile(r"views?|subscribers?", re.IGNORECASE)
# G survives this filter but has no multiplier below, so "3G" parses as 3.
NON_NUMERIC_PATTERN = re.compile(r"[^\d.,KMGB]", re.IGNORECASE | re.ASCII)
ABBREVIATED_NUMBER_PATTERN = re.compile(
    r"^(?P<number>[\d.]+)(?P<unit>[KMB])?$", re.IGNORECASE | re.ASCII
)
DECIMAL_PREFIX_PATTERN = re.compile(r"^\d*\.?\d+|^\d+", re.ASCII)
INTEGER_PREFIX_PATTERN = re.compile(r"^\d+", re.ASCII)

UNIT_MULTIPLIERS: dict[str, int] = {
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}


def normalize_string(value: object) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip()
    return normalized or None


def parse_human_number(value: str | int | float | None) -> int | None:
    """
    Convert a display count such as ``"27.2M subscribers"`` into an integer.

    Returns ``None`` for missing, blank or non-numeric input. Numbers skip the
    text cleanup, since ``str(1e16)`` renders as ``"1e+16"``.
    """
    if isinstance(value, int | float) and not isinstance(value, bool):
        return coerce_count(value)

    text = normalize_string(value)
    if text is None:
        return None

    cleaned = DISPLAY_WORDS_PATTERN.sub("", text)
    cleaned = NON_NUMERIC_PATTERN.sub("", cleaned)
    cleaned = cleaned.replace(",", "")
    if not cleaned:
        return None

    matched = ABBREVIATED_NUMBER_PATTERN.match(cleaned)
    if matched is None:
        return _parse_integer_prefix(cleaned)

    number = _parse_decimal_prefix(matched.group("number"))
    if number is None:
        return None
    unit = matched.group("unit")
    # Enough precision for every input digit plus the multiplier.
    with localcontext() as context:
        context.prec = len(cleaned) + 12
        if unit is not None:
            number *= UNIT_MULTIPLIERS[unit.upper()]
        return int(number.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def coerce_count(raw_value: object) -> int | None:
    """Non-negative ints pass, finite non-negative floats round half up, the rest is None."""
    if isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, int):
        return raw_value if raw_value >= 0 else None
    if isinstance(raw_value, float):
        if not math.isfinite(raw_value) or raw_value < 0:
            return None
        return math.floor(raw_value + 0.5)
    return None


def _parse_decimal_prefix(raw_value: str) -> Decimal | None:
    matched = DECIMAL_PREFIX_PATTERN.match(raw_value)
    if matched is None:
        return None
    try:
        return Decimal(matched.group(0))
    except InvalidOperation:
        return None


def _parse_integer_prefix(raw_value: str) -> int | None:
    matched = INTEGER_PREFIX_PATTERN.match(raw_value)
    if matched is None:
        return None
    return int(matched.group(0))
