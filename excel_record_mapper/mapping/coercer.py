from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from ..models.mapping_rule import FieldType

"""Type coercion of resolved scalar values.

Values are encoded the way the destination REST API expects them: text and
numbers as strings, dates as YYYY-MM-DD. Anything that cannot be encoded
becomes None; coercion never raises, so one bad cell cannot stop a sheet.
"""

__all__ = [
    "coerce_value",
    "number_to_string",
    "parse_number",
    "parse_short_date",
]

# complete decimal literal, nothing trailing ("12.5abc" is rejected)
_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
# M/D/YY with one- or two-digit month and day
_SHORT_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{2})")
# two-digit years up to this value belong to the 2000s
TWO_DIGIT_YEAR_CUTOFF = 60


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def number_to_string(value: int | float) -> str:
    """Shortest text form of a number, written the way the destination expects.

    Integral floats lose their '.0'. Exponent notation is only used below
    1e-6 and from 1e21 on, with an unpadded exponent (1e-7, 1.5e+21).
    """
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        text = repr(value)
        mantissa, sep, exponent = text.partition("e")
        if not sep:
            return text
        power = int(exponent)
        if -7 < power < 21:
            return format(Decimal(text), "f")
        return f"{mantissa}e{'+' if power > 0 else '-'}{abs(power)}"
    return str(value)


def parse_number(text: str) -> float | None:
    candidate = text.strip()
    if not _NUMBER_RE.fullmatch(candidate):
        return None
    return float(candidate)


def parse_short_date(text: str) -> date | None:
    match = _SHORT_DATE_RE.fullmatch(text.strip())
    if match is None:
        return None
    month, day, short_year = (int(g) for g in match.groups())
    year = 2000 + short_year if short_year <= TWO_DIGIT_YEAR_CUTOFF else 1900 + short_year
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _coerce_text(value: Any) -> str | None:
    if _is_number(value):
        return number_to_string(value)
    if isinstance(value, str):
        return value
    return None


def _coerce_number(value: Any) -> str | None:
    if _is_number(value):
        return number_to_string(value)
    if isinstance(value, str):
        parsed = parse_number(value)
        return None if parsed is None else number_to_string(parsed)
    return None


def _coerce_date(value: Any) -> str | None:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        parsed = parse_short_date(value)
        return None if parsed is None else parsed.isoformat()
    return None


def coerce_value(value: Any, field_type: str | FieldType) -> Any:
    """Encode value for a destination field of the given type.

    TEXT / MULTI_TEXT: numbers -> text, text unchanged, other -> None
    NUMBER: numbers -> text, numeric text -> normalized text, other -> None
    DATE: date/datetime -> YYYY-MM-DD, "M/D/YY" text -> YYYY-MM-DD, other -> None
    any other type: value unchanged
    """
    kind = field_type if isinstance(field_type, FieldType) else FieldType.of(field_type)
    if kind in (FieldType.TEXT, FieldType.MULTI_TEXT):
        return _coerce_text(value)
    if kind is FieldType.NUMBER:
        return _coerce_number(value)
    if kind is FieldType.DATE:
        return _coerce_date(value)
    return value
