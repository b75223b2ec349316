"""
Cell-level value coercion for the load pass.

Each normalizer is a **pure function** — it takes a raw cell value (a string
from a text file, or a typed cell from a spreadsheet) and the column's
inferred type, and returns the Python object to bind.

Coercion chain (applied in this order by ``coerce_cell``):
  1. Strip null bytes (``\\x00``) from strings
  2. Empty string / whitespace-only / ``None`` → ``None``
  3. Type-specific conversion:
       - integer → ``int`` (thousands separators allowed, signed 64-bit)
       - decimal → ``Decimal`` (preserves precision)
       - date    → ``datetime.date`` or ``datetime.datetime``
       - boolean → ``bool``
       - string  → stripped ``str``

Fallback contract:
  - A value that cannot be converted to its column's type is returned as
    its raw string form.  A loosely-typed value is preferred over losing
    the row; the store surfaces any real incompatibility at insert time.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from junkdrawer.models.models import DataType
from junkdrawer.transformers.typing_infer import in_int64_range, is_integer, parse_boolean, parse_date

_NULL_BYTE_RE = re.compile(r"\x00")
_COMMA_RE = re.compile(r",")


# Public API


def coerce_cell(raw: Any, data_type: DataType) -> Any:
    """
    Coerce a single cell value for binding.

    Returns:
        - ``None``  for empty / null cells (all types)
        - ``int`` / ``Decimal`` / ``date`` / ``datetime`` / ``bool`` for
          typed columns when conversion succeeds
        - ``str``   for string columns and for failed conversions
    """
    if raw is None:
        return None

    if not isinstance(raw, str):
        return _coerce_typed(raw, data_type)

    # Step 1: strip null bytes
    value = _NULL_BYTE_RE.sub("", raw)

    # Step 2: empty / whitespace → None
    if not value.strip():
        return None

    # Step 3: type-specific conversion
    if data_type == "integer":
        return _to_int(value)
    if data_type == "decimal":
        return _to_decimal(value)
    if data_type == "date":
        return _to_date(value)
    if data_type == "boolean":
        return _to_bool(value)

    return value.strip()


def to_text(value: Any) -> str:
    """String form of a typed cell, used for string columns and fallbacks."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime) and value.time() == datetime.min.time():
        return value.date().isoformat()
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


# Private converters


def _coerce_typed(value: Any, data_type: DataType) -> Any:
    """Spreadsheet cells: keep the native value when it fits, else text."""
    if data_type == "string":
        return to_text(value)
    if data_type == "boolean" and isinstance(value, bool):
        return value
    if isinstance(value, bool):
        return to_text(value)
    if data_type == "integer" and isinstance(value, (int, float)):
        if float(value).is_integer() and in_int64_range(int(value)):
            return int(value)
        return to_text(value)
    if data_type == "decimal" and isinstance(value, (int, float)):
        return Decimal(str(value))
    if data_type == "date" and isinstance(value, (date, datetime)):
        return value
    return to_text(value)


def _to_int(value: str) -> int | str:
    stripped = value.strip()
    cleaned = _COMMA_RE.sub("", stripped)
    if is_integer(cleaned):
        return int(cleaned)
    return stripped


def _to_decimal(value: str) -> Decimal | str:
    """Convert a numeric string to ``Decimal``; the raw string on failure."""
    stripped = value.strip()
    cleaned = _COMMA_RE.sub("", stripped)
    try:
        result = Decimal(cleaned)
    except InvalidOperation:
        return stripped
    if not result.is_finite():
        return stripped
    return result


def _to_date(value: str) -> date | datetime | str:
    stripped = value.strip()
    parsed = parse_date(stripped)
    return stripped if parsed is None else parsed


def _to_bool(value: str) -> bool | str:
    stripped = value.strip()
    parsed = parse_boolean(stripped)
    return stripped if parsed is None else parsed
