"""
Type inference for inspected columns.

Inference rules — a column takes the first type, in this order, that every
non-empty sample value parses as:

  1. boolean  — ``true`` / ``false`` (case-insensitive)
  2. integer  — r'^[-+]?\\d+$' within the signed 64-bit range
  3. decimal  — r'^[-+]?\\d{1,3}(,\\d{3})*(\\.\\d+)?$' or r'^[-+]?\\d*\\.\\d+$'
                (integers are decimals too, so a mixed int/decimal column
                resolves to decimal)
                Whole numbers beyond 64 bits (long account numbers, keys)
                match neither integer nor decimal and stay strings.
  4. date     — any format in ``DATE_FORMATS`` / ``DATETIME_FORMATS``
  5. string   — fallback; also used when no allowed type fits every value
                or when the column is entirely empty

The accepted date formats are listed explicitly and parsed with
``datetime.strptime`` — no locale-dependent parsing.  Slashed dates are
read month-first (``9/4/98`` is September 4, 1998).

Spreadsheet cells arrive already typed (``bool``, ``int``, ``float``,
``date``/``datetime``); those map directly and only text cells go through
the string rules.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Iterable

from junkdrawer.configs.config import SUPPORTED_TYPES
from junkdrawer.models.models import DataType


# Compiled patterns

_INT_RE = re.compile(r"^[-+]?\d+$")
_DECIMAL_COMMA_RE = re.compile(r"^[-+]?\d{1,3}(,\d{3})*(\.\d+)?$")
_DECIMAL_PLAIN_RE = re.compile(r"^[-+]?\d*\.\d+$")
_TZ_SUFFIX_RE = re.compile(r"(Z|[+-]\d{2}:?\d{2})$")

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_BOOLEAN_VALUES: dict[str, bool] = {"true": True, "false": False}

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%d-%b-%Y",
    "%B %d, %Y",
    "%B, %d %Y",
    "%b %d, %Y",
    "%B %d %Y",
)

DATETIME_FORMATS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
)

# Order in which candidate types are tried for a column.
_TYPE_ORDER: tuple[DataType, ...] = ("boolean", "integer", "decimal", "date")


# Value-level parsing


def parse_boolean(value: str) -> bool | None:
    return _BOOLEAN_VALUES.get(value.strip().lower())


def parse_date(value: str) -> date | datetime | None:
    """
    Parse ``value`` against the accepted formats.

    Returns a ``date`` for date-only formats, a naive ``datetime`` for
    formats with a time component (timezone suffix dropped), or ``None``.
    """
    stripped = value.strip()
    if not stripped or not any(ch.isdigit() for ch in stripped):
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(stripped, fmt).date()
        except ValueError:
            continue

    cleaned = _TZ_SUFFIX_RE.sub("", stripped)
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt)
        except ValueError:
            continue

    return None


def in_int64_range(number: int) -> bool:
    """True when ``number`` fits a signed 64-bit column (BIGINT / SQLite INTEGER)."""
    return INT64_MIN <= number <= INT64_MAX


def _int_text_fits(text: str) -> bool:
    # More than 19 significant digits never fits; skip int() on huge strings.
    if len(text.lstrip("+-").lstrip("0")) > 19:
        return False
    return in_int64_range(int(text))


def is_integer(value: str) -> bool:
    stripped = value.strip()
    return bool(_INT_RE.match(stripped)) and _int_text_fits(stripped)


def is_decimal(value: str) -> bool:
    stripped = value.strip()
    if _INT_RE.match(stripped):
        return _int_text_fits(stripped)
    return bool(_DECIMAL_COMMA_RE.match(stripped) or _DECIMAL_PLAIN_RE.match(stripped))


def cell_matches(value: Any, data_type: DataType) -> bool:
    """
    Return True if a single non-empty cell value fits ``data_type``.

    ``value`` is a raw string from a text file or a typed spreadsheet cell.
    """
    if data_type == "string":
        return True

    if not isinstance(value, str):
        return _typed_cell_matches(value, data_type)

    if data_type == "boolean":
        return parse_boolean(value) is not None
    if data_type == "integer":
        return is_integer(value)
    if data_type == "decimal":
        return is_decimal(value)
    if data_type == "date":
        return parse_date(value) is not None
    return False


def _typed_cell_matches(value: Any, data_type: DataType) -> bool:
    # bool is a subclass of int; check it first.
    if isinstance(value, bool):
        return data_type == "boolean"
    if isinstance(value, (date, datetime)):
        return data_type == "date"
    if isinstance(value, int):
        return data_type in ("integer", "decimal") and in_int64_range(value)
    if isinstance(value, float):
        if data_type == "integer":
            return value.is_integer() and in_int64_range(int(value))
        return data_type == "decimal"
    return False


def is_empty(value: Any) -> bool:
    """True for ``None`` and blank strings (treated as NULL)."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


# Column-level inference


def infer_column_type(
    values: Iterable[Any],
    allowed: Iterable[str] = SUPPORTED_TYPES,
) -> DataType:
    """
    Determine the type of a column from its sample values.

    Args:
        values:  Raw cell values (strings or typed spreadsheet cells).
        allowed: Candidate types; ``string`` is always the fallback.

    Returns:
        The first type in ``boolean, integer, decimal, date`` order that is
        allowed and fits every non-empty value, else ``string``.
    """
    non_empty = [v for v in values if not is_empty(v)]
    if not non_empty:
        return "string"

    allowed_set = set(allowed)
    for data_type in _TYPE_ORDER:
        if data_type not in allowed_set:
            continue
        if all(cell_matches(v, data_type) for v in non_empty):
            return data_type

    return "string"


def parses_as_data(value: Any, data_type: DataType | None) -> bool:
    """
    Header test: does a first-record cell look like data for its column?

    ``data_type=None`` means the column type is unknown (single-record
    sample) — the cell counts as data if it fits any non-string type.
    """
    if is_empty(value):
        return False
    if data_type is None:
        return any(cell_matches(value, t) for t in _TYPE_ORDER)
    if data_type == "string":
        return False
    return cell_matches(value, data_type)


def cell_length(value: Any) -> int:
    """Character length of a cell as it would be written as text."""
    if value is None:
        return 0
    if isinstance(value, str):
        return len(value)
    return len(str(value))
