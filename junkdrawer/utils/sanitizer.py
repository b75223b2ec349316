"""
SQL identifier sanitizer.

This module turns file names into table/view names.  Column names keep the
spelling found in the source and are quoted by the store instead.

Rules applied (in order):
1. Strip leading/trailing whitespace.
2. Replace any character that is not A-Z, a-z, 0-9, or _ with an underscore.
3. Collapse consecutive underscores to a single underscore.
4. Strip leading/trailing underscores produced by the above steps.
5. If the result starts with a digit, prefix with an underscore.
6. If the cleaned result is a reserved word (any case), append ``_tbl``.
7. Truncate to ``max_len`` characters.
8. If the result is empty after all steps, raise ``ValueError``.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Reserved words common to the supported backends (uppercase).
# Not exhaustive; covers the names most likely to come from file names.
# ---------------------------------------------------------------------------
_RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "ADD", "ALL", "ALTER", "AND", "ANY", "AS", "ASC", "BETWEEN", "BY",
        "CASE", "CHAR", "CHECK", "COLUMN", "COMMENT", "CONSTRAINT", "CREATE",
        "CROSS", "CURRENT", "DATABASE", "DATE", "DECIMAL", "DEFAULT",
        "DELETE", "DESC", "DISTINCT", "DROP", "ELSE", "END", "EXISTS",
        "FILE", "FLOAT", "FOR", "FOREIGN", "FROM", "FULL", "GRANT", "GROUP",
        "HAVING", "IN", "INDEX", "INNER", "INSERT", "INTEGER", "INTERSECT",
        "INTO", "IS", "JOIN", "KEY", "LEFT", "LIKE", "LIMIT", "LONG",
        "MINUS", "MODIFY", "NOT", "NULL", "NUMBER", "OF", "ON", "OR",
        "ORDER", "OUTER", "PRIMARY", "PROCEDURE", "PUBLIC", "REFERENCES",
        "RIGHT", "ROW", "ROWS", "SCHEMA", "SELECT", "SESSION", "SET",
        "SIZE", "TABLE", "THEN", "TO", "TRIGGER", "UNION", "UNIQUE",
        "UPDATE", "USER", "VALUES", "VARCHAR", "VARCHAR2", "VIEW", "WHEN",
        "WHERE", "WITH",
    }
)

_INVALID_CHARS_RE = re.compile(r"[^A-Za-z0-9_]")
_LEADING_DIGIT_RE = re.compile(r"^[0-9]")
_MULTI_UNDERSCORE_RE = re.compile(r"_{2,}")

RESERVED_SUFFIX = "_tbl"


def sanitize_identifier(raw: str, max_len: int = 128) -> str:
    """
    Convert an arbitrary string into a safe, case-preserving SQL identifier.

    Args:
        raw: The raw string (e.g. a file stem like ``"Q3 Sales (final)"``).
        max_len: Maximum identifier length for the target backend.

    Returns:
        A sanitized identifier string.

    Raises:
        ValueError: If ``raw`` is empty or reduces to an empty string after sanitization.
        ValueError: If ``max_len`` is less than 1.
    """
    if max_len < 1:
        raise ValueError(f"max_len must be >= 1, got {max_len}")

    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"Cannot sanitize empty or non-string identifier: {raw!r}")

    result = _INVALID_CHARS_RE.sub("_", raw.strip())
    result = _MULTI_UNDERSCORE_RE.sub("_", result)
    result = result.strip("_")

    # Prefix a leading digit after stripping
    if _LEADING_DIGIT_RE.match(result):
        result = "_" + result

    if not result:
        raise ValueError(
            f"Identifier {raw!r} reduced to empty string after sanitization."
        )

    if is_reserved(result):
        result = result + RESERVED_SUFFIX

    # Truncate after the reserved-word suffix; re-append it if it was cut.
    if len(result) > max_len:
        if result.endswith(RESERVED_SUFFIX) and max_len > len(RESERVED_SUFFIX):
            base = result[: max_len - len(RESERVED_SUFFIX)].rstrip("_")
            result = base + RESERVED_SUFFIX
        else:
            result = result[:max_len]

    return result


def is_reserved(name: str) -> bool:
    """Return True if ``name`` (any case) is a reserved word."""
    return name.upper() in _RESERVED_WORDS
