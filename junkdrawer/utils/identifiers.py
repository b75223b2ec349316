"""
Identifier helpers for the importer.

Thin wrappers around ``sanitizer.sanitize_identifier`` plus the column-name
rules the inspector applies to header rows.

Usage:
    from junkdrawer.utils.identifiers import to_table_name, default_column_name

    table = to_table_name("/data/My Report (Q3).csv")   # → "My_Report_Q3"
    default_column_name(27)                              # → "AB"
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, Sequence

from junkdrawer.utils.sanitizer import sanitize_identifier

_QUOTE_CHARS = "\"'`"

FALLBACK_TABLE_PREFIX = "junk_"


def to_table_name(source: Path | str, max_len: int = 128) -> str:
    """
    Derive a table/view name from a file's base name (extension dropped).

    A stem with no usable characters (``データ.csv``, ``%%%.csv``) becomes
    ``junk_`` plus the first 8 hex digits of the stem's SHA-256, so the
    same file always maps to the same table.
    """
    stem = Path(source).stem
    try:
        return sanitize_identifier(stem, max_len=max_len)
    except ValueError:
        digest = hashlib.sha256(stem.encode("utf-8")).hexdigest()[:8]
        return f"{FALLBACK_TABLE_PREFIX}{digest}"


def default_column_name(index: int) -> str:
    """
    Spreadsheet-style positional name for a 0-based column index.

    0 → ``A``, 25 → ``Z``, 26 → ``AA``, 27 → ``AB`` …
    """
    if index < 0:
        raise ValueError(f"Column index must be >= 0, got {index}")
    name = ""
    n = index + 1
    while n:
        n, rem = divmod(n - 1, 26)
        name = chr(ord("A") + rem) + name
    return name


def clean_header_name(raw: Any) -> str:
    """Strip whitespace and surrounding quote characters from a header cell."""
    if raw is None:
        return ""
    text = str(raw).strip()
    while len(text) >= 1 and text[0] in _QUOTE_CHARS:
        text = text[1:]
    while len(text) >= 1 and text[-1] in _QUOTE_CHARS:
        text = text[:-1]
    return text.strip()


def column_names(header: Sequence[Any] | None, width: int) -> list[str]:
    """
    Resolve the final column names for a record of ``width`` fields.

    Blank header cells (and positions past the end of the header) get their
    positional default name even when other cells are named.  Duplicate
    names get ``_2``, ``_3`` … suffixes so every name is unique.
    """
    header = list(header or [])
    names: list[str] = []
    seen: set[str] = set()
    for i in range(width):
        name = clean_header_name(header[i]) if i < len(header) else ""
        if not name:
            name = default_column_name(i)
        candidate = name
        suffix = 2
        while candidate.lower() in seen:
            candidate = f"{name}_{suffix}"
            suffix += 1
        seen.add(candidate.lower())
        names.append(candidate)
    return names
