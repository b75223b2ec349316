"""
CSV dialects for delimited-text sources.

Registers one dialect per candidate delimiter (``junk_comma``, ``junk_pipe``,
``junk_tab``) that all follow standard CSV quoting:
- A field wrapped in double quotes may contain the delimiter and newlines.
- Embedded quotes are escaped by doubling them.
- Unquoted content is taken literally.

Usage:
    import csv
    from junkdrawer.configs.csv_dialect import register_dialects, dialect_name

    register_dialects()
    reader = csv.reader(f, dialect=dialect_name("|"))

BOM Handling:
    Open files with ``encoding='utf-8-sig'`` to strip the UTF-8 BOM.  The
    dialect itself does not handle this — it is an encoding concern.
"""

from __future__ import annotations

import csv

from junkdrawer.configs.config import DELIMITER_CANDIDATES

_NAMES: dict[str, str] = {",": "junk_comma", "|": "junk_pipe", "\t": "junk_tab"}


class JunkDialect(csv.excel):
    """
    Lenient CSV dialect: ``strict`` is off so a stray quote inside an
    unquoted field is kept literally instead of aborting the file.
    """

    strict: bool = False
    skipinitialspace: bool = False


def dialect_name(delimiter: str) -> str:
    """Return the registered dialect name for ``delimiter``."""
    try:
        return _NAMES[delimiter]
    except KeyError:
        raise KeyError(
            f"No dialect for delimiter {delimiter!r}. "
            f"Valid delimiters: {list(DELIMITER_CANDIDATES)}"
        ) from None


def register_dialects() -> None:
    """
    Register a dialect for every candidate delimiter.

    Safe to call multiple times — already registered names are skipped.
    """
    existing = csv.list_dialects()
    for delimiter in DELIMITER_CANDIDATES:
        name = _NAMES[delimiter]
        if name not in existing:
            csv.register_dialect(name, JunkDialect, delimiter=delimiter)
