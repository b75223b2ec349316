"""
Schema inspection (The Sniff).

Reads a bounded sample of the source — no target connection is involved —
and infers:
1. The layout: a delimiter (comma, pipe, tab), a fixed-width column split,
   or the first sheet of a spreadsheet.
2. Whether the first record is a header, and the column names.
3. Each column's type and maximum observed character length.

Returns an immutable ``InferredSchema``.

Delimiter detection
-------------------
Every candidate parses the sample with CSV quoting.  A candidate is
consistent when every sample record splits into the same number of
fields and that number is greater than one.  The consistent candidate with
the most fields wins; ties go to the candidate order.

Fixed-width fallback
--------------------
When no delimiter is consistent, the start positions of non-blank runs
that follow whitespace are collected per line.  Positions shared by more
than half of the sample lines become column boundaries, so a row whose
values touch (``Microsofthttp://www.microsoft.com4/4/1975``) does not break
the layout.  With no shared boundary the whole line is a single column.

Header detection
----------------
Columns are typed from the records after the first.  The first record is a
header when it has a non-blank cell, none of its cells parse as their
column's non-string type, and either every cell is non-blank and distinct
or at least one cell sits over a typed column (``Created`` above dates).
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Any, Sequence

from junkdrawer.configs.config import DELIMITER_CANDIDATES, SPREADSHEET_EXTENSIONS, ImportConfig
from junkdrawer.configs.exceptions import EmptySource, SourceReadError, SourceUnreadable
from junkdrawer.discovery.excel_reader import spreadsheet_reader
from junkdrawer.discovery.text_reader import DelimitedReader, LineReader, split_fixed
from junkdrawer.models.models import ColumnDescriptor, DataType, InferredSchema
from junkdrawer.transformers.typing_infer import (
    cell_length,
    infer_column_type,
    is_empty,
    parses_as_data,
)
from junkdrawer.utils.fingerprint import valid_type_entries
from junkdrawer.utils.identifiers import clean_header_name, column_names

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def inspect(
    path: Path | str,
    config: ImportConfig,
    types: Sequence[str] = (),
) -> InferredSchema:
    """
    Infer the schema of the file at ``path``.

    Args:
        path:   Source file (text or spreadsheet, chosen by extension).
        config: Supplies ``sample_size`` and the default candidate types.
        types:  Type override entries (bare ``"date"`` or ``"Created:date"``).

    Returns:
        ``InferredSchema`` for the file.

    Raises:
        SourceUnreadable: File missing, unreadable, undecodable or corrupt.
        EmptySource:      No data rows in the sample.
    """
    path = Path(path)
    if not path.is_file():
        raise SourceUnreadable(f"Source file not found: {path}", source_path=str(path))

    allowed, pinned = split_type_overrides(types, config.types)

    try:
        if path.suffix.lower() in SPREADSHEET_EXTENSIONS:
            schema = _inspect_spreadsheet(path, config.sample_size, allowed)
        else:
            schema = _inspect_text(path, config.sample_size, allowed)
    except SourceReadError as e:
        raise SourceUnreadable(str(e), source_path=str(path)) from e

    schema = apply_pinned_types(schema, pinned)

    logger.info(
        "Inspected %s: provider=%s delimiter=%r header=%s columns=%s",
        path.name,
        schema.provider,
        schema.delimiter,
        schema.has_header,
        ", ".join(f"{c.name}:{c.data_type}" for c in schema.columns),
    )
    return schema


def split_type_overrides(
    types: Sequence[str],
    default_types: Sequence[str],
) -> tuple[tuple[str, ...], dict[str, DataType]]:
    """
    Split override entries into the allowed candidate set and pinned columns.

    Bare types replace ``default_types`` as the candidates the inspector
    tries; ``column:type`` entries pin a column (matched case-insensitively).
    """
    bare: list[str] = []
    pinned: dict[str, DataType] = {}
    for entry in valid_type_entries(list(types)):
        name, sep, data_type = entry.rpartition(":")
        if sep:
            pinned[name.lower()] = data_type  # type: ignore[assignment]
        else:
            bare.append(data_type)
    allowed = tuple(bare) if bare else tuple(default_types)
    return allowed, pinned


def apply_pinned_types(schema: InferredSchema, pinned: dict[str, DataType]) -> InferredSchema:
    """Return ``schema`` with pinned column types replacing inferred ones."""
    if not pinned:
        return schema

    columns = []
    matched = set()
    for col in schema.columns:
        forced = pinned.get(col.name.lower())
        if forced is None:
            columns.append(col)
            continue
        matched.add(col.name.lower())
        logger.debug("Overriding type of %s: %s -> %s", col.name, col.data_type, forced)
        columns.append(ColumnDescriptor(
            name=col.name,
            data_type=forced,
            max_length=col.max_length,
            start=col.start,
            width=col.width,
        ))

    for name in sorted(set(pinned) - matched):
        logger.warning("Type override for unknown column %r ignored.", name)

    return InferredSchema(
        provider=schema.provider,
        columns=tuple(columns),
        delimiter=schema.delimiter,
        has_header=schema.has_header,
        sheet=schema.sheet,
        source=schema.source,
    )


# ---------------------------------------------------------------------------
# Text files
# ---------------------------------------------------------------------------

def _inspect_text(path: Path, sample_size: int, allowed: Sequence[str]) -> InferredSchema:
    delimiter, records = detect_delimiter(path, sample_size)
    if delimiter is not None:
        return build_schema(records, allowed, provider="delimited", source=path, delimiter=delimiter)

    with LineReader(path) as source:
        lines = [record[0] for record in source.sample(sample_size)]
    if not lines:
        raise EmptySource(f"No records found in {path}", source_path=str(path))

    slices = detect_fixed_width(lines)
    logger.debug("No consistent delimiter in %s; fixed-width slices %s", path.name, slices)
    records = [split_fixed(line, slices) for line in lines]
    return build_schema(records, allowed, provider="fixed", source=path, slices=slices)


def detect_delimiter(path: Path, sample_size: int) -> tuple[str | None, list[list[str]]]:
    """
    Pick the delimiter that splits every sample record into the same
    number (> 1) of fields.

    Returns:
        ``(delimiter, sample_records)``, or ``(None, [])`` when no
        candidate is consistent.
    """
    best: tuple[str, int, list[list[str]]] | None = None
    for candidate in DELIMITER_CANDIDATES:
        with DelimitedReader(path, candidate) as source:
            records = source.sample(sample_size)
        counts = {len(r) for r in records}
        if len(counts) != 1:
            logger.debug("Delimiter %r inconsistent: field counts %s", candidate, sorted(counts))
            continue
        field_count = counts.pop()
        if field_count < 2:
            continue
        if best is None or field_count > best[1]:
            best = (candidate, field_count, records)

    if best is None:
        return None, []
    return best[0], best[2]


def detect_fixed_width(lines: Sequence[str]) -> list[tuple[int, int | None]]:
    """
    Infer ``(start, width)`` slices from whitespace gaps that line up
    across the sample lines.  The last column runs to end of line.
    """
    threshold = len(lines) / 2
    counts: Counter[int] = Counter()
    for line in lines:
        counts.update(_run_starts(line))

    boundaries = sorted(p for p, n in counts.items() if n > threshold)
    offsets = [0] + boundaries
    slices: list[tuple[int, int | None]] = [
        (start, end - start) for start, end in zip(offsets, offsets[1:])
    ]
    slices.append((offsets[-1], None))
    return slices


def _run_starts(line: str) -> set[int]:
    """Positions (> 0) where a non-blank run begins right after whitespace."""
    return {
        i for i in range(1, len(line))
        if line[i - 1].isspace() and not line[i].isspace()
    }


# ---------------------------------------------------------------------------
# Spreadsheets
# ---------------------------------------------------------------------------

def _inspect_spreadsheet(path: Path, sample_size: int, allowed: Sequence[str]) -> InferredSchema:
    reader = spreadsheet_reader(path)
    with reader as source:
        records = source.sample(sample_size)
        sheet = reader.sheet_name
    return build_schema(records, allowed, provider="spreadsheet", source=path, sheet=sheet)


# ---------------------------------------------------------------------------
# Shared: header, names, types, lengths
# ---------------------------------------------------------------------------

def build_schema(
    records: list[list[Any]],
    allowed: Sequence[str],
    provider: str,
    source: Path,
    delimiter: str | None = None,
    sheet: str | None = None,
    slices: Sequence[tuple[int, int | None]] | None = None,
) -> InferredSchema:
    """
    Resolve header, names, types and lengths from sampled records.

    Raises:
        EmptySource: If there are no records, or only a header record.
    """
    if not records:
        raise EmptySource(f"No records found in {source}", source_path=str(source))

    width = max(len(r) for r in records)
    first, rest = records[0], records[1:]
    has_header = detect_header(first, rest, allowed, width)
    data = rest if has_header else records
    if not data:
        raise EmptySource(
            f"{source} has a header row but no data rows",
            source_path=str(source),
        )

    names = column_names(first if has_header else None, width)
    columns = []
    for i, name in enumerate(names):
        values = [_cell(r, i) for r in data]
        start, col_width = slices[i] if slices else (None, None)
        columns.append(ColumnDescriptor(
            name=name,
            data_type=infer_column_type(values, allowed),
            max_length=max((cell_length(v) for v in values), default=0),
            start=start,
            width=col_width,
        ))

    return InferredSchema(
        provider=provider,  # type: ignore[arg-type]
        columns=tuple(columns),
        delimiter=delimiter,
        has_header=has_header,
        sheet=sheet,
        source=str(source),
    )


def detect_header(
    first: list[Any],
    rest: list[list[Any]],
    allowed: Sequence[str],
    width: int,
) -> bool:
    """Return True if ``first`` reads as column names rather than data."""
    cells = [_cell(first, i) for i in range(width)]
    named = [c for c in cells if not is_empty(c)]
    if not named:
        return False
    # Header cells are text; a typed spreadsheet cell is data.
    if any(not isinstance(c, str) for c in named):
        return False

    if rest:
        column_types: list[DataType | None] = [
            infer_column_type([_cell(r, i) for r in rest], allowed) for i in range(width)
        ]
    else:
        column_types = [None] * width

    evidence = 0
    for cell, data_type in zip(cells, column_types):
        if is_empty(cell):
            continue
        if parses_as_data(cell, data_type):
            return False
        if data_type not in (None, "string"):
            evidence += 1

    distinct = {clean_header_name(c).lower() for c in named}
    if len(named) == width and len(distinct) == width:
        return True
    return evidence > 0


def _cell(record: Sequence[Any], i: int) -> Any:
    return record[i] if i < len(record) else None


