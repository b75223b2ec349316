"""
The clean stream (row generator).

Streams records from an ``AbstractSource`` through ``coerce_cell`` and
yields one positional tuple per data row, ready for
``cursor.executemany()``.

Key properties:
  - **Lazy** — only one row (or one batch, via ``batched``) is in memory.
  - **Positional output** — tuple order is ``schema.columns`` order, which
    matches the binds of ``build_insert``.
  - **Header-aware** — the first record is skipped when the schema says the
    file has a header.
  - **Ragged-tolerant** — short records are padded with ``None``; long
    records are truncated to the schema width and counted.

Usage::

    with DelimitedReader(path, ",") as source:
        for batch in batched(generate_rows(source, schema), 1000):
            cursor.executemany(insert_sql, batch)
"""

from __future__ import annotations

import logging
from itertools import islice
from typing import Any, Iterable, Iterator

from junkdrawer.discovery.base import AbstractSource
from junkdrawer.models.models import InferredSchema
from junkdrawer.transformers.normalizers import coerce_cell

logger = logging.getLogger(__name__)


def generate_rows(
    source: AbstractSource,
    schema: InferredSchema,
) -> Iterator[tuple[Any, ...]]:
    """
    Stream rows from ``source`` as bind tuples.

    Args:
        source: An already-opened ``AbstractSource``.  ``rows()`` rewinds,
                so calling this generator again starts from the top.
        schema: The inferred schema; supplies the column order, types and
                whether the first record is a header.

    Yields:
        One tuple per data row with ``len(schema.columns)`` values.
    """
    types = [col.data_type for col in schema.columns]
    width = len(types)
    truncated = 0

    records = source.rows()
    if schema.has_header:
        next(records, None)

    for record in records:
        if len(record) > width:
            truncated += 1
            record = record[:width]
        cells = list(record) + [None] * (width - len(record))
        yield tuple(coerce_cell(raw, data_type) for raw, data_type in zip(cells, types))

    if truncated:
        logger.warning(
            "%d row(s) in %s had more fields than the %d inferred columns; extra fields dropped.",
            truncated, source.path.name, width,
        )


def batched(rows: Iterable[tuple[Any, ...]], size: int) -> Iterator[list[tuple[Any, ...]]]:
    """Group ``rows`` into lists of at most ``size`` rows."""
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    it = iter(rows)
    while True:
        batch = list(islice(it, size))
        if not batch:
            return
        yield batch
