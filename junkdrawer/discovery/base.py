"""
Abstract base class for all source readers.

Every concrete reader (delimited text, fixed-width text, spreadsheet) must
implement this interface.  The inspector and the load executor work
exclusively against ``AbstractSource`` so the pipeline is source-agnostic.

Usage:
    with DelimitedReader(path, ",") as source:
        for record in source.rows():
            process(record)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from itertools import islice
from pathlib import Path
from typing import Any, Iterator


class AbstractSource(ABC):
    """
    Interface for all source readers.

    Subclasses must implement ``open``, ``rows``, and ``close``.  Context
    manager support (``__enter__`` / ``__exit__``) is provided by this base
    class and delegates to ``open`` / ``close``.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    @abstractmethod
    def open(self) -> None:
        """
        Open the source for reading.  Must be called before ``rows``.

        Raises:
            SourceUnreadable: If the file cannot be opened.
        """

    @abstractmethod
    def rows(self) -> Iterator[list[Any]]:
        """
        Yield every non-blank record, header row included, as a list of cells.

        Each call rewinds to the first record so the source can be iterated
        more than once (e.g. sample pass + load pass).

        Raises:
            SourceReadError: On I/O or decoding failures mid-stream.
        """

    @abstractmethod
    def close(self) -> None:
        """Release any open file handles or resources."""

    def sample(self, size: int) -> list[list[Any]]:
        """Return the first ``size`` records."""
        return list(islice(self.rows(), size))

    # ── context manager ──────────────────────────────────────────────────

    def __enter__(self) -> "AbstractSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
        return None


def is_blank_record(record: list[Any]) -> bool:
    """True for records with no cells or only empty / whitespace cells."""
    for cell in record:
        if cell is None:
            continue
        if isinstance(cell, str) and not cell.strip():
            continue
        return False
    return True
