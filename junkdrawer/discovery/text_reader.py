"""
Text file readers implementing ``AbstractSource``.

``DelimitedReader``   — CSV-quoted records split on a known delimiter.
``FixedWidthReader``  — lines sliced at known column offsets.
``LineReader``        — raw lines, used by the inspector to find a layout.

All three handle:
- UTF-8 with or without BOM (``utf-8-sig``).
- Windows CRLF and Unix LF line endings.
- Seek-back so the source can be iterated more than once.
- Blank records are skipped.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterator, Sequence

from junkdrawer.configs.csv_dialect import dialect_name, register_dialects
from junkdrawer.configs.exceptions import SourceReadError, SourceUnreadable
from junkdrawer.discovery.base import AbstractSource, is_blank_record

DEFAULT_ENCODING = "utf-8-sig"


class _TextSource(AbstractSource):
    """Shared open / close / rewind handling for text files."""

    def __init__(self, path: Path | str, encoding: str = DEFAULT_ENCODING) -> None:
        super().__init__(path)
        self.encoding = encoding
        self._file = None

    def open(self) -> None:
        """
        Open the file.

        Raises:
            SourceUnreadable: If the file cannot be opened.
        """
        try:
            self._file = open(  # noqa: WPS515
                self.path,
                encoding=self.encoding,
                newline="",
            )
        except OSError as e:
            raise SourceUnreadable(
                f"Cannot open {self.path}: {e}",
                source_path=str(self.path),
            ) from e

    def close(self) -> None:
        """Close the underlying file handle."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def _rewound(self):
        if self._file is None:
            raise RuntimeError(f"{type(self).__name__}.open() must be called before rows().")
        self._file.seek(0)
        return self._file


class DelimitedReader(_TextSource):
    """
    Delimited text reader with standard CSV quoting.

    Args:
        path: Path to the file.
        delimiter: One of the registered candidate delimiters.
    """

    def __init__(
        self,
        path: Path | str,
        delimiter: str,
        encoding: str = DEFAULT_ENCODING,
    ) -> None:
        super().__init__(path, encoding)
        self.delimiter = delimiter

    def rows(self) -> Iterator[list[str]]:
        """
        Yield each non-blank record.  Rewinds to the start on each call.

        Raises:
            SourceReadError: On decoding or CSV errors.
        """
        register_dialects()
        reader = csv.reader(self._rewound(), dialect=dialect_name(self.delimiter))
        try:
            for row in reader:
                if is_blank_record(row):
                    continue
                yield row
        except (csv.Error, UnicodeDecodeError, OSError) as e:
            raise SourceReadError(
                f"Malformed record in {self.path}: {e}",
                source_path=str(self.path),
                row_number=reader.line_num,
            ) from e


class LineReader(_TextSource):
    """Yields each non-blank line, without its line terminator, as a one-cell record."""

    def rows(self) -> Iterator[list[str]]:
        f = self._rewound()
        line_number = 0
        try:
            for line in f:
                line_number += 1
                text = line.rstrip("\r\n")
                if not text.strip():
                    continue
                yield [text]
        except (UnicodeDecodeError, OSError) as e:
            raise SourceReadError(
                f"Cannot read {self.path}: {e}",
                source_path=str(self.path),
                row_number=line_number,
            ) from e


class FixedWidthReader(LineReader):
    """
    Fixed-width text reader.

    Args:
        path: Path to the file.
        slices: ``(start, width)`` per column; ``width=None`` reads to end of line.
    """

    def __init__(
        self,
        path: Path | str,
        slices: Sequence[tuple[int, int | None]],
        encoding: str = DEFAULT_ENCODING,
    ) -> None:
        super().__init__(path, encoding)
        self.slices = list(slices)

    def rows(self) -> Iterator[list[str]]:
        for (line,) in super().rows():
            yield split_fixed(line, self.slices)


def split_fixed(line: str, slices: Sequence[tuple[int, int | None]]) -> list[str]:
    """Cut ``line`` at the given offsets and strip each field."""
    fields = []
    for start, width in slices:
        end = None if width is None else start + width
        fields.append(line[start:end].strip())
    return fields
