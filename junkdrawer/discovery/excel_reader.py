"""
Spreadsheet readers implementing ``AbstractSource``.

Only the first sheet is read.  Cells are yielded with their declared types
(``str``, ``int``, ``float``, ``bool``, ``datetime.date``,
``datetime.datetime``); empty cells are ``None``.

Date normalization
------------------
Legacy ``.xls`` workbooks store dates as numeric serials with a date-mode
flag; ``.xlsx`` workbooks hand back resolved ``datetime`` objects.  Both
readers normalize to the same representation before anything else sees
the value:

  - a date with no time part → ``datetime.date``
  - a date with a time part  → ``datetime.datetime``
  - ``.xls`` integral numbers (always floats in the file) → ``int``

So ``4/1/1976`` reads as ``date(1976, 4, 1)`` from either format, never as
the serial ``27851``.
"""

from __future__ import annotations

import zipfile
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Iterator

import openpyxl
import xlrd
from openpyxl.utils.exceptions import InvalidFileException

from junkdrawer.configs.exceptions import SourceReadError, SourceUnreadable
from junkdrawer.discovery.base import AbstractSource, is_blank_record


def normalize_datetime(value: datetime) -> date | datetime:
    """Reduce midnight datetimes to plain dates."""
    if value.time() == time(0, 0):
        return value.date()
    return value


class XlsxReader(AbstractSource):
    """Reader for ``.xlsx`` / ``.xlsm`` workbooks via openpyxl."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(path)
        self._book = None
        self.sheet_name: str | None = None

    def open(self) -> None:
        """
        Raises:
            SourceUnreadable: If the workbook cannot be opened or has no sheets.
        """
        try:
            self._book = openpyxl.load_workbook(self.path, read_only=True, data_only=True)
        except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError) as e:
            raise SourceUnreadable(
                f"Cannot open workbook {self.path}: {e}",
                source_path=str(self.path),
            ) from e
        if not self._book.worksheets:
            raise SourceUnreadable(
                f"Workbook has no sheets: {self.path}",
                source_path=str(self.path),
            )
        self.sheet_name = self._book.worksheets[0].title

    def rows(self) -> Iterator[list[Any]]:
        if self._book is None:
            raise RuntimeError("XlsxReader.open() must be called before rows().")
        sheet = self._book.worksheets[0]
        try:
            for values in sheet.iter_rows(values_only=True):
                record = [_xlsx_cell(v) for v in values]
                if is_blank_record(record):
                    continue
                yield record
        except (OSError, zipfile.BadZipFile, KeyError, ValueError) as e:
            raise SourceReadError(
                f"Cannot read sheet {sheet.title!r} of {self.path}: {e}",
                source_path=str(self.path),
            ) from e

    def close(self) -> None:
        if self._book is not None:
            self._book.close()
            self._book = None


def _xlsx_cell(value: Any) -> Any:
    if isinstance(value, datetime):
        return normalize_datetime(value)
    if isinstance(value, time):
        return value.isoformat()
    return value


class XlsReader(AbstractSource):
    """Reader for legacy binary ``.xls`` workbooks via xlrd."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(path)
        self._book = None
        self.sheet_name: str | None = None

    def open(self) -> None:
        """
        Raises:
            SourceUnreadable: If the workbook cannot be opened or has no sheets.
        """
        try:
            self._book = xlrd.open_workbook(str(self.path), on_demand=True)
        except (OSError, xlrd.XLRDError) as e:
            raise SourceUnreadable(
                f"Cannot open workbook {self.path}: {e}",
                source_path=str(self.path),
            ) from e
        if self._book.nsheets == 0:
            raise SourceUnreadable(
                f"Workbook has no sheets: {self.path}",
                source_path=str(self.path),
            )
        self.sheet_name = self._book.sheet_names()[0]

    def rows(self) -> Iterator[list[Any]]:
        if self._book is None:
            raise RuntimeError("XlsReader.open() must be called before rows().")
        try:
            sheet = self._book.sheet_by_index(0)
        except xlrd.XLRDError as e:
            raise SourceReadError(
                f"Cannot read first sheet of {self.path}: {e}",
                source_path=str(self.path),
            ) from e
        for r in range(sheet.nrows):
            record = [xls_cell_value(cell, self._book.datemode) for cell in sheet.row(r)]
            if is_blank_record(record):
                continue
            yield record

    def close(self) -> None:
        if self._book is not None:
            self._book.release_resources()
            self._book = None


def xls_cell_value(cell: xlrd.sheet.Cell, datemode: int) -> Any:
    """
    Convert an xlrd cell into a typed Python value.

    Date cells (serial numbers) are converted with the workbook's
    ``datemode`` so they match what the ``.xlsx`` reader yields.
    """
    ctype = cell.ctype
    if ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None
    if ctype == xlrd.XL_CELL_DATE:
        return normalize_datetime(xlrd.xldate_as_datetime(cell.value, datemode))
    if ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if ctype == xlrd.XL_CELL_NUMBER:
        value = float(cell.value)
        return int(value) if value.is_integer() else value
    return cell.value


def spreadsheet_reader(path: Path | str) -> AbstractSource:
    """Pick the reader for a spreadsheet by file extension."""
    if Path(path).suffix.lower() == ".xls":
        return XlsReader(path)
    return XlsxReader(path)
