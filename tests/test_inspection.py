"""
Inspection: test_inspection.py

Covers:

typing_infer.py:
  - parse_date accepts the explicit month-first formats, rejects the rest
  - infer_column_type order: boolean, integer, decimal, date, string
  - mixed integer / decimal column resolves to decimal
  - whole numbers outside the signed 64-bit range are not integers
  - empty column and disallowed types fall back to string
  - typed spreadsheet cells (bool before int) map directly

normalizers.py:
  - coerce_cell converts per type; blank → None; null bytes stripped
  - failed conversion falls back to the stripped raw string
  - integers outside the signed 64-bit range keep their raw text
  - typed cells: integral floats → int, string columns get text

text_reader.py:
  - DelimitedReader honours quoting, skips blank records, rewinds, strips BOM
  - undecodable bytes raise SourceReadError with a row number
  - split_fixed cuts and strips slices

excel_reader.py:
  - xlsx dates surface as datetime.date, sheet name recorded
  - xls date serials surface as datetime.date (27851 → 1976-04-01)
  - xls numbers, booleans and empty cells convert to native values

sniff.py:
  - comma, pipe, tab and fixed-width files with a header yield the declared names
  - fixed-width rows whose values touch keep the shared column boundaries
  - header-less records get positional names A, B, C
  - a quoted field keeps its embedded comma
  - blank header cells get positional names (,,"Created" → A, B, Created)
  - bare type overrides restrict candidates; column:type pins a column
  - invalid override entries are ignored
  - missing / undecodable file → SourceUnreadable; empty or header-only → EmptySource

identifiers.py / sanitizer.py:
  - positional names, duplicate suffixes, table names from file stems
"""

from __future__ import annotations

import sys
import pathlib

_root = str(pathlib.Path(__file__).parent.parent)
if _root not in sys.path:
    sys.path.insert(0, _root)

from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import openpyxl
import pytest
import xlrd

from junkdrawer.configs.config import SUPPORTED_TYPES, ImportConfig
from junkdrawer.configs.exceptions import EmptySource, SourceReadError, SourceUnreadable
from junkdrawer.discovery.excel_reader import XlsReader, XlsxReader, spreadsheet_reader, xls_cell_value
from junkdrawer.discovery.sniff import detect_fixed_width, inspect, split_type_overrides
from junkdrawer.discovery.text_reader import DelimitedReader, split_fixed
from junkdrawer.transformers.normalizers import coerce_cell, to_text
from junkdrawer.transformers.typing_infer import infer_column_type, parse_date
from junkdrawer.utils.identifiers import column_names, default_column_name, to_table_name
from junkdrawer.utils.sanitizer import sanitize_identifier


# ============================================================================
# Helpers
# ============================================================================

COMPANIES = [
    ("Microsoft", "http://www.microsoft.com", "4/4/1975"),
    ("Apple", "http://www.apple.com", "4/1/1976"),
    ("Oracle", "http://www.oracle.com", "6/16/1977"),
]


def write_text(path: Path, text: str, encoding: str = "utf-8") -> Path:
    path.write_text(text, encoding=encoding, newline="")
    return path


def write_delimited(path: Path, delimiter: str, header: bool = True) -> Path:
    lines = [delimiter.join(("Name", "Url", "Founded"))] if header else []
    lines += [delimiter.join(row) for row in COMPANIES]
    return write_text(path, "\n".join(lines) + "\n")


def write_fixed(path: Path, rows: list[tuple[str, str, str]]) -> Path:
    lines = [f"{'Name':<10}{'Url':<26}Founded"]
    lines += [f"{name:<10}{url:<26}{founded}" for name, url, founded in rows]
    return write_text(path, "\r\n".join(lines) + "\r\n")


def make_config(**kwargs) -> ImportConfig:
    kwargs.setdefault("types", SUPPORTED_TYPES)
    kwargs.setdefault("sample_size", 100)
    return ImportConfig(**kwargs)


# ============================================================================
# typing_infer.py
# ============================================================================

class TestParseDate:
    def test_iso_date(self):
        assert parse_date("1976-04-01") == date(1976, 4, 1)

    def test_slashed_dates_are_month_first(self):
        assert parse_date("9/4/98") == date(1998, 9, 4)
        assert parse_date("4/4/1975") == date(1975, 4, 4)

    def test_month_name_formats(self):
        assert parse_date("April 1, 1976") == date(1976, 4, 1)
        assert parse_date("01-Apr-1976") == date(1976, 4, 1)

    def test_datetime_keeps_time(self):
        assert parse_date("1976-04-01 13:45:00") == datetime(1976, 4, 1, 13, 45)

    def test_timezone_suffix_dropped(self):
        assert parse_date("1976-04-01T13:45:00Z") == datetime(1976, 4, 1, 13, 45)

    def test_rejects_text_and_numbers(self):
        assert parse_date("Founded") is None
        assert parse_date("1976") is None
        assert parse_date("13/45/1976") is None


class TestInferColumnType:
    def test_boolean(self):
        assert infer_column_type(["true", "FALSE", ""]) == "boolean"

    def test_integer(self):
        assert infer_column_type(["1", "-42", "+7"]) == "integer"

    def test_mixed_integer_and_decimal_is_decimal(self):
        assert infer_column_type(["1", "2.50", "1,234.56"]) == "decimal"

    def test_date(self):
        assert infer_column_type(["4/4/1975", "1976-04-01"]) == "date"

    def test_one_bad_value_makes_string(self):
        assert infer_column_type(["1", "2", "three"]) == "string"

    def test_all_empty_is_string(self):
        assert infer_column_type(["", "  ", None]) == "string"

    def test_disallowed_type_skipped(self):
        assert infer_column_type(["4/4/1975"], allowed=("integer",)) == "string"
        assert infer_column_type(["1", "2"], allowed=("decimal",)) == "decimal"

    def test_typed_cells(self):
        assert infer_column_type([True, False]) == "boolean"
        assert infer_column_type([1, 2.0]) == "integer"
        assert infer_column_type([1, 2.5]) == "decimal"
        assert infer_column_type([date(1976, 4, 1)]) == "date"

    def test_integer_beyond_64_bits_is_string(self):
        assert infer_column_type(["12345678901234567890123", "2"]) == "string"
        assert infer_column_type(["9223372036854775807", "-9223372036854775808"]) == "integer"
        assert infer_column_type(["9223372036854775808"]) == "string"

    def test_typed_cells_beyond_64_bits(self):
        assert infer_column_type([2 ** 70, 1]) == "string"
        assert infer_column_type([1e20]) == "decimal"


# ============================================================================
# normalizers.py
# ============================================================================

class TestCoerceCell:
    def test_blank_is_none(self):
        assert coerce_cell("", "integer") is None
        assert coerce_cell("   ", "string") is None
        assert coerce_cell(None, "date") is None

    def test_integer_with_thousands(self):
        assert coerce_cell("1,234", "integer") == 1234

    def test_decimal(self):
        assert coerce_cell("1,234.56", "decimal") == Decimal("1234.56")

    def test_date(self):
        assert coerce_cell("4/1/1976", "date") == date(1976, 4, 1)

    def test_boolean(self):
        assert coerce_cell("TRUE", "boolean") is True

    def test_string_is_stripped(self):
        assert coerce_cell("  Nike, Inc.  ", "string") == "Nike, Inc."

    def test_null_bytes_stripped(self):
        assert coerce_cell("ab\x00c", "string") == "abc"

    def test_failed_conversion_keeps_raw_string(self):
        assert coerce_cell(" n/a ", "integer") == "n/a"
        assert coerce_cell("soon", "date") == "soon"
        assert coerce_cell("maybe", "boolean") == "maybe"

    def test_integer_beyond_64_bits_keeps_raw_string(self):
        assert coerce_cell("12345678901234567890123", "integer") == "12345678901234567890123"
        assert coerce_cell(1e20, "integer") == "100000000000000000000"

    def test_typed_cells(self):
        assert coerce_cell(3.0, "integer") == 3
        assert coerce_cell(2.5, "decimal") == Decimal("2.5")
        assert coerce_cell(date(1976, 4, 1), "date") == date(1976, 4, 1)
        assert coerce_cell(221000, "string") == "221000"
        assert coerce_cell(date(1976, 4, 1), "string") == "1976-04-01"

    def test_to_text(self):
        assert to_text(5.0) == "5"
        assert to_text(datetime(1976, 4, 1)) == "1976-04-01"


# ============================================================================
# text_reader.py
# ============================================================================

class TestDelimitedReader:
    def test_quoted_delimiter_preserved(self, tmp_path):
        path = write_text(tmp_path / "q.csv", 'Name,Url\n"Nike, Inc.",http://www.nike.com\n')
        with DelimitedReader(path, ",") as source:
            rows = list(source.rows())
        assert rows[1] == ["Nike, Inc.", "http://www.nike.com"]

    def test_blank_records_skipped(self, tmp_path):
        path = write_text(tmp_path / "b.csv", "a,b\n\n,\n1,2\n")
        with DelimitedReader(path, ",") as source:
            assert list(source.rows()) == [["a", "b"], ["1", "2"]]

    def test_rows_rewinds(self, tmp_path):
        path = write_text(tmp_path / "r.csv", "a,b\n1,2\n")
        with DelimitedReader(path, ",") as source:
            first = list(source.rows())
            second = list(source.rows())
        assert first == second

    def test_bom_stripped(self, tmp_path):
        path = write_text(tmp_path / "bom.csv", "Name,Url\nx,y\n", encoding="utf-8-sig")
        with DelimitedReader(path, ",") as source:
            assert source.sample(1) == [["Name", "Url"]]

    def test_undecodable_bytes_raise(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_bytes(b"Name,Value\n\xff\xfe\xfa,1\n")
        with DelimitedReader(path, ",") as source:
            with pytest.raises(SourceReadError):
                list(source.rows())

    def test_open_missing_file(self, tmp_path):
        with pytest.raises(SourceUnreadable):
            DelimitedReader(tmp_path / "nope.csv", ",").open()


class TestSplitFixed:
    def test_slices_are_stripped(self):
        line = "Apple     http://www.apple.com      4/1/1976"
        assert split_fixed(line, [(0, 10), (10, 26), (36, None)]) == [
            "Apple", "http://www.apple.com", "4/1/1976",
        ]

    def test_short_line_gives_empty_fields(self):
        assert split_fixed("Apple", [(0, 10), (10, None)]) == ["Apple", ""]


# ============================================================================
# excel_reader.py
# ============================================================================

class TestSpreadsheets:
    def _write_xlsx(self, path: Path) -> Path:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Companies"
        ws.append(["Name", "Founded", "Employees"])
        ws.append(["Microsoft", datetime(1975, 4, 4), 221000])
        ws.append(["Apple", datetime(1976, 4, 1), 164000])
        wb.save(path)
        return path

    def test_xlsx_dates_are_dates(self, tmp_path):
        path = self._write_xlsx(tmp_path / "companies.xlsx")
        with XlsxReader(path) as source:
            rows = list(source.rows())
        assert rows[1][1] == date(1975, 4, 4)
        assert type(rows[1][1]) is date

    def test_xlsx_schema(self, tmp_path):
        path = self._write_xlsx(tmp_path / "companies.xlsx")
        schema = inspect(path, make_config())
        assert schema.provider == "spreadsheet"
        assert schema.sheet == "Companies"
        assert schema.has_header is True
        assert schema.names == ["Name", "Founded", "Employees"]
        assert [c.data_type for c in schema.columns] == ["string", "date", "integer"]

    def test_xls_date_serial_is_date(self):
        cell = xlrd.sheet.Cell(xlrd.XL_CELL_DATE, 27851.0)
        value = xls_cell_value(cell, datemode=0)
        assert value == date(1976, 4, 1)
        assert type(value) is date

    def test_xls_date_with_time_is_datetime(self):
        cell = xlrd.sheet.Cell(xlrd.XL_CELL_DATE, 27851.5)
        assert xls_cell_value(cell, datemode=0) == datetime(1976, 4, 1, 12, 0)

    def test_xls_scalar_cells(self):
        assert xls_cell_value(xlrd.sheet.Cell(xlrd.XL_CELL_NUMBER, 221000.0), 0) == 221000
        assert xls_cell_value(xlrd.sheet.Cell(xlrd.XL_CELL_NUMBER, 2.5), 0) == 2.5
        assert xls_cell_value(xlrd.sheet.Cell(xlrd.XL_CELL_BOOLEAN, 1), 0) is True
        assert xls_cell_value(xlrd.sheet.Cell(xlrd.XL_CELL_EMPTY, ""), 0) is None
        assert xls_cell_value(xlrd.sheet.Cell(xlrd.XL_CELL_TEXT, "Apple"), 0) == "Apple"

    def test_reader_chosen_by_extension(self, tmp_path):
        assert isinstance(spreadsheet_reader(tmp_path / "a.xls"), XlsReader)
        assert isinstance(spreadsheet_reader(tmp_path / "a.xlsx"), XlsxReader)

    def test_corrupt_workbook_unreadable(self, tmp_path):
        path = write_text(tmp_path / "fake.xlsx", "not a zip file")
        with pytest.raises(SourceUnreadable):
            inspect(path, make_config())


# ============================================================================
# sniff.py
# ============================================================================

class TestInspectDelimited:
    @pytest.mark.parametrize("delimiter,suffix", [(",", ".csv"), ("|", ".txt"), ("\t", ".tsv")])
    def test_header_names_and_types(self, tmp_path, delimiter, suffix):
        path = write_delimited(tmp_path / f"companies{suffix}", delimiter)
        schema = inspect(path, make_config())
        assert schema.provider == "delimited"
        assert schema.delimiter == delimiter
        assert schema.has_header is True
        assert schema.names == ["Name", "Url", "Founded"]
        assert [c.data_type for c in schema.columns] == ["string", "string", "date"]

    def test_max_length_observed(self, tmp_path):
        path = write_delimited(tmp_path / "companies.csv", ",")
        schema = inspect(path, make_config())
        assert schema.column("Url").max_length == len("http://www.microsoft.com")

    def test_headerless_gets_positional_names(self, tmp_path):
        path = write_text(
            tmp_path / "sites.csv",
            "Google,http://www.google.com,9/4/98\n"
            "Microsoft,http://www.microsoft.com,4/4/1975\n",
        )
        schema = inspect(path, make_config())
        assert schema.has_header is False
        assert schema.names == ["A", "B", "C"]
        assert schema.column("C").data_type == "date"

    def test_quoted_comma_stays_one_field(self, tmp_path):
        path = write_text(
            tmp_path / "brands.csv",
            'Name,Url\n"Nike, Inc.",http://www.nike.com\nApple,http://www.apple.com\n',
        )
        schema = inspect(path, make_config())
        assert schema.names == ["Name", "Url"]
        assert schema.column("Name").max_length == len("Nike, Inc.")

    def test_blank_header_cells_get_positional_names(self, tmp_path):
        path = write_text(
            tmp_path / "partial.csv",
            ',,"Created"\n'
            "Microsoft,http://www.microsoft.com,4/4/1975\n"
            "Apple,http://www.apple.com,4/1/1976\n",
        )
        schema = inspect(path, make_config())
        assert schema.has_header is True
        assert schema.names == ["A", "B", "Created"]
        assert schema.column("Created").data_type == "date"

    def test_inconsistent_comma_loses_to_pipe(self, tmp_path):
        path = write_text(
            tmp_path / "pipes.txt",
            "Name|Url\nNike, Inc.|http://www.nike.com\nApple|http://www.apple.com\n",
        )
        schema = inspect(path, make_config())
        assert schema.delimiter == "|"


class TestInspectFixedWidth:
    def test_header_names(self, tmp_path):
        path = write_fixed(tmp_path / "companies.txt", COMPANIES)
        schema = inspect(path, make_config())
        assert schema.provider == "fixed"
        assert schema.names == ["Name", "Url", "Founded"]
        assert [(c.start, c.width) for c in schema.columns] == [(0, 10), (10, 26), (36, None)]
        assert schema.column("Founded").data_type == "date"

    def test_touching_values_keep_boundaries(self, tmp_path):
        rows = COMPANIES + [("Salesforce", "http://www.salesforce.com", "2/3/1999")]
        path = write_fixed(tmp_path / "companies.txt", rows)
        schema = inspect(path, make_config())
        assert [c.start for c in schema.columns] == [0, 10, 36]

    def test_no_shared_gaps_is_single_column(self):
        assert detect_fixed_width(["alpha", "beta gamma", "delta"]) == [(0, None)]


class TestTypeOverrides:
    def _write(self, tmp_path: Path) -> Path:
        return write_text(
            tmp_path / "zips.csv",
            "City,Zip,Founded\nBoston,02134,4/4/1975\nNew York,10001,4/1/1976\n",
        )

    def test_inferred_without_overrides(self, tmp_path):
        schema = inspect(self._write(tmp_path), make_config())
        assert schema.column("Zip").data_type == "integer"

    def test_column_override_wins(self, tmp_path):
        schema = inspect(self._write(tmp_path), make_config(), types=("Zip:string",))
        assert schema.column("Zip").data_type == "string"
        assert schema.column("Founded").data_type == "date"

    def test_column_override_case_insensitive(self, tmp_path):
        schema = inspect(self._write(tmp_path), make_config(), types=("founded:string",))
        assert schema.column("Founded").data_type == "string"

    def test_bare_types_restrict_candidates(self, tmp_path):
        schema = inspect(self._write(tmp_path), make_config(), types=("integer",))
        assert schema.column("Zip").data_type == "integer"
        assert schema.column("Founded").data_type == "string"

    def test_invalid_entries_ignored(self, tmp_path):
        schema = inspect(self._write(tmp_path), make_config(), types=("Zip:blob", "uuid"))
        assert schema.column("Zip").data_type == "integer"
        assert schema.column("Founded").data_type == "date"

    def test_split_type_overrides(self):
        allowed, pinned = split_type_overrides(["date", "Zip:string", "x:blob"], SUPPORTED_TYPES)
        assert allowed == ("date",)
        assert pinned == {"zip": "string"}


class TestInspectErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceUnreadable):
            inspect(tmp_path / "missing.csv", make_config())

    def test_empty_file(self, tmp_path):
        with pytest.raises(EmptySource):
            inspect(write_text(tmp_path / "empty.csv", ""), make_config())

    def test_header_only(self, tmp_path):
        with pytest.raises(EmptySource):
            inspect(write_text(tmp_path / "header.csv", "Name,Url\n"), make_config())

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_bytes(b"Name,Value\n\xff\xfe\xfa,1\n")
        with pytest.raises(SourceUnreadable):
            inspect(path, make_config())


# ============================================================================
# identifiers.py / sanitizer.py
# ============================================================================

class TestIdentifiers:
    def test_default_column_names(self):
        assert [default_column_name(i) for i in (0, 25, 26, 27)] == ["A", "Z", "AA", "AB"]

    def test_duplicate_names_suffixed(self):
        assert column_names(["Name", "name", "Name"], 3) == ["Name", "name_2", "Name_3"]

    def test_short_header_padded_with_positional(self):
        assert column_names(["Name"], 3) == ["Name", "B", "C"]

    def test_table_name_from_stem(self):
        assert to_table_name("/data/My Report (Q3).csv") == "My_Report_Q3"

    def test_leading_digit_and_reserved(self):
        assert sanitize_identifier("2024 sales") == "_2024_sales"
        assert sanitize_identifier("select") == "select_tbl"

    def test_truncated_to_limit(self):
        assert len(sanitize_identifier("x" * 200, max_len=63)) == 63
