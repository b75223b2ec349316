"""
DDL and DML generation for the target table.

All functions are **pure** — they accept data structures and return SQL
strings.  No database connection is required, which keeps them testable
and lets ``inspect`` preview the DDL without a target.

Responsibilities:
  - ``column_definition``   — single column DDL fragment
  - ``build_create_table``  — full CREATE TABLE statement
  - ``build_insert``        — positional-bind INSERT statement

Sizing rules:
  - String columns are sized ``max_length + string_growth_buffer`` and
    switch to the backend's unsized long type above its limit.
  - Every column is nullable; the importer never rejects a row for an
    empty value.
"""

from __future__ import annotations

from junkdrawer.configs.config import ImportConfig
from junkdrawer.configs.exceptions import TargetUnwritable
from junkdrawer.loaders.dialects import Dialect
from junkdrawer.models.models import ColumnDescriptor, InferredSchema


# ---------------------------------------------------------------------------
# Column definition fragment
# ---------------------------------------------------------------------------

def column_definition(col: ColumnDescriptor, dialect: Dialect, config: ImportConfig) -> str:
    """
    Generate the DDL fragment for a single column.

    Examples::

        "Name" VARCHAR(56) NULL
        [Created] DATETIME2 NULL
        "Amount" NUMBER NULL
    """
    return f"{dialect.quote_identifier(col.name)} {column_type(col, dialect, config)} NULL"


def column_type(col: ColumnDescriptor, dialect: Dialect, config: ImportConfig) -> str:
    """Return the backend column type for an inferred column."""
    if col.data_type == "integer":
        return dialect.integer_type
    if col.data_type == "decimal":
        return dialect.decimal_type
    if col.data_type == "date":
        return dialect.date_type
    if col.data_type == "boolean":
        return dialect.boolean_type

    if is_long_string(col, dialect, config):
        return dialect.long_string_type
    size = config.effective_string_length(col.max_length, dialect.string_limit)
    return dialect.string_type.format(size=size)


def is_long_string(col: ColumnDescriptor, dialect: Dialect, config: ImportConfig) -> bool:
    """True when a string column needs the backend's unsized long type."""
    if col.data_type != "string":
        return False
    return max(col.max_length, 1) + config.string_growth_buffer > dialect.string_limit


# ---------------------------------------------------------------------------
# CREATE TABLE
# ---------------------------------------------------------------------------

def build_create_table(
    table: str,
    schema: InferredSchema,
    dialect: Dialect,
    config: ImportConfig,
) -> str:
    """
    Generate a ``CREATE TABLE`` statement for ``schema``.

    Raises:
        TargetUnwritable: If the schema has no columns.
    """
    if not schema.columns:
        raise TargetUnwritable(
            f"Cannot generate CREATE TABLE for {table}: no columns defined.",
            table=table,
        )

    col_defs = [f"    {column_definition(col, dialect, config)}" for col in schema.columns]
    cols_sql = ",\n".join(col_defs)
    return (
        f"CREATE TABLE {dialect.quote_identifier(table)} (\n"
        f"{cols_sql}\n"
        f")"
    )


# ---------------------------------------------------------------------------
# INSERT
# ---------------------------------------------------------------------------

def build_insert(table: str, schema: InferredSchema, dialect: Dialect) -> str:
    """
    Positional-bind INSERT for ``schema``; column order matches the
    order of values produced by ``generate_rows``.
    """
    col_list = ", ".join(dialect.quote_identifier(c.name) for c in schema.columns)
    bind_list = ", ".join(dialect.placeholder(i) for i in range(1, len(schema.columns) + 1))
    return (
        f"INSERT INTO {dialect.quote_identifier(table)} ({col_list})\n"
        f"VALUES ({bind_list})"
    )


def build_count(table: str, dialect: Dialect) -> str:
    return f"SELECT COUNT(*) FROM {dialect.quote_identifier(table)}"
