"""
Output stores: one connection-owning class per backend.

Every store exposes the same capability surface::

    table_exists(table) -> bool
    create_table(table, schema) -> str      # the DDL that ran
    insert_many(table, schema, rows) -> int # rows actually inserted
    count(table) -> int

and is a context manager: the connection is opened on ``__enter__`` and
closed on every exit path.  Driver errors are wrapped in
``TargetUnwritable`` so callers never see a backend-specific exception.

Driver modules are imported lazily inside ``_driver()`` (only SQLite is
stdlib), so installing one backend's driver is enough to use it:

    sqlite      stdlib ``sqlite3``
    postgresql  ``psycopg``
    mysql       ``pymysql``
    sqlserver   ``pyodbc``
    oracle      ``oracledb``
    internal    no driver; accepts the plan and writes nothing

Usage:
    from junkdrawer.loaders.stores import open_store

    with open_store(plan.output, config) as store:
        if not store.table_exists(plan.table):
            store.create_table(plan.table, plan.schema)
        store.insert_many(plan.table, plan.schema, rows)
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Sequence

from junkdrawer.configs.config import ImportConfig
from junkdrawer.configs.exceptions import TargetUnwritable
from junkdrawer.loaders.binds import build_input_sizes
from junkdrawer.loaders.ddl_builder import build_count, build_create_table, build_insert
from junkdrawer.loaders.dialects import DIALECTS, StoreKind, store_kind
from junkdrawer.loaders.error_logging import RejectedRow, log_batch_errors
from junkdrawer.models.models import InferredSchema, OutputDescriptor

logger = logging.getLogger(__name__)

Row = Sequence[Any]


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------

class Store(ABC):
    """
    Base output store.

    Args:
        output:     Resolved output connection.
        config:     Import configuration (batch size, error dir, string sizing).
        connection: Already-open DB-API connection to use instead of
                    connecting.  A store never closes a connection it was
                    handed.
        source_path: File being loaded, named in batch error log entries.
    """

    kind: StoreKind

    def __init__(
        self,
        output: OutputDescriptor,
        config: ImportConfig,
        connection: Any = None,
        source_path: Path | str = "",
    ) -> None:
        self.output = output
        self.config = config
        self.dialect = DIALECTS[self.kind]
        self._conn = connection
        self._owns_connection = connection is None
        self.source_path = source_path

    # ── driver hooks ─────────────────────────────────────────────────────

    @abstractmethod
    def _connect(self) -> Any:
        """Open and return a new DB-API connection."""

    @abstractmethod
    def _driver_errors(self) -> tuple[type[BaseException], ...]:
        """Exception classes raised by this backend's driver."""

    @abstractmethod
    def _table_exists_sql(self) -> str:
        """Catalog query taking the table name as its only bind."""

    # ── connection lifecycle ─────────────────────────────────────────────

    @property
    def connection(self) -> Any:
        if self._conn is None:
            raise RuntimeError(f"{type(self).__name__}.open() must be called first.")
        return self._conn

    def open(self) -> None:
        """
        Connect to the store if no connection is held yet.

        Raises:
            TargetUnwritable: If the driver cannot connect.
        """
        if self._conn is not None:
            return
        try:
            self._conn = self._connect()
        except (OSError, *self._driver_errors()) as e:
            raise TargetUnwritable(
                f"Cannot connect to {self.kind.value} store {self.describe()}: {e}"
            ) from e
        logger.debug("Connected to %s store %s", self.kind.value, self.describe())

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None or not self._owns_connection:
            return
        try:
            conn.close()
        except self._driver_errors() as e:
            logger.warning("Error closing %s connection: %s", self.kind.value, e)

    def describe(self) -> str:
        """Human-readable target, never including the password."""
        port = f":{self.output.port}" if self.output.port else ""
        return f"{self.output.server}{port}/{self.output.database}"

    def __enter__(self) -> "Store":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
        return None

    # ── capabilities ─────────────────────────────────────────────────────

    def table_exists(self, table: str) -> bool:
        row = self._fetch_one(self._table_exists_sql(), (table,), table)
        return row is not None

    def count(self, table: str) -> int:
        row = self._fetch_one(build_count(table, self.dialect), (), table)
        return int(row[0]) if row else 0

    def create_table(self, table: str, schema: InferredSchema) -> str:
        """
        Create ``table`` for ``schema`` and commit.

        Returns:
            The DDL that was executed.

        Raises:
            TargetUnwritable: If the statement fails.
        """
        ddl = build_create_table(table, schema, self.dialect, self.config)
        cursor = self.connection.cursor()
        try:
            cursor.execute(ddl)
            self.connection.commit()
        except self._write_errors() as e:
            self._rollback()
            raise TargetUnwritable(f"CREATE TABLE failed: {e}", table=table, ddl=ddl) from e
        finally:
            cursor.close()
        logger.info("Created table %s in %s store.", table, self.kind.value)
        return ddl

    def insert_many(self, table: str, schema: InferredSchema, rows: list[Row]) -> int:
        """
        Insert one batch and commit it.

        Returns:
            Number of rows the store accepted.

        Raises:
            TargetUnwritable: If the batch insert fails.
        """
        if not rows:
            return 0
        sql = build_insert(table, schema, self.dialect)
        params = [self.adapt_row(row) for row in rows]
        cursor = self.connection.cursor()
        try:
            inserted = self._executemany(cursor, sql, params, schema, table)
            self.connection.commit()
        except self._write_errors() as e:
            self._rollback()
            raise TargetUnwritable(f"INSERT into {table} failed: {e}", table=table) from e
        finally:
            cursor.close()
        return inserted

    def adapt_row(self, row: Row) -> tuple[Any, ...]:
        """Convert coerced values into what this driver binds natively."""
        return tuple(row)

    # ── internals ────────────────────────────────────────────────────────

    def _write_errors(self) -> tuple[type[BaseException], ...]:
        """Driver errors plus the value errors a driver raises while binding."""
        return (*self._driver_errors(), OverflowError, TypeError, ValueError)

    def _executemany(
        self,
        cursor: Any,
        sql: str,
        params: list[tuple[Any, ...]],
        schema: InferredSchema,
        table: str,
    ) -> int:
        cursor.executemany(sql, params)
        return len(params)

    def _fetch_one(self, sql: str, params: tuple[Any, ...], table: str) -> Any:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, params)
            return cursor.fetchone()
        except self._driver_errors() as e:
            raise TargetUnwritable(f"Query failed: {e}", table=table, ddl=sql) from e
        finally:
            cursor.close()

    def _rollback(self) -> None:
        try:
            self.connection.rollback()
        except self._driver_errors() as e:
            logger.warning("Rollback failed on %s store: %s", self.kind.value, e)


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------

class SqliteStore(Store):
    """
    SQLite file store; ``output.database`` is the database file path.

    Dates are bound as ISO-8601 text and decimals as text, the forms
    SQLite's date functions and NUMERIC affinity understand.
    """

    kind = StoreKind.SQLITE

    def _connect(self) -> Any:
        database = self.output.database
        if database != ":memory:":
            Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(database)

    def _driver_errors(self) -> tuple[type[BaseException], ...]:
        return (sqlite3.Error,)

    def _table_exists_sql(self) -> str:
        return (
            "SELECT 1 FROM sqlite_master "
            "WHERE type IN ('table', 'view') AND name = ? COLLATE NOCASE"
        )

    def describe(self) -> str:
        return self.output.database

    def adapt_row(self, row: Row) -> tuple[Any, ...]:
        return tuple(_sqlite_value(v) for v in row)


def _sqlite_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


# ---------------------------------------------------------------------------
# PostgreSQL
# ---------------------------------------------------------------------------

class PostgreSqlStore(Store):
    kind = StoreKind.POSTGRESQL

    @staticmethod
    def _driver():
        import psycopg  # lazy — only needed for PostgreSQL targets
        return psycopg

    def _connect(self) -> Any:
        kwargs: dict[str, Any] = {
            "host": self.output.server,
            "dbname": self.output.database,
        }
        if self.output.port:
            kwargs["port"] = self.output.port
        if self.output.user:
            kwargs["user"] = self.output.user
            kwargs["password"] = self.output.password
        return self._driver().connect(**kwargs)

    def _driver_errors(self) -> tuple[type[BaseException], ...]:
        return (self._driver().Error,)

    def _table_exists_sql(self) -> str:
        return (
            "SELECT 1 FROM information_schema.tables "
            "WHERE table_schema = current_schema() AND table_name = %s"
        )


# ---------------------------------------------------------------------------
# MySQL
# ---------------------------------------------------------------------------

class MySqlStore(Store):
    kind = StoreKind.MYSQL

    @staticmethod
    def _driver():
        import pymysql  # lazy — only needed for MySQL targets
        return pymysql

    def _connect(self) -> Any:
        return self._driver().connect(
            host=self.output.server,
            port=self.output.port or 3306,
            user=self.output.user or None,
            password=self.output.password,
            database=self.output.database,
            charset="utf8mb4",
        )

    def _driver_errors(self) -> tuple[type[BaseException], ...]:
        return (self._driver().Error,)

    def _table_exists_sql(self) -> str:
        return (
            "SELECT 1 FROM information_schema.tables "
            "WHERE table_schema = DATABASE() AND table_name = %s"
        )


# ---------------------------------------------------------------------------
# SQL Server
# ---------------------------------------------------------------------------

class SqlServerStore(Store):
    """SQL Server via ODBC; the driver name comes from ``config.odbc_driver``."""

    kind = StoreKind.SQLSERVER

    @staticmethod
    def _driver():
        import pyodbc  # lazy — only needed for SQL Server targets
        return pyodbc

    def connection_string(self) -> str:
        server = self.output.server
        if self.output.port:
            server = f"{server},{self.output.port}"
        parts = [
            f"DRIVER={{{self.config.odbc_driver}}}",
            f"SERVER={server}",
            f"DATABASE={self.output.database}",
            "TrustServerCertificate=yes",
        ]
        if self.output.user:
            parts += [f"UID={self.output.user}", f"PWD={self.output.password}"]
        else:
            parts.append("Trusted_Connection=yes")
        return ";".join(parts)

    def _connect(self) -> Any:
        return self._driver().connect(self.connection_string())

    def _driver_errors(self) -> tuple[type[BaseException], ...]:
        return (self._driver().Error,)

    def _table_exists_sql(self) -> str:
        return "SELECT 1 FROM INFORMATION_SCHEMA.TABLES WHERE TABLE_NAME = ?"

    def _executemany(self, cursor, sql, params, schema, table) -> int:
        cursor.fast_executemany = True
        cursor.executemany(sql, params)
        return len(params)


# ---------------------------------------------------------------------------
# Oracle
# ---------------------------------------------------------------------------

class OracleStore(Store):
    """
    Oracle via ``python-oracledb`` (thin mode).

    Inserts use ``setinputsizes`` from ``binds.build_input_sizes`` and
    ``executemany(batcherrors=True)``: rows Oracle rejects are appended to
    the batch error log and are not counted as inserted, the rest commit.
    Rows still holding a raw-string fallback in a typed column are rejected
    the same way before the batch is sent (see ``split_unbindable``).
    """

    kind = StoreKind.ORACLE

    @staticmethod
    def _driver():
        import oracledb  # lazy — only needed for Oracle targets
        return oracledb

    def dsn(self) -> str:
        return f"{self.output.server}:{self.output.port or 1521}/{self.output.database}"

    def _connect(self) -> Any:
        return self._driver().connect(
            dsn=self.dsn(),
            user=self.output.user,
            password=self.output.password,
        )

    def _driver_errors(self) -> tuple[type[BaseException], ...]:
        return (self._driver().Error,)

    def _table_exists_sql(self) -> str:
        return "SELECT 1 FROM USER_TABLES WHERE TABLE_NAME = :1"

    def describe(self) -> str:
        return self.dsn()

    def adapt_row(self, row: Row) -> tuple[Any, ...]:
        return tuple(int(v) if isinstance(v, bool) else v for v in row)

    def _executemany(self, cursor, sql, params, schema, table) -> int:
        bindable, offsets, errors = split_unbindable(params, schema)
        if bindable:
            cursor.bindarraysize = self.config.batch_size
            cursor.setinputsizes(*build_input_sizes(schema, self.config))
            cursor.executemany(sql, bindable, batcherrors=True)
            errors += [
                RejectedRow(offsets[err.offset], str(err.message))
                for err in cursor.getbatcherrors()
            ]

        if not errors:
            return len(params)

        errors.sort(key=lambda err: err.offset)
        log_path = log_batch_errors(
            errors,
            source_path=self.source_path,
            error_dir=self.config.error_dir,
            table=table,
        )
        logger.warning(
            "%d of %d row(s) rejected by Oracle for %s — see %s",
            len(errors), len(params), table, log_path,
        )
        return len(params) - len(errors)


def split_unbindable(
    params: list[tuple[Any, ...]],
    schema: InferredSchema,
) -> tuple[list[tuple[Any, ...]], list[int], list[RejectedRow]]:
    """
    Separate rows holding a raw-string coercion fallback in a typed column.

    Oracle binds each column with a fixed DB type, so a string left in a
    NUMBER or DATE column would fail the whole ``executemany`` on the
    client.  Such rows are rejected individually instead.

    Returns:
        ``(bindable rows, their offsets in params, rejected rows)``
    """
    bindable: list[tuple[Any, ...]] = []
    offsets: list[int] = []
    rejected: list[RejectedRow] = []
    for offset, row in enumerate(params):
        bad = [
            f"{col.name}={value!r}"
            for col, value in zip(schema.columns, row)
            if isinstance(value, str) and col.data_type != "string"
        ]
        if bad:
            rejected.append(RejectedRow(offset, f"Value does not match column type: {', '.join(bad)}"))
        else:
            bindable.append(row)
            offsets.append(offset)
    return bindable, offsets, rejected


# ---------------------------------------------------------------------------
# Internal (null) store
# ---------------------------------------------------------------------------

class NullStore(Store):
    """Accepts every call and writes nothing; used by the ``internal`` provider."""

    kind = StoreKind.INTERNAL

    def _connect(self) -> Any:
        return None

    def open(self) -> None:
        return None

    def close(self) -> None:
        return None

    def _driver_errors(self) -> tuple[type[BaseException], ...]:
        return ()

    def _table_exists_sql(self) -> str:
        return ""

    def describe(self) -> str:
        return "internal"

    def table_exists(self, table: str) -> bool:
        return False

    def count(self, table: str) -> int:
        return 0

    def create_table(self, table: str, schema: InferredSchema) -> str:
        return build_create_table(table, schema, self.dialect, self.config)

    def insert_many(self, table: str, schema: InferredSchema, rows: list[Row]) -> int:
        return 0


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

STORES: dict[StoreKind, type[Store]] = {
    StoreKind.SQLITE: SqliteStore,
    StoreKind.POSTGRESQL: PostgreSqlStore,
    StoreKind.MYSQL: MySqlStore,
    StoreKind.SQLSERVER: SqlServerStore,
    StoreKind.ORACLE: OracleStore,
    StoreKind.INTERNAL: NullStore,
}


def open_store(
    output: OutputDescriptor,
    config: ImportConfig,
    connection: Any = None,
    source_path: Path | str = "",
) -> Store:
    """
    Return the (not yet opened) store for ``output.provider``.

    Raises:
        UnsupportedProvider: If the provider is not a known store kind.
    """
    return STORES[store_kind(output.provider)](
        output, config, connection=connection, source_path=source_path,
    )
