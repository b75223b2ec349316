"""
Import configuration.

All tuneable constants live here. Import from this module everywhere —
never hardcode sample sizes, batch sizes, or backend limits inline.

Usage:
    from junkdrawer.configs.config import ImportConfig
    cfg = ImportConfig()                    # defaults / environment
    cfg = ImportConfig(batch_size=500)

The base output connection (provider, server, database, credentials) is the
"resolved base configuration" that request overrides are applied onto.
Environment overrides can be loaded via .env / an env file before
constructing the config object; this module does not load files itself.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


# Supported value types for inferred / overridden columns.
SUPPORTED_TYPES: tuple[str, ...] = ("string", "integer", "decimal", "date", "boolean")

# Output providers accepted on a request (``internal`` is the null store).
SUPPORTED_PROVIDERS: tuple[str, ...] = (
    "sqlite", "postgresql", "mysql", "sqlserver", "oracle", "internal",
)

DELIMITER_CANDIDATES: tuple[str, ...] = (",", "|", "\t")
"""Tried in this order; ties on field count go to the earlier candidate."""

SPREADSHEET_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xlsm", ".xls")


def _env_types() -> tuple[str, ...]:
    raw = os.environ.get("JUNK_TYPES", "")
    chosen = tuple(t.strip().lower() for t in raw.split(",") if t.strip().lower() in SUPPORTED_TYPES)
    return chosen or SUPPORTED_TYPES


@dataclass(slots=True)
class ImportConfig:
    """
    Runtime configuration for the importer.

    Attributes:
        provider: Default output store kind when the request names none.
        server / database / user / password / port: Default output connection.
            For ``sqlite`` the database is the path of the database file.
        sample_size: Number of records read by the inspector.
        batch_size: Rows per ``executemany`` call.
        string_growth_buffer: Characters added on top of the observed
            max length when sizing a string column.
        types: Types the inspector tries when the request gives none.
        error_dir: Where the batch error log is appended.
        odbc_driver: ODBC driver name used for SQL Server connections.
    """

    provider: str = field(
        default_factory=lambda: os.environ.get("JUNK_PROVIDER", "sqlite").lower()
    )
    server: str = field(
        default_factory=lambda: os.environ.get("JUNK_SERVER", "localhost")
    )
    database: str = field(
        default_factory=lambda: os.environ.get("JUNK_DATABASE", "junk.sqlite3")
    )
    user: str = field(default_factory=lambda: os.environ.get("JUNK_USER", ""))
    password: str = field(default_factory=lambda: os.environ.get("JUNK_PASSWORD", ""))
    port: int = field(default_factory=lambda: int(os.environ.get("JUNK_PORT", "0")))
    sample_size: int = field(
        default_factory=lambda: int(os.environ.get("JUNK_SAMPLE_SIZE", "100"))
    )
    batch_size: int = field(
        default_factory=lambda: int(os.environ.get("BATCH_SIZE", "1000"))
    )
    string_growth_buffer: int = field(
        default_factory=lambda: int(os.environ.get("STRING_GROWTH_BUFFER", "50"))
    )
    types: tuple[str, ...] = field(default_factory=_env_types)
    error_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("ERROR_DIR", "data/error"))
    )
    odbc_driver: str = field(
        default_factory=lambda: os.environ.get("ODBC_DRIVER", "ODBC Driver 18 for SQL Server")
    )

    def effective_string_length(self, observed_len: int, limit: int) -> int:
        """
        Return the column size for a string column with the given observed
        max length, after applying the growth buffer and capping at ``limit``.
        """
        return min(max(observed_len, 1) + self.string_growth_buffer, limit)
