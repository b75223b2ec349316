"""
Per-backend SQL dialect facts.

One ``Dialect`` per ``StoreKind``: identifier quoting, bind placeholder
style, identifier length limit, and the column type used for each
inferred value type.  Everything SQL-text related in ``ddl_builder`` and
``stores`` reads from here instead of branching on the backend.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from junkdrawer.configs.config import SUPPORTED_PROVIDERS
from junkdrawer.configs.exceptions import UnsupportedProvider


class StoreKind(str, Enum):
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLSERVER = "sqlserver"
    ORACLE = "oracle"
    INTERNAL = "internal"


@dataclass(frozen=True, slots=True)
class Dialect:
    """
    Attributes:
        kind:               Backend this dialect describes.
        quote:              Opening and closing identifier quote characters.
        paramstyle:         ``qmark`` (``?``), ``format`` (``%s``) or ``numeric`` (``:1``).
        max_identifier_len: Longest identifier the backend accepts.
        string_type:        Sized string type template, ``{size}`` is replaced.
        string_limit:       Largest size ``string_type`` accepts.
        long_string_type:   Unsized type used when a column needs more than ``string_limit``.
        integer_type / decimal_type / date_type / boolean_type: Fixed column types.
    """

    kind: StoreKind
    quote: tuple[str, str]
    paramstyle: str
    max_identifier_len: int
    string_type: str
    string_limit: int
    long_string_type: str
    integer_type: str
    decimal_type: str
    date_type: str
    boolean_type: str

    def quote_identifier(self, name: str) -> str:
        """Quote ``name``, doubling any embedded closing quote character."""
        opening, closing = self.quote
        return f"{opening}{name.replace(closing, closing * 2)}{closing}"

    def placeholder(self, position: int) -> str:
        """Bind placeholder for the 1-based ``position``."""
        if self.paramstyle == "numeric":
            return f":{position}"
        if self.paramstyle == "format":
            return "%s"
        return "?"


DIALECTS: dict[StoreKind, Dialect] = {
    StoreKind.SQLITE: Dialect(
        kind=StoreKind.SQLITE,
        quote=('"', '"'),
        paramstyle="qmark",
        max_identifier_len=128,
        string_type="VARCHAR({size})",
        string_limit=1_000_000_000,
        long_string_type="TEXT",
        integer_type="INTEGER",
        decimal_type="NUMERIC",
        date_type="DATE",
        boolean_type="BOOLEAN",
    ),
    StoreKind.POSTGRESQL: Dialect(
        kind=StoreKind.POSTGRESQL,
        quote=('"', '"'),
        paramstyle="format",
        max_identifier_len=63,
        string_type="VARCHAR({size})",
        string_limit=10_485_760,
        long_string_type="TEXT",
        integer_type="BIGINT",
        decimal_type="NUMERIC",
        date_type="TIMESTAMP",
        boolean_type="BOOLEAN",
    ),
    StoreKind.MYSQL: Dialect(
        kind=StoreKind.MYSQL,
        quote=("`", "`"),
        paramstyle="format",
        max_identifier_len=64,
        string_type="VARCHAR({size})",
        string_limit=16_383,
        long_string_type="LONGTEXT",
        integer_type="BIGINT",
        decimal_type="DECIMAL(38, 10)",
        date_type="DATETIME",
        boolean_type="BOOLEAN",
    ),
    StoreKind.SQLSERVER: Dialect(
        kind=StoreKind.SQLSERVER,
        quote=("[", "]"),
        paramstyle="qmark",
        max_identifier_len=128,
        string_type="NVARCHAR({size})",
        string_limit=4000,
        long_string_type="NVARCHAR(MAX)",
        integer_type="BIGINT",
        decimal_type="DECIMAL(38, 10)",
        date_type="DATETIME2",
        boolean_type="BIT",
    ),
    StoreKind.ORACLE: Dialect(
        kind=StoreKind.ORACLE,
        quote=('"', '"'),
        paramstyle="numeric",
        max_identifier_len=128,
        string_type="VARCHAR2({size} CHAR)",
        string_limit=4000,
        long_string_type="CLOB",
        integer_type="NUMBER(19)",
        decimal_type="NUMBER",
        date_type="DATE",
        boolean_type="NUMBER(1)",
    ),
    StoreKind.INTERNAL: Dialect(
        kind=StoreKind.INTERNAL,
        quote=('"', '"'),
        paramstyle="qmark",
        max_identifier_len=128,
        string_type="VARCHAR({size})",
        string_limit=1_000_000_000,
        long_string_type="TEXT",
        integer_type="INTEGER",
        decimal_type="NUMERIC",
        date_type="DATE",
        boolean_type="BOOLEAN",
    ),
}


def store_kind(provider: str) -> StoreKind:
    """
    Map a provider name onto its ``StoreKind``.

    Raises:
        UnsupportedProvider: If ``provider`` is not a supported store kind.
    """
    try:
        return StoreKind(provider.strip().lower())
    except ValueError:
        raise UnsupportedProvider(provider, SUPPORTED_PROVIDERS) from None


def dialect_for(provider: str | StoreKind) -> Dialect:
    kind = provider if isinstance(provider, StoreKind) else store_kind(provider)
    return DIALECTS[kind]
