"""
Oracle bind type mapping for ``cursor.setinputsizes()``.

``oracledb`` is imported lazily inside each function — this allows
``inspect`` and the other backends to work without ``python-oracledb``
being importable, since only the Oracle store reaches this module.

Mapping rules:
  - string  → ``oracledb.DB_TYPE_VARCHAR``, or ``oracledb.DB_TYPE_CLOB`` for
              columns ``ddl_builder`` creates as CLOB
  - integer → ``oracledb.DB_TYPE_NUMBER``
  - decimal → ``oracledb.DB_TYPE_NUMBER``
  - date    → ``oracledb.DB_TYPE_DATE``
  - boolean → ``oracledb.DB_TYPE_NUMBER`` (stored as NUMBER(1))
"""

from __future__ import annotations

from junkdrawer.configs.config import ImportConfig
from junkdrawer.loaders.ddl_builder import is_long_string
from junkdrawer.loaders.dialects import DIALECTS, StoreKind
from junkdrawer.models.models import DataType, InferredSchema


def oracle_type_for(data_type: DataType) -> object:
    """
    Return the ``oracledb`` DB type constant for an inferred type.

    Raises:
        KeyError: If ``data_type`` is not in the type map.
    """
    import oracledb  # lazy — only needed when actually loading into Oracle

    type_map: dict[str, object] = {
        "string":  oracledb.DB_TYPE_VARCHAR,
        "integer": oracledb.DB_TYPE_NUMBER,
        "decimal": oracledb.DB_TYPE_NUMBER,
        "date":    oracledb.DB_TYPE_DATE,
        "boolean": oracledb.DB_TYPE_NUMBER,
    }

    if data_type not in type_map:
        raise KeyError(
            f"No Oracle bind type mapping for data_type '{data_type}'. "
            f"Valid types: {list(type_map)}"
        )
    return type_map[data_type]


def build_input_sizes(schema: InferredSchema, config: ImportConfig) -> list[object]:
    """
    Build the positional argument list for ``cursor.setinputsizes()``.

    One ``oracledb`` DB type constant per column, in schema order (which
    matches the ``:1, :2 …`` binds of the INSERT).  String columns too long
    for VARCHAR2 are bound as CLOB, matching their DDL.
    """
    import oracledb  # lazy — only needed when actually loading into Oracle

    dialect = DIALECTS[StoreKind.ORACLE]
    return [
        oracledb.DB_TYPE_CLOB if is_long_string(col, dialect, config) else oracle_type_for(col.data_type)
        for col in schema.columns
    ]
