"""
Load plan builder.

Combines a request, its inferred schema and the base configuration into
an immutable ``LoadPlan``: where to read (``InputDescriptor``), what the
rows look like (``InferredSchema``) and where to write
(``OutputDescriptor``).  A plan is built fresh for every request; only
the schema comes from the cache.

Override semantics
------------------
Request fields override the base output only when supplied: ``None``,
empty / whitespace strings and port ``0`` leave the base value in place.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from junkdrawer.configs.config import ImportConfig
from junkdrawer.loaders.dialects import dialect_for
from junkdrawer.models.models import (
    ImportRequest,
    InferredSchema,
    InputDescriptor,
    LoadPlan,
    OutputDescriptor,
)
from junkdrawer.utils.fingerprint import resolved_provider
from junkdrawer.utils.identifiers import to_table_name


def resolve_output(request: ImportRequest, config: ImportConfig) -> OutputDescriptor:
    """
    Apply the request's output overrides onto the configured base output.

    Raises:
        UnsupportedProvider: If the resolved provider is not a store kind.
    """
    provider = dialect_for(resolved_provider(request, config)).kind.value

    base = OutputDescriptor(
        provider=provider,
        server=config.server,
        database=config.database,
        user=config.user,
        password=config.password,
        port=config.port,
    )
    overrides = {
        name: _clean(getattr(request, name))
        for name in ("server", "database", "user", "password", "port")
        if _is_set(getattr(request, name))
    }
    return dataclasses.replace(base, **overrides)


def build(request: ImportRequest, schema: InferredSchema, config: ImportConfig) -> LoadPlan:
    """
    Build the load plan for ``request``.

    The target name is ``request.table`` when given, otherwise the file's
    base name normalized to an identifier within the store's length limit.

    Raises:
        UnsupportedProvider: If the resolved provider is not a store kind.
    """
    output = resolve_output(request, config)
    if _is_set(request.table):
        table = request.table.strip()
    else:
        table = to_table_name(request.path, dialect_for(output.provider).max_identifier_len)
    output = dataclasses.replace(output, table=table)

    input_ = InputDescriptor(
        path=request.path,
        provider=schema.provider,
        delimiter=schema.delimiter,
        has_header=schema.has_header,
        sheet=schema.sheet,
    )
    return LoadPlan(input=input_, schema=schema, output=output)


def _is_set(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, int):
        return value != 0
    return True


def _clean(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value
