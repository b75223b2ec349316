"""
Core data models for the importer.

ImportRequest     — one invocation's file and overrides (immutable).
ColumnDescriptor  — inferred name / type / length (and fixed-width slice).
InferredSchema    — ordered columns plus layout; the unit stored in the cache.
LoadPlan          — input + schema + output, built fresh per request.
LoadResult        — rows inserted and target name, returned to the caller.

Serialization
-------------
``InferredSchema`` round-trips through JSON (``to_json`` / ``from_json``).
The inspection cache keeps only the JSON text, so every cache hit hands
out a fresh immutable copy.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Literal


# Value types a column can be inferred as (or overridden to).
DataType = Literal["string", "integer", "decimal", "date", "boolean"]

# How the source is read.
ProviderKind = Literal["delimited", "fixed", "spreadsheet"]


@dataclass(frozen=True, slots=True)
class ImportRequest:
    """
    A single import invocation.

    Attributes:
        file:     Path to the source file (required).
        provider: Output store kind (``sqlite``, ``postgresql`` …); ``None``
                  keeps the configured default.
        server, database, user, password, port: Output connection overrides.
        table:    Target table/view name; ``None`` derives it from the file name.
        types:    Type override entries — bare types (``"date"``) restrict
                  the inspector's candidates, ``"column:type"`` pins a column.
    """

    file: str
    provider: str | None = None
    server: str | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = None
    port: int | None = None
    table: str | None = None
    types: tuple[str, ...] = ()

    @property
    def path(self) -> Path:
        """Absolute, resolved path of the source file."""
        return Path(self.file).expanduser().resolve()


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    """
    Metadata for a single inferred column.

    Attributes:
        name:       Column name, unique within the schema.
        data_type:  Inferred (or overridden) value type.
        max_length: Max character length observed in the sample.
        start:      Fixed-width only: 0-based offset of the column.
        width:      Fixed-width only: character width, ``None`` = to end of line.
    """

    name: str
    data_type: DataType = "string"
    max_length: int = 0
    start: int | None = None
    width: int | None = None


@dataclass(frozen=True, slots=True)
class InferredSchema:
    """
    The result of one inspection.

    Attributes:
        provider:   How the source is read (delimited / fixed / spreadsheet).
        columns:    Ordered column descriptors.
        delimiter:  Field delimiter for delimited sources.
        has_header: True when the first record holds column names.
        sheet:      Sheet name for spreadsheet sources.
        source:     Path of the inspected file.
    """

    provider: ProviderKind
    columns: tuple[ColumnDescriptor, ...]
    delimiter: str | None = None
    has_header: bool = False
    sheet: str | None = None
    source: str = ""

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.columns]

    def column(self, name: str) -> ColumnDescriptor:
        """Return the column called ``name``; raises ``KeyError`` if absent."""
        for col in self.columns:
            if col.name == name:
                return col
        raise KeyError(name)

    def to_json(self) -> str:
        """Serialize to a JSON string (the cached form)."""
        return json.dumps(asdict(self), sort_keys=True)

    @classmethod
    def from_json(cls, text: str) -> "InferredSchema":
        data = json.loads(text)
        columns = tuple(ColumnDescriptor(**c) for c in data.pop("columns"))
        return cls(columns=columns, **data)


@dataclass(frozen=True, slots=True)
class InputDescriptor:
    path: Path
    provider: ProviderKind
    delimiter: str | None = None
    has_header: bool = False
    sheet: str | None = None


@dataclass(frozen=True, slots=True)
class OutputDescriptor:
    """
    Resolved output connection.

    Attributes:
        provider: Store kind name (one of ``SUPPORTED_PROVIDERS``).
        table:    Sanitized target table/view name (empty until planned).
    """

    provider: str
    server: str = ""
    database: str = ""
    user: str = ""
    password: str = field(default="", repr=False)
    port: int = 0
    table: str = ""


@dataclass(frozen=True, slots=True)
class LoadPlan:
    input: InputDescriptor
    schema: InferredSchema
    output: OutputDescriptor

    @property
    def table(self) -> str:
        return self.output.table


@dataclass
class EntityStatus:
    """
    Per-entity outcome of a load.

    Attributes:
        name:    Target table/view name.
        inserts: Rows successfully inserted.
        created: True if the table was created during this load.
        error:   Error message when the load failed, else ``None``.
    """

    name: str
    inserts: int = 0
    created: bool = False
    error: str | None = None


@dataclass
class LoadResult:
    """
    Caller-facing outcome of an import.

    A failed load is reported as ``rows=0`` and ``view=""``; the failure
    detail lives in the logs and in ``entities`` when the executor got far
    enough to record it.
    """

    rows: int = 0
    view: str = ""
    entities: list[EntityStatus] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.view) and all(e.error is None for e in self.entities)
