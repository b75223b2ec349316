"""
Custom exceptions for the junkdrawer importer.

Hierarchy:
    JunkDrawerError
    ├── SourceUnreadable      File missing, locked, undecodable or corrupt.
    ├── EmptySource           The file has no data rows.
    ├── UnsupportedProvider   Output provider is not a known store kind.
    ├── TargetUnwritable      Output store could not be created or written.
    ├── SourceReadError       I/O or parse failure during the full read pass.
    └── LoadCancelled         Caller's cancel signal was set between batches.

Inspection errors and ``UnsupportedProvider`` reach the caller; load errors
are caught by the importer, logged, and turned into a zero-row result.
"""

from __future__ import annotations


class JunkDrawerError(Exception):
    """
    Base class for all importer errors.

    Args:
        message: Human-readable description of the failure.
        source_path: Path of the file being processed, if known.
    """

    def __init__(self, message: str, source_path: str | None = None) -> None:
        super().__init__(message)
        self.source_path = source_path

    def __str__(self) -> str:
        base = super().__str__()
        if self.source_path:
            return f"{base} | source={self.source_path}"
        return base


class SourceUnreadable(JunkDrawerError):
    """Raised when the source file cannot be opened or parsed for inspection."""


class EmptySource(JunkDrawerError):
    """Raised when inspection finds no data rows."""


class UnsupportedProvider(JunkDrawerError):
    """
    Raised when a requested output provider is not a supported store kind.

    Args:
        provider: The rejected provider name.
        supported: The provider names that would have been accepted.
    """

    def __init__(self, provider: str, supported: tuple[str, ...] = ()) -> None:
        super().__init__(f"Unsupported output provider {provider!r}.")
        self.provider = provider
        self.supported = supported

    def __str__(self) -> str:
        base = super().__str__()
        if self.supported:
            return f"{base} | supported={','.join(self.supported)}"
        return base


class TargetUnwritable(JunkDrawerError):
    """
    Raised when the output store cannot be connected to, created, or written.

    Args:
        message: Human-readable description.
        table: Target table/view name.
        ddl: The statement that failed, if available.
    """

    def __init__(
        self,
        message: str,
        table: str | None = None,
        ddl: str | None = None,
    ) -> None:
        super().__init__(message)
        self.table = table
        self.ddl = ddl

    def __str__(self) -> str:
        base = super().__str__()
        parts = []
        if self.table:
            parts.append(f"table={self.table}")
        if self.ddl:
            parts.append(f"ddl={self.ddl!r}")
        if parts:
            return f"{base} | {' '.join(parts)}"
        return base


class SourceReadError(JunkDrawerError):
    """
    Raised for I/O failures while streaming the full source.

    Args:
        message: Human-readable description.
        source_path: Path of the file being read.
        row_number: 1-based record number where reading failed, if known.
    """

    def __init__(
        self,
        message: str,
        source_path: str | None = None,
        row_number: int | None = None,
    ) -> None:
        super().__init__(message, source_path)
        self.row_number = row_number

    def __str__(self) -> str:
        base = super().__str__()
        if self.row_number is not None:
            return f"{base} | row={self.row_number}"
        return base


class LoadCancelled(JunkDrawerError):
    """Raised when the caller's cancel signal is observed between batches."""
