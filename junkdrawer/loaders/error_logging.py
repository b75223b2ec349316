"""
Batch error logging for the importer.

Appends row-level insert errors (Oracle ``batcherrors``) to a single
``.log`` file in ``error_dir``.  Each entry includes the timestamp, source
file name, target table, row offset within the batch, error code, and
error message.

Log format (one line per error)::

    2024-01-15T09:30:00 | source=contacts.csv | table=contacts | row_offset=42 | code=ORA-12899 | msg=value too large ...

The log file is named ``junkdrawer_batch_errors.log`` and is appended to
on every run — never truncated.  Errors from multiple files and runs end
up in one place for easy ``grep``.

Usage::

    from junkdrawer.loaders.error_logging import log_batch_errors

    errors = cursor.getbatcherrors()
    if errors:
        log_batch_errors(errors, source_path=path, error_dir=config.error_dir, table="contacts")
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

LOG_FILENAME = "junkdrawer_batch_errors.log"

_CODE_RE = re.compile(r"(?:ORA|DPY)-\d+")


@dataclass(frozen=True, slots=True)
class RejectedRow:
    """A rejected row in the same shape as an ``oracledb`` batch error."""

    offset: int
    message: str


def log_batch_errors(
    batch_errors: list,
    source_path: Path | str,
    error_dir: Path | str,
    table: str = "",
) -> Path:
    """
    Append ``batch_errors`` from ``cursor.getbatcherrors()`` to the log file.

    Args:
        batch_errors: Error objects with ``.offset`` (int) and ``.message``
                      (str) attributes, the ``python-oracledb`` contract.
        source_path:  Path of the file being loaded (used in log entries).
        error_dir:    Directory where the log file lives.  Created if absent.
        table:        Target table name.

    Returns:
        Path to the log file that was written.
    """
    error_dir = Path(error_dir)
    error_dir.mkdir(parents=True, exist_ok=True)

    log_path = error_dir / LOG_FILENAME
    source_name = Path(source_path).name
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")

    with open(log_path, "a", encoding="utf-8") as f:
        for err in batch_errors:
            message = str(err.message)
            f.write(
                f"{timestamp} | "
                f"source={source_name} | "
                f"table={table} | "
                f"row_offset={err.offset} | "
                f"code={extract_error_code(message)} | "
                f"msg={message.strip()}\n"
            )

    return log_path


def extract_error_code(message: str) -> str:
    """
    Extract the ``ORA-XXXXX`` / ``DPY-XXXX`` code from an error message.

    Returns ``'UNKNOWN'`` if no code is found.
    """
    match = _CODE_RE.search(message)
    return match.group(0) if match else "UNKNOWN"


def count_errors_in_log(error_dir: Path | str) -> int:
    """
    Count the number of error lines in the log file.

    Returns 0 if the log file does not exist.
    """
    log_path = Path(error_dir) / LOG_FILENAME
    if not log_path.exists():
        return 0
    with open(log_path, encoding="utf-8") as f:
        return sum(1 for line in f if line.strip())
