"""
Load execution (The Heavy Lift).

Executes a ``LoadPlan``: opens the store, creates the target table when it
is absent, streams the source through the row generator and inserts it in
batches of ``config.batch_size``.

Key behaviours:
  - The store connection is held only for this call and closed on every
    exit path (``Store`` is a context manager).
  - Each batch is committed on its own; a failure part-way leaves the
    earlier batches in place.
  - The optional ``cancel`` event is checked before every batch and raises
    ``LoadCancelled`` once set.
  - Source failures during the full pass surface as ``SourceReadError``;
    store failures as ``TargetUnwritable``.

Usage::

    from junkdrawer.loaders.batch_exec import execute

    result = execute(plan, config)
    print(f"Inserted {result.rows} rows into {result.view}.")
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from junkdrawer.configs.config import ImportConfig
from junkdrawer.configs.exceptions import LoadCancelled, SourceReadError, SourceUnreadable
from junkdrawer.discovery.base import AbstractSource
from junkdrawer.discovery.excel_reader import spreadsheet_reader
from junkdrawer.discovery.text_reader import DelimitedReader, FixedWidthReader
from junkdrawer.loaders.stores import open_store
from junkdrawer.models.models import EntityStatus, LoadPlan, LoadResult
from junkdrawer.transformers.row_generator import batched, generate_rows

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def execute(
    plan: LoadPlan,
    config: ImportConfig,
    cancel: threading.Event | None = None,
    connection: Any = None,
) -> LoadResult:
    """
    Load every row of ``plan.input`` into ``plan.table``.

    Args:
        plan:       The plan built for this request.
        config:     Supplies ``batch_size`` and string sizing.
        cancel:     Optional event; once set, the load stops before the
                    next batch.
        connection: Already-open DB-API connection to use (tests, callers
                    that pool connections).  Left open on return.

    Returns:
        ``LoadResult`` with the inserted row count and target name.

    Raises:
        TargetUnwritable: Connect, CREATE TABLE or INSERT failure.
        SourceReadError:  The source could not be read in full.
        LoadCancelled:    ``cancel`` was set between batches.
    """
    status = EntityStatus(name=plan.table)
    source_path = plan.input.path

    with open_store(plan.output, config, connection=connection, source_path=source_path) as store:
        if store.table_exists(plan.table):
            logger.info("Table %s exists; appending.", plan.table)
        else:
            ddl = store.create_table(plan.table, plan.schema)
            status.created = True
            logger.debug("DDL:\n%s", ddl)

        with _open_source(plan) as source:
            for batch in batched(generate_rows(source, plan.schema), config.batch_size):
                if cancel is not None and cancel.is_set():
                    raise LoadCancelled(
                        f"Load into {plan.table} cancelled after {status.inserts} row(s).",
                        source_path=str(source_path),
                    )
                status.inserts += store.insert_many(plan.table, plan.schema, batch)
                logger.debug("%s: %d row(s) inserted so far.", plan.table, status.inserts)

    logger.info(
        "Loaded %d row(s) from %s into %s (%s).",
        status.inserts, source_path.name, plan.table, plan.output.provider,
    )
    return LoadResult(rows=status.inserts, view=plan.table, entities=[status])


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

class _LoadSource:
    """Open the plan's reader, mapping open failures to ``SourceReadError``."""

    def __init__(self, source: AbstractSource) -> None:
        self.source = source

    def __enter__(self) -> AbstractSource:
        try:
            self.source.open()
        except SourceUnreadable as e:
            raise SourceReadError(str(e), source_path=e.source_path) from e
        return self.source

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.source.close()
        return None


def _open_source(plan: LoadPlan) -> _LoadSource:
    """Pick the reader matching how the file was inspected."""
    input_ = plan.input
    if input_.provider == "spreadsheet":
        return _LoadSource(spreadsheet_reader(input_.path))
    if input_.provider == "fixed":
        slices = [(col.start or 0, col.width) for col in plan.schema.columns]
        return _LoadSource(FixedWidthReader(input_.path, slices))
    return _LoadSource(DelimitedReader(input_.path, input_.delimiter or ","))
