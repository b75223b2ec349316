"""
Importer orchestrator.

Wires the stages in order for a single request:

  1. Output check   → resolve the provider (``UnsupportedProvider`` raises
                      here, before any file or target I/O)
  2. Fingerprint    → deterministic cache key for the request
  3. Inspection     → ``InspectionCache.get_or_compute`` runs the sniff at
                      most once per fingerprint
  4. Plan           → input + schema + output, built fresh per request
  5. Load           → ``batch_exec.execute``

Error policy:
  - Inspection errors (``SourceUnreadable``, ``EmptySource``) and
    ``UnsupportedProvider`` propagate to the caller.
  - Anything raised by the load stage is logged at ERROR and reported as
    the zero-valued ``LoadResult`` (``rows=0``, ``view=""``); the failure
    detail is kept in ``result.entities``.

Usage::

    from junkdrawer.models.models import ImportRequest
    from junkdrawer.pipeline import run_import

    result = run_import(ImportRequest(file="customers.csv", provider="sqlite", database="junk.db"))
    print(result.rows, result.view)
"""

from __future__ import annotations

import logging
import threading

from junkdrawer import plan as planner
from junkdrawer.configs.config import ImportConfig
from junkdrawer.configs.exceptions import JunkDrawerError
from junkdrawer.discovery import sniff
from junkdrawer.discovery.cache import InspectionCache, default_cache
from junkdrawer.loaders.batch_exec import execute
from junkdrawer.models.models import EntityStatus, ImportRequest, InferredSchema, LoadResult
from junkdrawer.utils.fingerprint import fingerprint

logger = logging.getLogger(__name__)


class Importer:
    """
    Runs import requests against one configuration and one inspection cache.

    Args:
        config: Base configuration; defaults to ``ImportConfig()`` (environment).
        cache:  Inspection cache; defaults to the process-wide ``default_cache``.
    """

    def __init__(
        self,
        config: ImportConfig | None = None,
        cache: InspectionCache | None = None,
    ) -> None:
        self.config = config if config is not None else ImportConfig()
        self.cache = cache if cache is not None else default_cache

    def inspect(self, request: ImportRequest) -> InferredSchema:
        """
        Return the (possibly cached) inferred schema for ``request``.

        Raises:
            UnsupportedProvider: Unknown output provider.
            SourceUnreadable:    File missing or unreadable.
            EmptySource:         No data rows.
        """
        planner.resolve_output(request, self.config)
        key = fingerprint(request, self.config)
        return self.cache.get_or_compute(
            key,
            lambda: sniff.inspect(request.path, self.config, request.types),
        )

    def run(
        self,
        request: ImportRequest,
        cancel: threading.Event | None = None,
    ) -> LoadResult:
        """
        Inspect (or reuse the cached inspection), plan and load ``request``.

        Returns:
            ``LoadResult`` with the inserted row count and target name, or
            the zero-valued result when the load fails.
        """
        schema = self.inspect(request)
        plan = planner.build(request, schema, self.config)
        logger.info(
            "Loading %s into %s table %s.",
            request.path.name, plan.output.provider, plan.table,
        )

        try:
            return execute(plan, self.config, cancel=cancel)
        except JunkDrawerError as e:
            logger.error("Load failed for %s: %s", request.path.name, e)
            error = e
        except Exception as e:
            logger.exception("Unexpected load failure for %s", request.path.name)
            error = e

        return LoadResult(entities=[EntityStatus(name=plan.table, error=str(error))])


def run_import(
    request: ImportRequest,
    config: ImportConfig | None = None,
    cancel: threading.Event | None = None,
) -> LoadResult:
    """Run ``request`` with the process-wide inspection cache."""
    return Importer(config).run(request, cancel=cancel)
