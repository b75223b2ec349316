"""
Process-wide inspection cache.

Maps a request fingerprint to the serialized ``InferredSchema`` produced by
the first inspection of that fingerprint.  Later requests with the same
fingerprint reuse it and skip the sampling pass entirely.

Concurrency
-----------
A table-level lock guards the key → cell mapping only; each cell carries
its own lock.  The first caller for a key computes while holding that
key's lock, so concurrent callers for the same key block and then read
the stored result, while callers for other keys proceed in parallel.  A
compute function that raises leaves the cell empty and the next caller
tries again.

Entries are never evicted; memory grows with the number of distinct
fingerprints seen by the process.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from junkdrawer.models.models import InferredSchema

logger = logging.getLogger(__name__)


class _Cell:
    __slots__ = ("lock", "value")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.value: str | None = None


class InspectionCache:
    """
    Fingerprint → serialized schema table with per-key single initialization.

    Attributes:
        hits:   Number of calls answered from the cache.
        misses: Number of calls that ran the compute function successfully.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cells: dict[str, _Cell] = {}
        self.hits = 0
        self.misses = 0

    def get_or_compute(
        self,
        key: str,
        compute: Callable[[], InferredSchema],
    ) -> InferredSchema:
        """
        Return the schema cached under ``key``, computing it on first use.

        ``compute`` runs at most once per key for as long as it succeeds;
        every caller receives its own deserialized copy.
        """
        with self._lock:
            cell = self._cells.setdefault(key, _Cell())

        with cell.lock:
            if cell.value is not None:
                self._count_hit()
                logger.info("Using cached delimiter, header, type, and string-length inspection.")
                return InferredSchema.from_json(cell.value)

            schema = compute()
            cell.value = schema.to_json()
            self._count_miss()
            logger.info("Cached delimiter, header, type, and string-length inspection.")
            return InferredSchema.from_json(cell.value)

    def get(self, key: str) -> InferredSchema | None:
        """Return the cached schema for ``key`` without computing, or ``None``."""
        with self._lock:
            cell = self._cells.get(key)
        if cell is None:
            return None
        with cell.lock:
            if cell.value is None:
                return None
            return InferredSchema.from_json(cell.value)

    def _count_hit(self) -> None:
        with self._lock:
            self.hits += 1

    def _count_miss(self) -> None:
        with self._lock:
            self.misses += 1

    def clear(self) -> None:
        with self._lock:
            self._cells.clear()
            self.hits = 0
            self.misses = 0

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            cells = list(self._cells.values())
        return sum(1 for cell in cells if cell.value is not None)


# The cache shared by every importer in the process unless one is passed in.
default_cache = InspectionCache()
