"""
Cache keys for inspection results.

A fingerprint is the SHA-256 of a canonical JSON document built from the
parts of a request that can change the inferred schema:

  - the resolved absolute source path
  - the input kind implied by the file extension (text / spreadsheet)
  - the resolved output provider
  - the valid type override entries, in request order
  - the inspector settings (``sample_size``, configured default types)

Server, database, credentials, port and table name are left out on purpose:
they only decide *where* rows go, so two requests that differ only in those
share one cached schema.  File contents and modification time are not part
of the key; a changed file under the same path reuses the cached schema.
"""

from __future__ import annotations

import hashlib
import json

from junkdrawer.configs.config import SPREADSHEET_EXTENSIONS, SUPPORTED_TYPES, ImportConfig
from junkdrawer.models.models import ImportRequest


def valid_type_entries(types: tuple[str, ...] | list[str]) -> list[str]:
    """
    Normalize type override entries, dropping any whose type is unsupported.

    ``"date"`` and ``"Created:date"`` are both valid; ``"Created:blob"`` and
    ``"uuid"`` are dropped.
    """
    valid = []
    for entry in types:
        name, sep, data_type = entry.rpartition(":")
        data_type = data_type.strip().lower()
        if data_type not in SUPPORTED_TYPES:
            continue
        if sep and not name.strip():
            continue
        valid.append(f"{name.strip()}:{data_type}" if sep else data_type)
    return valid


def resolved_provider(request: ImportRequest, config: ImportConfig) -> str:
    """Output provider after applying the request override onto the base config."""
    if request.provider:
        return request.provider.strip().lower()
    return config.provider


def fingerprint(request: ImportRequest, config: ImportConfig) -> str:
    """
    Return the deterministic cache key for ``request`` under ``config``.

    Pure: the same request and configuration always give the same key.
    """
    path = request.path
    document = {
        "source": str(path),
        "input": "spreadsheet" if path.suffix.lower() in SPREADSHEET_EXTENSIONS else "text",
        "provider": resolved_provider(request, config),
        "types": valid_type_entries(request.types),
        "sample_size": config.sample_size,
        "default_types": list(config.types),
    }
    canonical = json.dumps(document, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
