"""
Bash-style env file loader.

Handles the legacy key=value format used for shared connection settings:

    junk_dev_server='db-dev.example.com'
    junk_dev_password='secret'
    JUNK_SERVER=junk_{env}_server     <- indirect reference, resolved using env
    JUNK_PASSWORD=junk_dev_password   <- direct key reference

Resolved values are merged into ``os.environ`` by ``apply_env_file`` so that
``ImportConfig`` picks them up through its environment defaults.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def strip_quotes(val: str) -> str:
    """
    Strip matching outer quote pairs only.
    'myvalue'  -> myvalue
    "myvalue"  -> myvalue
    myvalue    -> myvalue
    'myvalue"  -> 'myvalue"  (mismatched, left alone)
    """
    if len(val) >= 2:
        if (val[0] == "'" and val[-1] == "'") or \
           (val[0] == '"' and val[-1] == '"'):
            return val[1:-1]
    return val


def parse_env_file(path: Path | str, env: str = "") -> dict[str, str]:
    """
    Parse a key=value file and resolve indirect references.

    Given env=dev, a variable like ``JUNK_SERVER=junk_{env}_server`` is
    resolved to the value of ``junk_dev_server``; ``JUNK_SERVER=other_key``
    is resolved to the value of ``other_key`` when that key exists.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw: dict[str, str] = {}
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()

            # skip blanks, comments, and shebangs
            if not line or line.startswith("#") or line.startswith("!"):
                continue
            if "=" not in line:
                continue

            key, _, val = line.partition("=")
            raw[key.strip()] = strip_quotes(val.strip())

    resolved: dict[str, str] = {}
    for key, val in raw.items():
        candidate = val.replace("{env}", env)
        if candidate in raw:
            resolved[key] = raw[candidate]
        elif val in raw:
            resolved[key] = raw[val]
        else:
            resolved[key] = val

    return resolved


def apply_env_file(path: Path | str, env: str = "") -> int:
    """Merge a parsed env file into ``os.environ``; returns the variable count."""
    values = parse_env_file(path, env)
    os.environ.update(values)
    logger.debug("Loaded %d config variables from %s", len(values), path)
    return len(values)
