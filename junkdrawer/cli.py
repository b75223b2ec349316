"""
JunkDrawer — flat file to database importer CLI.

Reads a delimited, fixed-width or spreadsheet file, infers its layout,
header and column types, and loads it into the configured store.

Environment variables read (a ``.env`` file in the working directory is
loaded first; ``--config FILE --env NAME`` merges a bash-style config
file on top):
    JUNK_PROVIDER         Default store kind (sqlite, postgresql, mysql,
                          sqlserver, oracle, internal)
    JUNK_SERVER           Default server / host
    JUNK_DATABASE         Default database (file path for sqlite)
    JUNK_USER             Default user
    JUNK_PASSWORD         Default password
    JUNK_PORT             Default port (0 = backend default)
    JUNK_SAMPLE_SIZE      Records read by the inspector
    JUNK_TYPES            Comma list of types the inspector tries
    BATCH_SIZE            Rows per insert batch
    STRING_GROWTH_BUFFER  Characters added to observed string lengths
    ERROR_DIR             Where the batch error log is appended
    ODBC_DRIVER           ODBC driver name for SQL Server

Commands:
    import    Inspect (or reuse the cached inspection) and load the file.
    inspect   Print the inferred schema as JSON.  No target connection.

Usage examples:
    junkdrawer import data/customers.csv --database junk.sqlite3
    junkdrawer import data/orders.txt --provider postgresql --server db01 \\
        --database staging --user loader --password secret --table ORDERS
    junkdrawer import data/legacy.xls --types "Created:date"
    junkdrawer inspect data/customers.csv --ddl

Exit codes:
    0  Success (rows loaded, or an empty-but-successful load)
    1  Load failed — zero result (see the log)
    2  Configuration / argument error, unreadable or empty source
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from junkdrawer.configs.config import SUPPORTED_PROVIDERS, ImportConfig
from junkdrawer.configs.env_file import apply_env_file
from junkdrawer.configs.exceptions import EmptySource, SourceUnreadable, UnsupportedProvider
from junkdrawer.loaders.ddl_builder import build_create_table
from junkdrawer.loaders.dialects import dialect_for
from junkdrawer.models.models import ImportRequest, LoadResult
from junkdrawer.pipeline import Importer
from junkdrawer.plan import build

logger = logging.getLogger(__name__)

_CONFIG_ERRORS = (UnsupportedProvider, SourceUnreadable, EmptySource)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        level=level,
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Config — env vars (.env / --config file) + optional CLI overrides
# ---------------------------------------------------------------------------

def _build_config(args: argparse.Namespace) -> ImportConfig:
    """
    Priority order for each setting:
      1. CLI flag (--batch-size, --sample-size, --error-dir)
      2. Environment variable (.env, --config file, or the shell)
      3. ImportConfig default
    """
    config = ImportConfig()
    overrides: dict = {}
    if getattr(args, "batch_size", None):
        overrides["batch_size"] = args.batch_size
    if getattr(args, "sample_size", None):
        overrides["sample_size"] = args.sample_size
    if getattr(args, "error_dir", None):
        overrides["error_dir"] = Path(args.error_dir)
    return dataclasses.replace(config, **overrides) if overrides else config


def _build_request(args: argparse.Namespace) -> ImportRequest:
    return ImportRequest(
        file=args.file,
        provider=args.provider,
        server=getattr(args, "server", None),
        database=getattr(args, "database", None),
        user=getattr(args, "user", None),
        password=getattr(args, "password", None),
        port=getattr(args, "port", None),
        table=getattr(args, "table", None),
        types=tuple(args.types or ()),
    )


# ---------------------------------------------------------------------------
# Result printer
# ---------------------------------------------------------------------------

def _print_result(request: ImportRequest, result: LoadResult) -> None:
    if not result.success:
        print(f"\n✗ FAILED: {request.path.name}")
        for entity in result.entities:
            if entity.error:
                print(f"  Reason : {entity.error}")
        return

    print(f"\n✓ SUCCESS: {request.path.name}")
    print(f"  Table    : {result.view}")
    print(f"  Rows     : {result.rows}")
    for entity in result.entities:
        if entity.created:
            print(f"  Created  : {entity.name}")


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------

def _cmd_import(args: argparse.Namespace) -> int:
    config = _build_config(args)
    request = _build_request(args)
    try:
        result = Importer(config).run(request)
    except _CONFIG_ERRORS as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    _print_result(request, result)
    return 0 if result.success else 1


def _cmd_inspect(args: argparse.Namespace) -> int:
    config = _build_config(args)
    request = _build_request(args)
    try:
        schema = Importer(config).inspect(request)
    except _CONFIG_ERRORS as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    print(json.dumps(json.loads(schema.to_json()), indent=2, sort_keys=True))
    if args.ddl:
        plan = build(request, schema, config)
        print()
        print(build_create_table(plan.table, schema, dialect_for(plan.output.provider), config))
    return 0


# ---------------------------------------------------------------------------
# Argument parser (importable for tests)
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="junkdrawer",
        description="Flat file → database importer with layout and type inference",
        epilog=(
            "Connection defaults (JUNK_PROVIDER, JUNK_SERVER, JUNK_DATABASE, ...) are\n"
            "read from environment variables — set them in .env or a --config file."
        ),
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    parser.add_argument("--config", default=None, help="bash-style key=value config file")
    parser.add_argument("--env", default="", help="environment name for {env} keys in --config")

    sub = parser.add_subparsers(dest="command", required=True)

    def _source_args(p):
        p.add_argument("file")
        p.add_argument("--provider", default=None, choices=SUPPORTED_PROVIDERS)
        p.add_argument("--types", nargs="+", default=None, metavar="TYPE",
                       help="bare type (date) or column:type (Created:date)")

    def _config_args(p):
        p.add_argument("--batch-size",  type=int, default=None, dest="batch_size")
        p.add_argument("--sample-size", type=int, default=None, dest="sample_size")
        p.add_argument("--error-dir",   default=None, dest="error_dir")

    p_import = sub.add_parser("import", help="Inspect and load a file")
    _source_args(p_import)
    _config_args(p_import)
    p_import.add_argument("--server",   default=None)
    p_import.add_argument("--database", default=None)
    p_import.add_argument("--user",     default=None)
    p_import.add_argument("--password", default=None)
    p_import.add_argument("--port",     type=int, default=None)
    p_import.add_argument("--table",    default=None)

    p_inspect = sub.add_parser("inspect", help="Print the inferred schema (no target connection)")
    _source_args(p_inspect)
    _config_args(p_inspect)
    p_inspect.add_argument("--ddl", action="store_true", help="also print the CREATE TABLE")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    load_dotenv()
    if args.config:
        try:
            count = apply_env_file(args.config, args.env)
        except FileNotFoundError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            sys.exit(2)
        logger.debug("Loaded %d setting(s) from %s", count, args.config)

    handlers = {"import": _cmd_import, "inspect": _cmd_inspect}
    sys.exit(handlers[args.command](args))


if __name__ == "__main__":
    main()
