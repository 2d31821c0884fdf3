from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from catalog_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from catalog_import.db.catalog_store import PostgresCatalogWriter, PostgresSnapshotStore, ensure_schema
from catalog_import.db.connection import open_connection
from catalog_import.db.memory_store import InMemoryCatalog
from catalog_import.logging.error_log import ErrorLogBuffer
from catalog_import.logging.init import log_summary, setup_logging
from catalog_import.models.config_models import ImportConfig
from catalog_import.models.import_session import ApplyOutcome, ImportSession
from catalog_import.models.validation import Severity, ValidationResult
from catalog_import.readers import FileFormat, ParseError
from catalog_import.services.export import export_filename, serialize
from catalog_import.services.orchestrator import ApplyOrchestrator
from catalog_import.services.pipeline import ImportPipeline, build_session
from catalog_import.services.summary import render_issue_lines, render_summary_line

"""CLI entrypoint.

    catalog-import [--config PATH] [--debug] inspect|validate|apply|export|rollback ...

Exit codes: 0 success / valid, 2 blocked by validation or apply failed,
1 fatal (config, unreadable file, database connection).
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_BLOCKED = 2


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="catalog-import", description="Bulk product importer (CSV / XLSX)")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    inspect = sub.add_parser("inspect", help="Print headers and first rows, then exit")
    inspect.add_argument("file", type=Path)
    inspect.add_argument("--rows", type=int, default=3)

    validate = sub.add_parser("validate", help="Parse and validate a file")
    validate.add_argument("file", type=Path)
    validate.add_argument("--json", action="store_true", help="Print the result as JSON")

    apply = sub.add_parser("apply", help="Validate, snapshot, then write to the catalog")
    apply.add_argument("file", type=Path)

    export = sub.add_parser("export", help="Convert a file to canonical CSV or XLSX")
    export.add_argument("file", type=Path)
    export.add_argument("--to", choices=[f.value for f in FileFormat], required=True)
    export.add_argument("-o", "--output", type=Path, default=None)

    rollback = sub.add_parser("rollback", help="Restore the catalog from a snapshot")
    rollback.add_argument("snapshot_id")
    return p.parse_args(argv)


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values override the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _resolve_config(path: Path | None) -> ImportConfig:
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return ImportConfig()


@contextmanager
def _collaborators(cfg: ImportConfig) -> Iterator[tuple[object, object, str]]:
    """Yield (snapshot store, catalog writer, mode).

    DISABLE_DB_CONNECT=1 selects the in-memory catalog (mode=mock).
    """
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        catalog = InMemoryCatalog()
        yield catalog, catalog, "mock"
        return
    with open_connection(cfg.database) as conn:
        ensure_schema(conn, cfg.catalog.products_table, cfg.catalog.snapshots_table)
        yield (
            PostgresSnapshotStore(conn, cfg.catalog.products_table, cfg.catalog.snapshots_table),
            PostgresCatalogWriter(conn, cfg.catalog.products_table, cfg.catalog.page_size),
            "live",
        )


def _report(logger, result: ValidationResult, outcome: ApplyOutcome | None = None) -> None:
    for issue, line in zip(result.issues, render_issue_lines(result), strict=True):
        if issue.severity is Severity.ERROR:
            logger.error(line)
        elif issue.severity is Severity.WARNING:
            logger.warning(line)
        else:
            logger.info(line)
    summary_line = render_summary_line(result, outcome)
    log_summary(summary_line.removeprefix("SUMMARY "))


def _inspect(path: Path, data: bytes, cfg: ImportConfig, rows: int) -> int:
    from catalog_import.readers import detect_format, parse

    table = parse(data, detect_format(path.name, data), encoding=cfg.csv_encoding)
    print(f"FILE: {path.name}")
    if table.sheet_name:
        print(f"  SHEET: {table.sheet_name}")
    print(f"  headers={table.headers}")
    print(f"  rows={table.row_count}")
    print("  sample_rows=", table.rows[:rows])
    return EXIT_SUCCESS


def _validate(logger, path: Path, data: bytes, cfg: ImportConfig, as_json: bool) -> int:
    error_log = ErrorLogBuffer(cfg.error_log_dir)
    try:
        session = build_session(data, path.name, encoding=cfg.csv_encoding, error_log=error_log)
    finally:
        error_log.flush()
    if as_json:
        print(json.dumps(session.result.to_dict(), ensure_ascii=False, indent=2))
    _report(logger, session.result)
    return EXIT_SUCCESS if session.result.is_valid else EXIT_BLOCKED


async def _load_and_apply(
    pipeline: ImportPipeline, path: Path, data: bytes
) -> tuple[ImportSession, ApplyOutcome | None]:
    session = await pipeline.load(data, path.name)
    if not session.result.is_valid:
        return session, None
    outcome = await pipeline.apply(session)
    return session, outcome


def _apply(logger, path: Path, data: bytes, cfg: ImportConfig) -> int:
    with _collaborators(cfg) as (snapshots, writer, mode):
        logger.info(f"mode={mode}")
        orchestrator = ApplyOrchestrator(snapshots, writer, ErrorLogBuffer(cfg.error_log_dir))
        pipeline = ImportPipeline(orchestrator, encoding=cfg.csv_encoding)
        session, outcome = asyncio.run(_load_and_apply(pipeline, path, data))

    _report(logger, session.result, outcome)
    if outcome is None:
        logger.error("apply blocked: fix the errors above and re-upload")
        return EXIT_BLOCKED
    if not outcome.applied:
        return EXIT_BLOCKED
    return EXIT_SUCCESS


def _export(logger, path: Path, data: bytes, cfg: ImportConfig, to: str, output: Path | None) -> int:
    fmt = FileFormat.from_name(to)
    session = build_session(data, path.name, encoding=cfg.csv_encoding)
    target = output or Path(export_filename(fmt))
    target.write_bytes(serialize(session.rows, fmt))
    logger.info(f"exported rows={len(session.rows)} to {target}")
    if not session.result.is_valid:
        logger.warning(f"exported data has {session.result.error_count} validation error(s)")
    return EXIT_SUCCESS


def _rollback(logger, snapshot_id: str, cfg: ImportConfig) -> int:
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.error("rollback needs a database connection (DISABLE_DB_CONNECT=1 is set)")
        return EXIT_FATAL
    with open_connection(cfg.database) as conn:
        store = PostgresSnapshotStore(conn, cfg.catalog.products_table, cfg.catalog.snapshots_table)
        try:
            restored = store.restore(snapshot_id)
        except LookupError as e:
            logger.error(str(e))
            return EXIT_FATAL
    logger.info(f"restored products={restored} from snapshot {snapshot_id}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    # 空リスト [] のときに sys.argv が混入しないよう None のみ判定
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    # --json: stdout は JSON のみ、ログは stderr へ
    json_output = getattr(args, "json", False)
    logger = setup_logging(debug=args.debug, stream=sys.stderr if json_output else None)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "rollback":
        try:
            return _rollback(logger, args.snapshot_id, cfg)
        except psycopg2.Error as e:
            logger.error(f"database: {e}")
            return EXIT_FATAL

    path: Path = args.file
    if not path.is_file():
        logger.error(f"file not found: {path}")
        return EXIT_FATAL
    data = path.read_bytes()

    try:
        if args.command == "inspect":
            return _inspect(path, data, cfg, args.rows)
        if args.command == "validate":
            return _validate(logger, path, data, cfg, args.json)
        if args.command == "export":
            return _export(logger, path, data, cfg, args.to, args.output)
        return _apply(logger, path, data, cfg)
    except ParseError as e:
        logger.error(f"parse: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
