from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

from ..api.project_client import ProjectApiClient
from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from ..db.connection import connect
from ..db.project_store import DryRunProjectStore, PostgresProjectStore
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.error_record import ErrorRecord
from ..models.import_summary import ImportSummary
from ..models.preview_row import RowKey
from ..models.upload_session import ColumnMode, UploadSession
from ..models.uploaded_file import UploadedFile
from ..services import columns, selection
from ..services import upload_session as flow
from ..services.summary import render_summary_line

"""CLI entrypoint: upload one questionnaire file and create a project from it.

Flow:
- Load .env and config (config file optional unless --config is given)
- Parse the file into sheets (--inspect prints them and exits)
- Apply sheet / merge / column choices and row exclusions
- Build the project and submit it to the configured sink
- Print a SUMMARY line; failures also go to logs/errors-*.log
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

INSPECT_SAMPLE_ROWS = 3

logger = logging.getLogger(__name__)


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="questionnaire-import",
        description="Turn a questionnaire spreadsheet (CSV/XLS/XLSX) into a bulk project",
    )
    p.add_argument("file", type=Path, help="Questionnaire file (.csv, .xls, .xlsx)")
    p.add_argument("--config", type=Path, default=None, help=f"Config YAML (default: {DEFAULT_CONFIG_PATH})")
    p.add_argument("--name", default="", help="Project name (default: file name)")
    p.add_argument("--customer", default="", help="Customer name")
    p.add_argument("--owner", default=None, help="Owner display name")
    p.add_argument("--owner-id", default=None, help="Owner user id")
    p.add_argument("--sheet", default=None, help="Worksheet to use when not merging tabs")
    merge = p.add_mutually_exclusive_group()
    merge.add_argument("--merge", dest="merge", action="store_true", default=None, help="Merge all tabs")
    merge.add_argument("--no-merge", dest="merge", action="store_false", help="Use a single tab")
    p.add_argument("--per-tab", action="store_true", help="Choose a question column per tab when merging")
    p.add_argument("--column", default="", help="Question column (single sheet or shared across tabs)")
    p.add_argument(
        "--tab-column",
        action="append",
        default=[],
        metavar="TAB=COLUMN",
        help="Question column for one tab (implies --per-tab); repeatable",
    )
    p.add_argument("--exclude", action="append", default=[], metavar="[TAB:]ROW", help="Deselect a row; repeatable")
    p.add_argument("--exclude-all", action="store_true", help="Start with every row deselected")
    p.add_argument("--include", action="append", default=[], metavar="[TAB:]ROW", help="Select a row; repeatable")
    p.add_argument("--sink", choices=["api", "database", "dry-run"], default=None, help="Where to create the project")
    p.add_argument("--inspect", action="store_true", help="Print sheets, headers and sample rows then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _parse_tab_columns(values: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for raw in values:
        tab, sep, column = raw.partition("=")
        if not sep or not tab.strip() or not column.strip():
            raise ValueError(f"invalid --tab-column '{raw}' (expected TAB=COLUMN)")
        mapping[tab.strip()] = column.strip()
    return mapping


def _parse_row_keys(values: list[str], default_tab: str) -> list[RowKey]:
    """Parse ``TAB:ROW`` (or bare ``ROW`` for ``default_tab``) selectors."""
    keys: list[RowKey] = []
    for raw in values:
        tab, sep, row = raw.rpartition(":")
        if not sep:
            tab = default_tab
        try:
            keys.append((int(row), tab))
        except ValueError as e:
            raise ValueError(f"invalid row selector '{raw}' (expected [TAB:]ROW)") from e
    return keys


def _build_sink(cfg: ImportConfig):
    if cfg.sink == "database":
        return PostgresProjectStore(lambda: connect(cfg.database))
    if cfg.sink == "dry-run":
        return DryRunProjectStore()
    return ProjectApiClient(cfg.api)


def _inspect(session: UploadSession) -> int:
    print(f"FILE: {session.file_name}")
    for sheet in session.sheets:
        print(f"  SHEET: {sheet.name} rows={sheet.row_count} cols={sheet.columns}")
        for index, row in enumerate(sheet.rows[:INSPECT_SAMPLE_ROWS]):
            print(f"    row {index + 2}: {row}")
    if len(session.sheets) > 1:
        print(f"  COMMON COLUMNS: {columns.common_columns(session.sheets)}")
    return EXIT_SUCCESS


def _fail(session: UploadSession, error_log: ErrorLogBuffer, file_name: str) -> None:
    message = session.error_message or "unknown error"
    logger.error(message)
    error_log.append(
        ErrorRecord.create(
            file=file_name,
            sheet=session.selected_sheet or "<FILE_LEVEL>",
            row=-1,
            error_type=session.error_type or "UNEXPECTED_ERROR",
            message=message,
        )
    )
    path = error_log.flush()
    if path is not None:
        logger.debug("error log written: %s", path)


def _apply_columns(session: UploadSession, args: argparse.Namespace) -> None:
    tab_columns = _parse_tab_columns(args.tab_column)
    if (args.per_tab or tab_columns) and session.use_same_column_for_all:
        flow.set_use_same_column_for_all(session, False)
    mode = columns.resolve_mode(len(session.sheets), session.merge_all_tabs, session.use_same_column_for_all)
    if mode is ColumnMode.MERGE_PER_TAB:
        for tab, column in tab_columns.items():
            flow.choose_tab_column(session, tab, column)
    elif args.column:
        flow.choose_question_column(session, args.column)


def _apply_selection(session: UploadSession, args: argparse.Namespace) -> None:
    active = columns.active_sheet(session.sheets, session.selected_sheet, session.merge_all_tabs)
    default_tab = active.name if active else ""
    if args.exclude_all:
        flow.deselect_all_rows(session)
    session.preview_rows = selection.apply_selection(
        session.preview_rows,
        exclude=_parse_row_keys(args.exclude, default_tab),
        include=_parse_row_keys(args.include, default_tab),
    )


def main(argv: list[str] | None = None) -> int:
    logger_ = setup_logging()
    # None のときのみ sys.argv を読む (テストで [] を渡すケースを区別)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        set_debug(logger_)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config or DEFAULT_CONFIG_PATH, required=args.config is not None)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    if args.sink:
        cfg = ImportConfig(sink=args.sink, api=cfg.api, database=cfg.database, defaults=cfg.defaults)

    started = time.perf_counter()
    error_log = ErrorLogBuffer()

    session = flow.new_session(
        merge_all_tabs=cfg.defaults.merge_all_tabs if args.merge is None else args.merge,
        use_same_column_for_all=cfg.defaults.use_same_column_for_all,
        owner_id=args.owner_id or cfg.defaults.owner_id,
        owner_name=args.owner or cfg.defaults.owner_name,
    )
    session.project_name = args.name
    session.customer_name = args.customer

    if not args.file.is_file():
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL
    try:
        upload = UploadedFile.from_path(args.file)
    except OSError as e:
        logger.error(f"unable to read {args.file}: {e}")
        return EXIT_FATAL

    flow.load_file(session, upload)
    if session.error_message:
        _fail(session, error_log, upload.name)
        return EXIT_FATAL

    if args.inspect:
        return _inspect(session)

    if args.sheet:
        flow.choose_sheet(session, args.sheet)
    try:
        _apply_columns(session, args)
        _apply_selection(session, args)
    except ValueError as e:
        logger.error(str(e))
        return EXIT_FATAL

    logger.info(
        "mode=%s preview=%d selected=%d",
        columns.resolve_mode(len(session.sheets), session.merge_all_tabs, session.use_same_column_for_all).value,
        len(session.preview_rows),
        len(selection.selected_rows(session.preview_rows)),
    )

    sink = _build_sink(cfg)
    redirect = flow.save_project(session, sink)
    if redirect is None:
        _fail(session, error_log, upload.name)
    else:
        logger.info(f"{session.success_message} workspace={redirect}")

    summary = ImportSummary(
        file_name=upload.name,
        sheets=len(session.sheets),
        preview_rows=len(session.preview_rows),
        selected_rows=len(selection.selected_rows(session.preview_rows)),
        sink=sink.name,
        elapsed_seconds=time.perf_counter() - started,
        project_id=session.created_project_id,
    )
    # log_summary が "SUMMARY " を付けるので先頭を除去
    log_summary(render_summary_line(summary)[len("SUMMARY "):])
    return EXIT_SUCCESS if redirect is not None else EXIT_FATAL
