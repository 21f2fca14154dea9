from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from orderdesk.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from orderdesk.db.connection import db_connection
from orderdesk.db.repository import (
    RepositoryError,
    delete_manual_entry,
    fetch_submissions,
    get_submission,
    insert_submission,
    set_reviewed,
)
from orderdesk.db.upsert import PersistError
from orderdesk.logging.error_log import ErrorLogBuffer
from orderdesk.logging.init import log_summary, setup_logging
from orderdesk.models.config_models import AppConfig
from orderdesk.models.import_record import normalized_date
from orderdesk.services.intake import IntakeError, build_manual_record, detail_lines
from orderdesk.services.listing import filter_submissions, page_count, paginate
from orderdesk.services.pipeline import ProcessingError, run_import
from orderdesk.services.summary import render_summary_line

"""CLI entrypoint.

Commands stand in for the back-office buttons:
- analyze FILE        importer + reconciler, prints the new/updated rows, writes nothing
- upload FILE         analyze, then upsert the changed rows and re-read
- list                stored submissions (search + paging)
- add ...             enter one order manually (plain insert)
- show ID             every field of one submission
- review ID           set / clear the reviewed flag
- delete-entry ID     cascading delete of a manual entry

Exit codes: 0 success, 1 fatal (config, file, workbook, connection),
2 the upload batch failed (nothing persisted; re-running is safe).
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_UPLOAD_FAILED = 2

# add: 텍스트 항목 (옵션 -> 필드)
_ADD_TEXT_OPTIONS = (
    ("--name", "name_or_company"),
    ("--contact", "contact"),
    ("--email", "email"),
    ("--business-file", "business_registration_file"),
    ("--description", "product_description"),
    ("--size", "product_size"),
    ("--thickness", "thickness"),
    ("--material", "material"),
    ("--color", "color"),
    ("--quantity", "quantity"),
    ("--delivery", "desired_delivery"),
    ("--image", "product_image"),
    ("--drawing", "product_drawing"),
    ("--inquiry", "inquiry"),
    ("--referral", "referral_source"),
)


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so that its DB settings win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


@contextmanager
def _open_db(cfg: AppConfig) -> Iterator[Any]:
    """Yield a cursor, or None when DISABLE_DB_CONNECT=1."""
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        yield None
        return
    with db_connection(cfg.database) as cur:
        yield cur


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="orderdesk", description="Order intake spreadsheet importer")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to import.yml")
    sub = p.add_subparsers(dest="command", required=True)

    a = sub.add_parser("analyze", help="Show new/updated rows of a spreadsheet without writing")
    a.add_argument("file", type=Path)

    u = sub.add_parser("upload", help="Upsert new/updated rows of a spreadsheet")
    u.add_argument("file", type=Path)

    ls = sub.add_parser("list", help="List stored submissions")
    ls.add_argument("--search", default="", help="Match company/name or product description")
    ls.add_argument("--page", type=int, default=1)

    n = sub.add_parser("add", help="Enter one order manually")
    n.add_argument("--date", dest="response_date", required=True, help="Response date (YYYY-MM-DD)")
    n.add_argument("--participant", dest="participant_number", type=int, required=True)
    for flag, field in _ADD_TEXT_OPTIONS:
        n.add_argument(flag, dest=field, default=None)
    n.add_argument("--privacy-agreed", dest="privacy_agreement", action="store_true")
    n.add_argument("--first-time", dest="first_time_buyer", action="store_true")

    s = sub.add_parser("show", help="Show every field of one submission")
    s.add_argument("id", type=int)

    r = sub.add_parser("review", help="Mark a submission as reviewed")
    r.add_argument("id", type=int)
    r.add_argument("--unset", action="store_true", help="Clear the reviewed flag instead")

    d = sub.add_parser("delete-entry", help="Delete a manual entry with its notes and quote drafts")
    d.add_argument("id", type=int)
    return p.parse_args(argv)


def _cmd_import(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    do_upload = args.command == "upload"
    error_log = ErrorLogBuffer()
    try:
        with _open_db(cfg) as cur:
            mode = "live" if cur is not None else "offline"
            result = run_import(args.file, cfg, cursor=cur, do_upload=do_upload, error_log=error_log)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except PersistError as e:
        logger.error(f"upload failed, no rows were saved: {e}")
        return EXIT_UPLOAD_FAILED
    except RepositoryError as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"database connection failed: {e}")
        return EXIT_FATAL
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.warning(f"error details written to {log_path}")

    for record in result.analysis.changed:
        logger.info(
            f"{normalized_date(record.response_date)} #{record.participant_number} "
            f"{record.name_or_company or '-'} {record.contact or '-'}"
        )
    logger.info(f"mode={mode} changed={len(result.analysis.changed)}")
    # render_summary_line 는 "SUMMARY " 접두어 포함, log_summary 가 다시 붙이므로 제거
    log_summary(render_summary_line(result)[len("SUMMARY "):])
    return EXIT_SUCCESS


def _cmd_list(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    with _open_db(cfg) as cur:
        if cur is None:
            logger.error("list requires a database connection")
            return EXIT_FATAL
        items = fetch_submissions(cur, cfg.submissions_table)
    matched = filter_submissions(items, args.search)
    for s in paginate(matched, args.page):
        r = s.record
        mark = "*" if s.reviewed else " "
        logger.info(
            f"{mark} {s.id} {normalized_date(r.response_date)} {r.name_or_company or '-'} "
            f"{r.contact or '-'} {r.email or '-'} {r.product_description or '-'}"
        )
    logger.info(f"page {min(max(args.page, 1), page_count(len(matched)))}/{page_count(len(matched))} total={len(matched)}")
    return EXIT_SUCCESS


def _cmd_add(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    fields = ["response_date", "participant_number", "privacy_agreement", "first_time_buyer"]
    fields += [field for _, field in _ADD_TEXT_OPTIONS]
    try:
        record = build_manual_record({f: getattr(args, f) for f in fields}, timezone=cfg.timezone)
    except IntakeError as e:
        logger.error(f"add: {e}")
        return EXIT_FATAL
    with _open_db(cfg) as cur:
        if cur is None:
            logger.error("add requires a database connection")
            return EXIT_FATAL
        new_id = insert_submission(cur, cfg.submissions_table, record)
    logger.info(f"submission {new_id} added ({normalized_date(record.response_date)} #{record.participant_number})")
    return EXIT_SUCCESS


def _cmd_show(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    with _open_db(cfg) as cur:
        if cur is None:
            logger.error("show requires a database connection")
            return EXIT_FATAL
        submission = get_submission(cur, cfg.submissions_table, args.id)
    if submission is None:
        logger.error(f"submission not found: {args.id}")
        return EXIT_FATAL
    for line in detail_lines(submission):
        logger.info(line)
    return EXIT_SUCCESS


def _cmd_review(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    with _open_db(cfg) as cur:
        if cur is None:
            logger.error("review requires a database connection")
            return EXIT_FATAL
        found = set_reviewed(cur, cfg.submissions_table, args.id, reviewed=not args.unset)
    if not found:
        logger.error(f"submission not found: {args.id}")
        return EXIT_FATAL
    logger.info(f"submission {args.id} reviewed={not args.unset}")
    return EXIT_SUCCESS


def _cmd_delete_entry(args: argparse.Namespace, cfg: AppConfig, logger: logging.Logger) -> int:
    with _open_db(cfg) as cur:
        if cur is None:
            logger.error("delete-entry requires a database connection")
            return EXIT_FATAL
        result = delete_manual_entry(cur, cfg.manual_entry_tables, args.id)
    if not result.entry_deleted:
        logger.warning(f"manual entry not found: {args.id}")
    logger.info(
        f"entry={result.entry_id} notes={result.notes_deleted} "
        f"quote_drafts={result.quote_drafts_deleted} quote_items={result.quote_items_deleted}"
    )
    return EXIT_SUCCESS


_COMMANDS = {
    "analyze": _cmd_import,
    "upload": _cmd_import,
    "list": _cmd_list,
    "add": _cmd_add,
    "show": _cmd_show,
    "review": _cmd_review,
    "delete-entry": _cmd_delete_entry,
}


def main(argv: list[str] | None = None) -> int:
    # 빈 리스트 [] 는 그대로 사용 (None 일 때만 sys.argv 참조)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    handler = _COMMANDS[args.command]
    try:
        return handler(args, cfg, logger)
    except RepositoryError as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        logger.error(f"database connection failed: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
