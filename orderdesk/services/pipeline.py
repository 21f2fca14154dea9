from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from orderdesk.db.repository import fetch_submissions
from orderdesk.db.upsert import PersistError, persist
from orderdesk.excel.reader import WorkbookParseError
from orderdesk.logging.error_log import ErrorLogBuffer
from orderdesk.models.config_models import AppConfig
from orderdesk.models.error_record import ErrorRecord
from orderdesk.models.import_record import ImportRecord
from orderdesk.models.import_result import AnalysisResult, ImportResult
from orderdesk.services.importer import import_workbook
from orderdesk.services.reconciler import ChangeKind, reconcile_with_status

"""Import pipeline orchestration.

One sequential run per user action:

    read file -> importer -> fetch stored set -> reconciler
              -> (upload only) persister -> refreshed read

Every step waits on the previous one; nothing is overlapped, cancelled or
retried. ``cursor=None`` means no backend: analysis runs against an empty
stored set and uploads are refused.
"""

__all__ = [
    "ProcessingError",
    "SUPPORTED_SUFFIXES",
    "read_source",
    "analyze",
    "upload",
    "run_import",
]

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


class ProcessingError(Exception):
    """Fatal error for one import run (nothing was written)."""


def read_source(path: Path) -> bytes:
    if not path.exists():
        raise ProcessingError(f"file not found: {path}")
    if not path.is_file():
        raise ProcessingError(f"not a file: {path}")
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise ProcessingError(f"unsupported file type: {path.name} (expected .xlsx or .xls)")
    try:
        return path.read_bytes()
    except OSError as e:
        raise ProcessingError(f"error reading {path}: {e}") from e


def analyze(
    data: bytes,
    file_name: str,
    existing: Sequence[ImportRecord],
    *,
    timezone: str = "UTC",
    error_log: ErrorLogBuffer | None = None,
) -> AnalysisResult:
    """Importer + reconciler for one workbook."""
    try:
        candidates = import_workbook(data, file_name, timezone=timezone, error_log=error_log)
    except WorkbookParseError as e:
        if error_log is not None:
            error_log.append(ErrorRecord.create(file_name, -1, "", "WORKBOOK_PARSE_ERROR", str(e)))
        raise ProcessingError(str(e)) from e

    changed = reconcile_with_status(candidates, existing)
    new_rows = sum(1 for _, kind in changed if kind is ChangeKind.NEW)
    for record, kind in changed:
        logger.debug("%s key=%s", kind.value, record.key)

    return AnalysisResult(
        file_name=file_name,
        total_rows=len(candidates),
        new_rows=new_rows,
        updated_rows=len(changed) - new_rows,
        changed=[record for record, _ in changed],
    )


def upload(
    cursor: Any,
    analysis: AnalysisResult,
    table: str,
    error_log: ErrorLogBuffer | None = None,
) -> int:
    """Persist the changed subset; returns the upserted row count.

    Raises PersistError unchanged so that the caller reports the whole batch
    as failed.
    """
    if not analysis.changed:
        logger.info("no new or updated rows; nothing to upload")
        return 0
    try:
        result = persist(cursor, analysis.changed, table=table)
    except PersistError as e:
        if error_log is not None:
            error_log.append(ErrorRecord.create(analysis.file_name, -1, "", "UPSERT_ERROR", str(e)))
        raise
    return result.upserted_rows


def run_import(
    path: Path,
    config: AppConfig,
    cursor: Any = None,
    *,
    do_upload: bool = False,
    error_log: ErrorLogBuffer | None = None,
) -> ImportResult:
    """Run analyze (and optionally upload) for one spreadsheet file.

    Raises:
        ProcessingError: unreadable file/workbook, or upload requested without a backend
        RepositoryError: the stored set could not be fetched
        PersistError: the upsert failed (nothing persisted)
    """
    start_time = datetime.now(UTC)
    if do_upload and cursor is None:
        raise ProcessingError("upload requires a database connection")

    data = read_source(path)
    table = config.submissions_table
    existing = [s.record for s in fetch_submissions(cursor, table)] if cursor is not None else []
    logger.info(f"Analyzing {path.name} against {len(existing)} stored submissions")

    analysis = analyze(data, path.name, existing, timezone=config.timezone, error_log=error_log)

    upserted = 0
    if do_upload:
        upserted = upload(cursor, analysis, table, error_log)
        refreshed = fetch_submissions(cursor, table)
        logger.info(f"Uploaded {upserted} rows; {len(refreshed)} submissions stored")

    end_time = datetime.now(UTC)
    return ImportResult(
        analysis=analysis,
        upserted_rows=upserted,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        uploaded=do_upload,
    )
