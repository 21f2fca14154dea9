from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import psycopg2

from orderdesk.models.config_models import ManualEntryTables
from orderdesk.models.import_record import UPSERT_COLUMNS, ImportRecord, StoredSubmission

"""Read / maintenance queries against the backend.

- fetch_submissions: the stored set the reconciler compares against (and the
  refreshed read after an upload)
- insert_submission / get_submission: manual order intake and the detail view
- set_reviewed: the reviewed flag is toggled independently of imports
- delete_manual_entry: dependent rows first, parent last, each statement on
  its own (autocommit). There is no wrapping transaction; a failing step
  leaves the earlier deletes applied and is reported with its step name.
"""

__all__ = [
    "RepositoryError",
    "CascadeDeleteError",
    "CascadeDeleteResult",
    "fetch_submissions",
    "insert_submission",
    "get_submission",
    "set_reviewed",
    "delete_manual_entry",
]

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    pass


class CascadeDeleteError(RepositoryError):
    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"{step}: {message}")
        self.step = step


@dataclass(frozen=True)
class CascadeDeleteResult:
    entry_id: int
    notes_deleted: int
    quote_items_deleted: int
    quote_drafts_deleted: int
    entry_deleted: bool


def _rows_as_dicts(cursor: Any) -> list[dict[str, Any]]:
    names = [d[0] for d in cursor.description]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]


def fetch_submissions(cursor: Any, table: str = "submissions") -> list[StoredSubmission]:
    """All stored submissions ordered by response date (oldest first)."""
    try:
        cursor.execute(f"SELECT * FROM {table} ORDER BY response_date ASC")
        rows = _rows_as_dicts(cursor)
    except psycopg2.Error as e:
        raise RepositoryError(f"fetch {table} failed: {e}") from e
    logger.debug("table=%s fetched_rows=%d", table, len(rows))
    return [StoredSubmission.from_row(r) for r in rows]


def insert_submission(cursor: Any, table: str, record: ImportRecord) -> int:
    """Insert one manually entered submission and return its server id.

    Plain INSERT: an existing composite key is an error here, not an update.
    """
    row = record.to_row()
    cols_sql = ",".join(f'"{c}"' for c in UPSERT_COLUMNS)
    placeholders = ",".join(["%s"] * len(UPSERT_COLUMNS))
    try:
        cursor.execute(
            f"INSERT INTO {table} ({cols_sql}) VALUES ({placeholders}) RETURNING id",
            tuple(row[c] for c in UPSERT_COLUMNS),
        )
        new_id = cursor.fetchone()[0]
    except psycopg2.Error as e:
        raise RepositoryError(f"insert into {table} failed: {e}") from e
    logger.debug("table=%s inserted id=%s key=%s", table, new_id, record.key)
    return new_id


def get_submission(cursor: Any, table: str, submission_id: int) -> StoredSubmission | None:
    try:
        cursor.execute(f"SELECT * FROM {table} WHERE id = %s", (submission_id,))
        rows = _rows_as_dicts(cursor)
    except psycopg2.Error as e:
        raise RepositoryError(f"fetch {table} id={submission_id} failed: {e}") from e
    return StoredSubmission.from_row(rows[0]) if rows else None


def set_reviewed(cursor: Any, table: str, submission_id: int, reviewed: bool = True) -> bool:
    """Set the reviewed flag; False when no row has ``submission_id``."""
    try:
        cursor.execute(f"UPDATE {table} SET reviewed = %s WHERE id = %s", (reviewed, submission_id))
    except psycopg2.Error as e:
        raise RepositoryError(f"update {table}.reviewed failed: {e}") from e
    return cursor.rowcount > 0


def _run_step(cursor: Any, step: str, sql: str, params: tuple[Any, ...]) -> int:
    try:
        cursor.execute(sql, params)
    except psycopg2.Error as e:
        logger.error("cascade delete step=%s failed: %s", step, e)
        raise CascadeDeleteError(step, str(e)) from e
    return max(cursor.rowcount, 0)


def delete_manual_entry(cursor: Any, tables: ManualEntryTables, entry_id: int) -> CascadeDeleteResult:
    """Delete a manual entry with its notes, quote drafts and quote draft items.

    Order: notes -> items of each draft -> drafts -> entry.
    """
    notes = _run_step(
        cursor, "notes", f"DELETE FROM {tables.notes} WHERE entry_id = %s", (entry_id,)
    )

    try:
        cursor.execute(f"SELECT id FROM {tables.quote_drafts} WHERE manual_entry_id = %s", (entry_id,))
        draft_ids = [row[0] for row in cursor.fetchall()]
    except psycopg2.Error as e:
        raise CascadeDeleteError("quote_drafts_lookup", str(e)) from e

    items = 0
    for draft_id in draft_ids:
        items += _run_step(
            cursor,
            "quote_draft_items",
            f"DELETE FROM {tables.quote_draft_items} WHERE quote_draft_id = %s",
            (draft_id,),
        )

    drafts = _run_step(
        cursor,
        "quote_drafts",
        f"DELETE FROM {tables.quote_drafts} WHERE manual_entry_id = %s",
        (entry_id,),
    )
    entry = _run_step(
        cursor, "entry", f"DELETE FROM {tables.entries} WHERE id = %s", (entry_id,)
    )
    return CascadeDeleteResult(
        entry_id=entry_id,
        notes_deleted=notes,
        quote_items_deleted=items,
        quote_drafts_deleted=drafts,
        entry_deleted=entry > 0,
    )
