from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

from orderdesk.models.import_record import CONFLICT_COLUMNS, UPSERT_COLUMNS, ImportRecord

"""Persister: one upsert statement per batch.

INSERT ... ON CONFLICT (response_date, participant_number) DO UPDATE, so a
row whose composite key already exists overwrites the stored one instead of
being dropped. The reconciler already filters unchanged rows; the conflict
clause is the safety net, not the primary mechanism.

The whole batch is one transaction: either every row is written or the
caller gets PersistError and nothing is assumed persisted. No retries.
``id`` and ``reviewed`` are owned by the backend and never written here.
"""

__all__ = [
    "PersistError",
    "PersistResult",
    "build_upsert_sql",
    "persist",
]

logger = logging.getLogger(__name__)


class PersistError(Exception):
    pass


@dataclass(frozen=True)
class PersistResult:
    upserted_rows: int
    elapsed_seconds: float = 0.0


def build_upsert_sql(table: str, columns: Sequence[str] = UPSERT_COLUMNS) -> str:
    cols_sql = ",".join(f'"{c}"' for c in columns)
    conflict_sql = ",".join(f'"{c}"' for c in CONFLICT_COLUMNS)
    updates = ",".join(f'"{c}" = EXCLUDED."{c}"' for c in columns if c not in CONFLICT_COLUMNS)
    return (
        f"INSERT INTO {table} ({cols_sql}) VALUES %s "
        f"ON CONFLICT ({conflict_sql}) DO UPDATE SET {updates}"
    )


def _row_values(record: ImportRecord) -> tuple[Any, ...]:
    row = record.to_row()
    return tuple(row[c] for c in UPSERT_COLUMNS)


def persist(cursor: Any, batch: Sequence[ImportRecord], table: str = "submissions") -> PersistResult:
    """Upsert ``batch`` in a single statement and commit.

    Parameters
    ----------
    cursor: psycopg2 cursor on an autocommit connection (transaction is opened here)
    batch: records to write, typically the reconciler output
    table: target table name (validated by the config schema)

    Raises
    ------
    PersistError: the statement or the commit failed; the transaction is rolled back
    """
    rows = [_row_values(r) for r in batch]
    if not rows:
        return PersistResult(upserted_rows=0)

    sql = build_upsert_sql(table)
    start = time.time()
    try:
        cursor.execute("BEGIN")
        # page_size=len(rows): 배치 전체를 단일 문장으로 전송
        execute_values(cursor, sql, rows, page_size=len(rows))
        cursor.execute("COMMIT")
    except Exception as e:
        try:
            cursor.execute("ROLLBACK")
        except Exception as rollback_e:
            logger.debug("rollback after failed upsert also failed: %s", rollback_e)
        raise PersistError(str(e)) from e
    elapsed = time.time() - start

    logger.debug("table=%s upserted_rows=%d elapsed=%.3fs", table, len(rows), elapsed)
    return PersistResult(upserted_rows=len(rows), elapsed_seconds=elapsed)
