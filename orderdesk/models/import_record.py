from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from typing import Any

"""ImportRecord / StoredSubmission models for the order intake importer.

ImportRecord is the canonical shape of one form-export row after header
mapping. It is built fresh on every import run and never mutated; the
reconciler and the persister only ever read it.

StoredSubmission wraps an ImportRecord with the two columns the backend
owns (server-assigned id, reviewed flag). The importer never writes those.
"""

__all__ = [
    "ImportRecord",
    "StoredSubmission",
    "CompositeKey",
    "UPSERT_COLUMNS",
    "CONFLICT_COLUMNS",
    "normalized_date",
    "composite_key",
]

CompositeKey = tuple[str, int | None]

# 복합키: 응답일 + 참여자 번호
CONFLICT_COLUMNS: tuple[str, ...] = ("response_date", "participant_number")


@dataclass(frozen=True)
class ImportRecord:
    """One order submission as mapped from the spreadsheet export.

    ``response_date`` is a ``date`` when the source timestamp parsed, otherwise
    the raw cell text (kept so that the problem stays visible downstream).
    """
    response_date: date | str | None
    participant_number: int | None
    name_or_company: str | None = None
    contact: str | None = None
    email: str | None = None
    business_registration_file: str | None = None  # resolved reference
    privacy_agreement: bool = False
    first_time_buyer: bool = False
    product_description: str | None = None
    product_size: str | None = None
    thickness: str | None = None
    material: str | None = None
    color: str | None = None
    quantity: str | None = None
    desired_delivery: str | None = None
    product_image: str | None = None  # resolved reference
    product_drawing: str | None = None  # resolved reference
    inquiry: str | None = None
    referral_source: str | None = None

    @property
    def key(self) -> CompositeKey:
        return composite_key(self)

    def to_row(self) -> dict[str, Any]:
        """Column -> value mapping in UPSERT_COLUMNS order."""
        return asdict(self)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ImportRecord:
        """Build from a backend row dict, ignoring columns the record does not carry."""
        names = {f.name for f in fields(cls)}
        values = {k: v for k, v in row.items() if k in names}
        values.setdefault("response_date", None)
        values.setdefault("participant_number", None)
        return cls(**values)


UPSERT_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(ImportRecord))


@dataclass(frozen=True)
class StoredSubmission:
    """A persisted submission row (record + backend-owned columns)."""
    id: int
    record: ImportRecord
    reviewed: bool = False

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> StoredSubmission:
        return cls(
            id=row["id"],
            record=ImportRecord.from_row(row),
            reviewed=bool(row.get("reviewed") or False),
        )


def normalized_date(value: date | datetime | str | None) -> str:
    """Render the calendar-date part of ``value`` as ``YYYY-MM-DD``.

    Strings are returned unchanged when they do not start with an ISO date,
    so an unparsed timestamp still yields a stable (if odd) key.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    head = text[:10]
    try:
        return date.fromisoformat(head).isoformat()
    except ValueError:
        return text


def composite_key(record: ImportRecord) -> CompositeKey:
    return (normalized_date(record.response_date), record.participant_number)
