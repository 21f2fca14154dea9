from __future__ import annotations

from typing import Any
from zoneinfo import ZoneInfo

from orderdesk.excel.mapping import parse_response_date
from orderdesk.models.import_record import UPSERT_COLUMNS, ImportRecord, StoredSubmission, normalized_date

"""Manual order intake and the detail rendering of one submission.

Manually entered orders go through the same date rule as spreadsheet rows so
that they land under the same composite key an export of the same order
would produce.
"""

__all__ = [
    "IntakeError",
    "build_manual_record",
    "detail_lines",
]

BOOLEAN_FIELDS = ("privacy_agreement", "first_time_buyer")


class IntakeError(Exception):
    pass


def build_manual_record(values: dict[str, Any], timezone: str = "UTC") -> ImportRecord:
    """Field name -> entered value to ImportRecord.

    Empty strings become None. ``response_date`` and ``participant_number``
    are required; an unparseable date is refused rather than stored as text.
    """
    unknown = set(values) - set(UPSERT_COLUMNS)
    if unknown:
        raise IntakeError(f"unknown fields: {', '.join(sorted(unknown))}")

    cleaned = {k: (None if v == "" else v) for k, v in values.items()}
    if cleaned.get("participant_number") is None:
        raise IntakeError("participant_number is required")
    raw_date = cleaned.get("response_date")
    if raw_date is None:
        raise IntakeError("response_date is required")

    parsed = parse_response_date(raw_date, ZoneInfo(timezone))
    if parsed is None or isinstance(parsed, str):
        raise IntakeError(f"invalid response_date: {raw_date}")
    cleaned["response_date"] = parsed
    for name in BOOLEAN_FIELDS:
        cleaned[name] = bool(cleaned.get(name))
    return ImportRecord(**cleaned)


def detail_lines(submission: StoredSubmission) -> list[str]:
    """``field: value`` lines for the detail view, backend columns first."""
    lines = [f"id: {submission.id}", f"reviewed: {submission.reviewed}"]
    row = submission.record.to_row()
    for name in UPSERT_COLUMNS:
        value = row[name]
        if name == "response_date":
            value = normalized_date(value)
        lines.append(f"{name}: {'-' if value is None else value}")
    return lines
