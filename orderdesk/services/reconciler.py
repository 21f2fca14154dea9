from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from orderdesk.models.import_record import CompositeKey, ImportRecord, composite_key

"""Reconciler: which freshly imported rows are new or changed.

Rows are matched against the previously stored set by the composite key
(normalized response date, participant number). A matched row counts as
changed when one of the tracked fields differs; the two reference fields are
compared case-insensitively because the form host rewrites URL casing between
exports.

Pure functions only: no I/O, no hidden state. The incoming batch is not
de-duplicated; only the stored set is.
"""

__all__ = [
    "ChangeKind",
    "EXACT_FIELDS",
    "CASE_INSENSITIVE_FIELDS",
    "build_lookup",
    "classify",
    "reconcile",
    "reconcile_with_status",
]


class ChangeKind(Enum):
    NEW = "new"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


EXACT_FIELDS: tuple[str, ...] = ("product_description", "thickness", "product_size")
CASE_INSENSITIVE_FIELDS: tuple[str, ...] = ("product_image", "business_registration_file")


def _fold(value: str | None) -> str | None:
    return value.lower() if value is not None else None


def build_lookup(existing: Sequence[ImportRecord]) -> dict[CompositeKey, ImportRecord]:
    """Composite key -> stored record. On duplicate keys the last one wins."""
    return {composite_key(r): r for r in existing}


def classify(candidate: ImportRecord, lookup: dict[CompositeKey, ImportRecord]) -> ChangeKind:
    current = lookup.get(composite_key(candidate))
    if current is None:
        return ChangeKind.NEW
    for name in EXACT_FIELDS:
        if getattr(candidate, name) != getattr(current, name):
            return ChangeKind.UPDATED
    for name in CASE_INSENSITIVE_FIELDS:
        if _fold(getattr(candidate, name)) != _fold(getattr(current, name)):
            return ChangeKind.UPDATED
    return ChangeKind.UNCHANGED


def reconcile_with_status(
    candidates: Sequence[ImportRecord], existing: Sequence[ImportRecord]
) -> list[tuple[ImportRecord, ChangeKind]]:
    """New/updated candidates with their classification, in candidate order."""
    lookup = build_lookup(existing)
    result: list[tuple[ImportRecord, ChangeKind]] = []
    for candidate in candidates:
        kind = classify(candidate, lookup)
        if kind is not ChangeKind.UNCHANGED:
            result.append((candidate, kind))
    return result


def reconcile(candidates: Sequence[ImportRecord], existing: Sequence[ImportRecord]) -> list[ImportRecord]:
    return [record for record, _ in reconcile_with_status(candidates, existing)]
