from __future__ import annotations

import math
from collections.abc import Sequence

from orderdesk.models.import_record import StoredSubmission

"""List view helpers over the fetched submissions (read-only)."""

__all__ = [
    "PER_PAGE",
    "filter_submissions",
    "page_count",
    "paginate",
]

PER_PAGE = 10


def filter_submissions(items: Sequence[StoredSubmission], term: str = "") -> list[StoredSubmission]:
    """Case-insensitive match on company/name or product description, newest first.

    ``items`` is expected in fetch order (oldest first).
    """
    needle = term.lower()
    matched = [
        s
        for s in items
        if needle in (s.record.name_or_company or "").lower()
        or needle in (s.record.product_description or "").lower()
    ]
    matched.reverse()
    return matched


def page_count(total: int, per_page: int = PER_PAGE) -> int:
    return max(1, math.ceil(total / per_page))


def paginate(items: Sequence[StoredSubmission], page: int = 1, per_page: int = PER_PAGE) -> list[StoredSubmission]:
    """1-based page slice; pages outside the range are clamped."""
    page = min(max(page, 1), page_count(len(items), per_page))
    start = (page - 1) * per_page
    return list(items[start:start + per_page])
