from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from orderdesk.models.import_record import ImportRecord

"""Result models for one import run (analyze, optionally followed by upload)."""


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of importer + reconciler for one spreadsheet.

    ``changed`` keeps spreadsheet row order and is exactly what an upload
    would hand to the persister.
    """
    file_name: str
    total_rows: int  # mapped rows in the sheet
    new_rows: int
    updated_rows: int
    changed: list[ImportRecord] = field(default_factory=list)

    @property
    def unchanged_rows(self) -> int:
        return self.total_rows - self.new_rows - self.updated_rows


@dataclass(frozen=True)
class ImportResult:
    """Aggregated result used for the SUMMARY line."""
    analysis: AnalysisResult
    upserted_rows: int  # 0 for analyze-only runs
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    uploaded: bool = False
