"""Domain models for the order intake importer.

This package contains the record, config and result types shared by the
importer, reconciler and persister.
"""

from .config_models import AppConfig, DatabaseConfig, ManualEntryTables
from .error_record import ErrorRecord
from .import_record import ImportRecord, StoredSubmission, composite_key, normalized_date
from .import_result import AnalysisResult, ImportResult

__all__ = [
    # Configuration models
    "AppConfig",
    "DatabaseConfig",
    "ManualEntryTables",
    # Record models
    "ImportRecord",
    "StoredSubmission",
    "composite_key",
    "normalized_date",
    # Result models
    "AnalysisResult",
    "ErrorRecord",
    "ImportResult",
]
