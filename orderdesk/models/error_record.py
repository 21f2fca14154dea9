from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the structured error log.

One record per degraded field, aborted file or failed upsert. ``row`` is the
1-based spreadsheet row (header = 1); -1 marks file-level / batch-level errors
where no single row applies. ``field`` is the mapped field name or "" when the
error is not tied to one field.

The JSON Lines shape is fixed (see config/error_log_schema.json); no extra keys.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Source spreadsheet name
        row: Spreadsheet row (1-based). -1 when the row is unknown / not applicable
        field: Mapped field name, "" for record- or file-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description (exception text, db message)
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int
    field: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, row: int, field: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            field=field,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
