from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from orderdesk.excel.mapping import map_row
from orderdesk.excel.reader import read_first_sheet
from orderdesk.logging.error_log import ErrorLogBuffer
from orderdesk.models.error_record import ErrorRecord
from orderdesk.models.import_record import ImportRecord
from orderdesk.services.progress import RowProgress

"""Importer: raw spreadsheet bytes -> ordered list of ImportRecord.

Pure transform over the parsed sheet. Per-field failures degrade to None and
are recorded in the error log; a workbook that cannot be parsed raises
WorkbookParseError (from orderdesk.excel.reader) and nothing is produced.
"""

__all__ = [
    "import_workbook",
]

logger = logging.getLogger(__name__)


def import_workbook(
    data: bytes,
    file_name: str,
    *,
    timezone: str = "UTC",
    error_log: ErrorLogBuffer | None = None,
) -> list[ImportRecord]:
    """Parse ``data`` and map every non-empty row, keeping sheet row order."""
    sheet = read_first_sheet(data, file_name)
    tz = ZoneInfo(timezone)

    records: list[ImportRecord] = []
    failed_fields = 0
    with RowProgress(len(sheet.rows)) as progress:
        for row, row_number, links in zip(sheet.rows, sheet.row_numbers, sheet.hyperlinks, strict=True):

            def on_field_error(field: str, exc: Exception, _row: int = row_number) -> None:
                nonlocal failed_fields
                failed_fields += 1
                logger.warning("row=%d field=%s could not be resolved: %s", _row, field, exc)
                if error_log is not None:
                    error_log.append(
                        ErrorRecord.create(file_name, _row, field, "FIELD_RESOLUTION_ERROR", str(exc))
                    )

            record = map_row(row, links, tz=tz, on_field_error=on_field_error)
            if isinstance(record.response_date, str) and error_log is not None:
                error_log.append(
                    ErrorRecord.create(
                        file_name,
                        row_number,
                        "response_date",
                        "INVALID_DATE",
                        f"unparsed response date kept as text: {record.response_date}",
                    )
                )
            records.append(record)
            progress.advance(failed_fields)

    logger.debug("file=%s mapped_rows=%d failed_fields=%d", file_name, len(records), failed_fields)
    return records
