from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import load_workbook

"""Spreadsheet reader for form exports.

- Only the first sheet is read; its first row is the header row.
- Cell values come from pandas (openpyxl engine for .xlsx, xlrd for .xls).
- Hyperlink targets come from openpyxl (.xlsx only) and are attached
  positionally: a link at worksheet (row r, column c) belongs to the data row
  whose sheet row number is r and to the header at column index c - 1. The
  header list must therefore stay exactly as parsed (no reordering, no
  de-duplication).
"""

__all__ = [
    "WorkbookParseError",
    "SheetData",
    "read_first_sheet",
]

logger = logging.getLogger(__name__)

HEADER_ROW_NUMBER = 1  # 시트 1행 = 헤더
XLSX_SUFFIXES = {".xlsx", ".xlsm"}


class WorkbookParseError(Exception):
    """Raised when the uploaded bytes cannot be read as a spreadsheet."""


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[dict[str, Any]] = field(default_factory=list)  # header -> cell value (None for empty)
    row_numbers: list[int] = field(default_factory=list)  # 1-based sheet row per entry of rows
    hyperlinks: list[dict[str, str]] = field(default_factory=list)  # header -> link target per row


def _header_name(value: Any, index: int) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return f"__EMPTY_{index}"
    return str(value).strip()


def _collect_hyperlinks(data: bytes, columns: list[str]) -> dict[int, dict[str, str]]:
    """Return sheet row number -> {header: target} for the first worksheet."""
    wb = load_workbook(io.BytesIO(data))
    try:
        ws = wb.worksheets[0]
        links: dict[int, dict[str, str]] = {}
        for row in ws.iter_rows(min_row=HEADER_ROW_NUMBER + 1):
            for cell in row:
                link = getattr(cell, "hyperlink", None)
                if link is None or not link.target:
                    continue
                col_index = cell.column - 1
                if col_index >= len(columns):
                    continue
                links.setdefault(cell.row, {})[columns[col_index]] = link.target
        return links
    finally:
        wb.close()


def read_first_sheet(data: bytes, file_name: str) -> SheetData:
    """Parse the first sheet of a workbook given as raw bytes.

    Raises:
        WorkbookParseError: the bytes are not a readable workbook or the
            first sheet has no header row
    """
    try:
        xls = pd.ExcelFile(io.BytesIO(data))
        sheet_name = str(xls.sheet_names[0])
        # 헤더 없이 원본 그대로 읽고 1행을 헤더로 적용
        df = xls.parse(sheet_name, header=None, dtype=object)
    except Exception as e:
        raise WorkbookParseError(f"cannot read workbook '{file_name}': {e}") from e

    if df.shape[0] < 1:
        raise WorkbookParseError(f"sheet '{sheet_name}' in '{file_name}' has no header row")

    columns = [_header_name(v, i) for i, v in enumerate(df.iloc[0].tolist())]

    links: dict[int, dict[str, str]] = {}
    if Path(file_name).suffix.lower() in XLSX_SUFFIXES:
        try:
            links = _collect_hyperlinks(data, columns)
        except Exception as e:
            raise WorkbookParseError(f"cannot read hyperlinks of '{file_name}': {e}") from e

    sheet = SheetData(sheet_name=sheet_name, columns=columns)
    for offset, (_, raw) in enumerate(df.iloc[1:].iterrows()):
        if raw.isna().all():
            continue
        row_number = HEADER_ROW_NUMBER + 1 + offset
        row_dict: dict[str, Any] = {}
        for col, val in zip(columns, raw.tolist(), strict=False):
            row_dict[col] = None if (not isinstance(val, str) and pd.isna(val)) else val
        sheet.rows.append(row_dict)
        sheet.row_numbers.append(row_number)
        sheet.hyperlinks.append(links.get(row_number, {}))

    logger.debug(
        "read sheet=%s file=%s columns=%d rows=%d linked_rows=%d",
        sheet_name,
        file_name,
        len(columns),
        len(sheet.rows),
        len(links),
    )
    return sheet
