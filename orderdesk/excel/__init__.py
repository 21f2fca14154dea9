"""Spreadsheet reading and header mapping."""

from .mapping import HEADER_MAP, map_row
from .reader import SheetData, WorkbookParseError, read_first_sheet

__all__ = ["HEADER_MAP", "SheetData", "WorkbookParseError", "map_row", "read_first_sheet"]
