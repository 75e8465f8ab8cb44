from .reader import SheetData, Workbook, WorkbookOpenError, normalize_cell, open_workbook
from .writer import WorkbookWriteError, write_workbook

__all__ = [
    "SheetData",
    "Workbook",
    "WorkbookOpenError",
    "WorkbookWriteError",
    "normalize_cell",
    "open_workbook",
    "write_workbook",
]
