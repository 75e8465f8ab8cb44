from __future__ import annotations

import os
import uuid
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.utils import get_column_letter

"""Excel writer for merged output and side workbooks.

Workbooks are written to a temporary file next to the target and moved into
place only after a successful save, so a failed or cancelled run never leaves
a half-written workbook under the output name.
"""

__all__ = [
    "WorkbookWriteError",
    "SheetContent",
    "write_workbook",
]

MAX_COLUMN_WIDTH = 60

SheetContent = tuple[Sequence[str], Sequence[Sequence[Any]]]


class WorkbookWriteError(Exception):
    """Raised when an output workbook cannot be written."""


def _autosize_columns(worksheet: Any, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    for idx, name in enumerate(columns):
        longest = len(str(name))
        for row in rows:
            if idx < len(row) and row[idx] is not None:
                longest = max(longest, len(str(row[idx])))
        worksheet.column_dimensions[get_column_letter(idx + 1)].width = min(longest + 2, MAX_COLUMN_WIDTH)


def write_workbook(path: Path, sheets: Mapping[str, SheetContent]) -> Path:
    """Write {sheet_name: (columns, rows)} to path in mapping order.

    Raises:
        WorkbookWriteError: If the workbook cannot be saved
    """
    path = Path(path)
    if not sheets:
        raise WorkbookWriteError(f"no sheets to write for {path.name}")
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.stem}.{uuid.uuid4().hex}.tmp.xlsx")
    try:
        with pd.ExcelWriter(tmp_path, engine="openpyxl") as writer:
            for sheet_name, (columns, rows) in sheets.items():
                df = pd.DataFrame([list(r) for r in rows], columns=list(columns))
                df.to_excel(writer, sheet_name=sheet_name, index=False)
                _autosize_columns(writer.sheets[sheet_name], columns, rows)
        os.replace(tmp_path, path)
    except Exception as e:
        tmp_path.unlink(missing_ok=True)
        raise WorkbookWriteError(f"failed to write workbook {path.name}: {e}") from e
    return path
