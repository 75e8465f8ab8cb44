from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

"""Excel reader for RVTools exports.

RVTools writes the header on the first row and data from the second row on.
Cells are read untyped (dtype=object) so numbers, booleans and dates keep the
type openpyxl reports; only genuinely empty cells become None. Strings such as
"NA" or "null" are kept as-is because they are valid host or VM names.
"""

__all__ = [
    "WorkbookOpenError",
    "SheetData",
    "Workbook",
    "open_workbook",
    "normalize_cell",
]


class WorkbookOpenError(Exception):
    """Raised when a workbook is missing or cannot be parsed."""


def normalize_cell(value: Any) -> Any:
    """Map pandas' missing markers to None and timestamps to datetime."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


@dataclass
class SheetData:
    sheet_name: str
    header: list[Any]
    rows: list[list[Any]]
    row_numbers: list[int] = field(default_factory=list)  # 1-based Excel row of each data row

    def iter_rows(self) -> Iterator[tuple[int, list[Any]]]:
        yield from zip(self.row_numbers, self.rows, strict=True)

    @property
    def has_data_rows(self) -> bool:
        return bool(self.rows)


class Workbook:
    """Read-only view over an opened Excel workbook."""

    def __init__(self, path: Path, xls: pd.ExcelFile) -> None:
        self.path = path
        self._xls = xls

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def sheet_names(self) -> list[str]:
        return [str(n) for n in self._xls.sheet_names]

    def find_sheet(self, sheet_name: str) -> str | None:
        """Return the actual sheet name matching sheet_name case-insensitively."""
        wanted = sheet_name.casefold()
        for actual in self.sheet_names:
            if actual.casefold() == wanted:
                return actual
        return None

    def has_sheet(self, sheet_name: str) -> bool:
        return self.find_sheet(sheet_name) is not None

    def read_sheet(self, sheet_name: str) -> SheetData:
        """Read a worksheet into header + data rows.

        Fully blank rows are dropped; row_numbers keep the original Excel row
        numbers so issues can point at the right line.
        """
        actual = self.find_sheet(sheet_name)
        if actual is None:
            raise KeyError(f"sheet '{sheet_name}' not found in {self.name}")
        df = self._xls.parse(
            actual,
            header=None,
            dtype=object,
            keep_default_na=False,
            na_values=[""],
        )
        if df.shape[0] == 0:
            return SheetData(sheet_name=actual, header=[], rows=[], row_numbers=[])

        header = [normalize_cell(v) for v in df.iloc[0].tolist()]
        rows: list[list[Any]] = []
        row_numbers: list[int] = []
        for offset, raw in enumerate(df.iloc[1:].itertuples(index=False, name=None), start=2):
            values = [normalize_cell(v) for v in raw]
            if all(v is None for v in values):
                continue
            rows.append(values)
            row_numbers.append(offset)
        return SheetData(sheet_name=actual, header=header, rows=rows, row_numbers=row_numbers)

    def close(self) -> None:
        self._xls.close()

    def __enter__(self) -> Workbook:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def open_workbook(path: Path) -> Workbook:
    """Open an .xlsx workbook.

    Raises:
        WorkbookOpenError: If the file does not exist or is not a readable workbook
    """
    path = Path(path)
    if not path.exists():
        raise WorkbookOpenError(f"Excel file not found: {path.name}")
    try:
        xls = pd.ExcelFile(path, engine="openpyxl")
    except Exception as e:
        raise WorkbookOpenError(f"Error opening Excel file '{path.name}': {e}") from e
    return Workbook(path, xls)
