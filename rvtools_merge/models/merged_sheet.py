from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""In-memory accumulation buffers for merged sheets.

Rows are collected across all input files in input order and only written
once every file has been read, so the row cap and Azure Migrate validation
can see the complete picture.
"""

__all__ = [
    "MergedRow",
    "MergedSheet",
]


@dataclass
class MergedRow:
    values: list[Any]  # merged column order, Source File included when enabled
    source_file: str
    row_number: int  # Excel row in the source worksheet


@dataclass
class MergedSheet:
    """Canonical columns plus the accumulated rows of one output sheet."""
    name: str
    columns: list[str]
    rows: list[MergedRow] = field(default_factory=list)

    def column_index(self, column_name: str) -> int:
        """Case-insensitive position of a column, -1 when absent."""
        wanted = column_name.casefold()
        for idx, name in enumerate(self.columns):
            if name.casefold() == wanted:
                return idx
        return -1

    def column_indices(self) -> dict[str, int]:
        return {name: idx for idx, name in enumerate(self.columns)}

    def row_values(self) -> list[list[Any]]:
        return [row.values for row in self.rows]
