from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "ColumnMapping",
]


@dataclass(frozen=True)
class ColumnMapping:
    """Pairs a worksheet column with its position in the merged sheet (both 0-based)."""
    file_column_index: int
    canonical_column_index: int
