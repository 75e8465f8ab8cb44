from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .azure_migrate import AzureMigrateValidationResult

"""Merge result models.

Aggregated outcome of one merge run, used for the SUMMARY line and by callers
that want per-sheet figures without re-reading the output workbook.
"""

__all__ = [
    "SheetStat",
    "MergeResult",
]


@dataclass(frozen=True)
class SheetStat:
    """Per-sheet figures of the merged workbook."""
    sheet_name: str
    rows: int  # data rows written (header excluded)
    columns: int
    rows_removed_by_limit: int = 0


@dataclass(frozen=True)
class MergeResult:
    """Outcome of a successful merge (FR: summary + side artifacts)."""
    input_files: int
    valid_files: list[str]
    skipped_files: list[str]
    sheet_stats: list[SheetStat]  # output sheet order
    output_path: Path
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    anonymization_map_path: Path | None = None
    failed_validation_path: Path | None = None
    anonymization_statistics: dict[str, dict[str, int]] = field(default_factory=dict)
    azure_migrate_result: AzureMigrateValidationResult | None = None

    @property
    def sheet_names(self) -> list[str]:
        return [s.sheet_name for s in self.sheet_stats]

    @property
    def total_rows(self) -> int:
        return sum(s.rows for s in self.sheet_stats)

    def rows_for(self, sheet_name: str) -> int:
        for stat in self.sheet_stats:
            if stat.sheet_name == sheet_name:
                return stat.rows
        return 0
