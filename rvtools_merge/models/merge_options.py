from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

"""MergeOptions model.

Constructed once by the caller (CLI or library user) before a merge and never
mutated during the run. Cross-option conflicts (anonymize + all sheets) are
reported by the orchestrator, which owns the error taxonomy for a merge.
"""

__all__ = [
    "MergeOptions",
]


@dataclass(frozen=True)
class MergeOptions:
    """Configuration options for one merge run."""
    ignore_missing_optional_sheets: bool = False  # skip the check for non-minimum sheets
    skip_invalid_files: bool = True  # drop invalid files instead of aborting
    anonymize_data: bool = False
    only_mandatory_columns: bool = False
    include_source_file_name: bool = True  # append a "Source File" column
    skip_rows_with_empty_mandatory_values: bool = False
    max_primary_rows: int | None = None  # cap on vInfo rows; positive or None
    process_all_sheets: bool = False  # dynamic sheet discovery
    debug_mode: bool = False
    enable_azure_migrate_validation: bool = False

    def __post_init__(self) -> None:
        if self.max_primary_rows is not None:
            if isinstance(self.max_primary_rows, bool) or not isinstance(self.max_primary_rows, int):
                raise ValueError(
                    f"max_primary_rows must be an integer, got {type(self.max_primary_rows).__name__}"
                )
            if self.max_primary_rows <= 0:
                raise ValueError(f"max_primary_rows must be positive, got {self.max_primary_rows}")

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> MergeOptions:
        """Build options from a plain dict, ignoring keys that are not options."""
        known = cls.field_names()
        return cls(**{k: v for k, v in data.items() if k in known})
