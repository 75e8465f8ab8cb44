"""Domain models for the RVTools merge tool."""

from .azure_migrate import (
    AZURE_MIGRATE_VM_LIMIT,
    AzureMigrateFailureReason,
    AzureMigrateValidationFailure,
    AzureMigrateValidationResult,
)
from .column_mapping import ColumnMapping
from .merge_options import MergeOptions
from .merge_result import MergeResult, SheetStat
from .merged_sheet import MergedRow, MergedSheet
from .validation_issue import ValidationIssue

__all__ = [
    # Configuration models
    "MergeOptions",
    # Processing models
    "ColumnMapping",
    "ValidationIssue",
    "MergedRow",
    "MergedSheet",
    "AZURE_MIGRATE_VM_LIMIT",
    "AzureMigrateFailureReason",
    "AzureMigrateValidationFailure",
    "AzureMigrateValidationResult",
    # Result models
    "MergeResult",
    "SheetStat",
]
