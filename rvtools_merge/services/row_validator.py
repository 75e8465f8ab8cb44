from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from ..models.azure_migrate import AZURE_MIGRATE_VM_LIMIT, AzureMigrateFailureReason

"""Row level validation.

Data quality problems are reported as return values. The one exception is an
out-of-range mandatory column index, which means the caller built a wrong
column mapping and is raised as IndexError.
"""

__all__ = [
    "is_blank",
    "has_empty_mandatory_values",
    "validate_azure_migrate_row",
]


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT and empty or whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        # pandas.NaT and friends compare unequal to themselves
        return bool(value != value)
    except (TypeError, ValueError):
        return False


def has_empty_mandatory_values(row: Sequence[Any], mandatory_indices: Sequence[int]) -> bool:
    """Check whether any mandatory cell of a row is blank.

    Negative indices are ignored. Indices beyond the row length raise
    IndexError.
    """
    for idx in mandatory_indices:
        if idx < 0:
            continue
        if idx >= len(row):
            raise IndexError(
                f"mandatory column index {idx} out of range for row of length {len(row)}"
            )
        if is_blank(row[idx]):
            return True
    return False


def _cell_text(row: Sequence[Any], idx: int) -> str | None:
    if idx < 0 or idx >= len(row) or is_blank(row[idx]):
        return None
    return str(row[idx]).strip()


def validate_azure_migrate_row(
    row: Sequence[Any],
    vm_uuid_index: int,
    os_config_index: int,
    seen_uuids: set[str],
    row_number: int,
) -> AzureMigrateFailureReason | None:
    """Apply the Azure Migrate import rules to one vInfo row.

    Checks run in a fixed order and the first failure wins: VM count limit,
    missing VM UUID, missing OS configuration, duplicate VM UUID.

    Args:
        row: Cell values in merged column order
        vm_uuid_index: Position of "VM UUID" (-1 when the column is absent)
        os_config_index: Position of "OS according to the configuration file" (-1 when absent)
        seen_uuids: UUIDs accepted so far; updated only when the row is valid
        row_number: Number of VMs accepted before this row

    Returns:
        The failure reason, or None for a valid row
    """
    if row_number >= AZURE_MIGRATE_VM_LIMIT:
        return AzureMigrateFailureReason.VM_COUNT_EXCEEDED

    vm_uuid = _cell_text(row, vm_uuid_index)
    if vm_uuid is None:
        return AzureMigrateFailureReason.MISSING_VM_UUID

    if _cell_text(row, os_config_index) is None:
        return AzureMigrateFailureReason.MISSING_OS_CONFIGURATION

    if vm_uuid in seen_uuids:
        return AzureMigrateFailureReason.DUPLICATE_VM_UUID

    seen_uuids.add(vm_uuid)
    return None
