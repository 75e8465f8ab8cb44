from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Azure Migrate validation models.

Azure Migrate imports reject rows without a VM UUID or OS configuration,
reject duplicate UUIDs and accept at most 20,000 VMs per import. Rows failing
these rules are collected here and written to a side workbook.
"""

__all__ = [
    "AZURE_MIGRATE_VM_LIMIT",
    "AzureMigrateFailureReason",
    "AzureMigrateValidationFailure",
    "AzureMigrateValidationResult",
]

AZURE_MIGRATE_VM_LIMIT = 20_000


class AzureMigrateFailureReason(Enum):
    """Reason a vInfo row failed Azure Migrate validation."""
    MISSING_VM_UUID = "MissingVmUuid"
    MISSING_OS_CONFIGURATION = "MissingOsConfiguration"
    DUPLICATE_VM_UUID = "DuplicateVmUuid"
    VM_COUNT_EXCEEDED = "VmCountExceeded"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    AzureMigrateFailureReason.MISSING_VM_UUID: "Missing VM UUID",
    AzureMigrateFailureReason.MISSING_OS_CONFIGURATION: "Missing OS Configuration",
    AzureMigrateFailureReason.DUPLICATE_VM_UUID: "Duplicate VM UUID",
    AzureMigrateFailureReason.VM_COUNT_EXCEEDED: (
        f"VM Count Limit Exceeded ({AZURE_MIGRATE_VM_LIMIT:,} VMs maximum)"
    ),
}


@dataclass(frozen=True)
class AzureMigrateValidationFailure:
    row_data: tuple[Any, ...]
    reason: AzureMigrateFailureReason


@dataclass
class AzureMigrateValidationResult:
    """Aggregated Azure Migrate validation outcome for the primary sheet."""
    failed_rows: list[AzureMigrateValidationFailure] = field(default_factory=list)
    missing_vm_uuid_count: int = 0
    missing_os_configuration_count: int = 0
    duplicate_vm_uuid_count: int = 0
    vm_count_exceeded_count: int = 0
    vm_count_limit_reached: bool = False
    total_vms_processed: int = 0
    rows_skipped_after_limit_reached: int = 0

    @property
    def total_failed_rows(self) -> int:
        return len(self.failed_rows)

    def record(self, row_data: tuple[Any, ...], reason: AzureMigrateFailureReason) -> None:
        """Store a failed row and bump the counter matching its reason."""
        self.failed_rows.append(AzureMigrateValidationFailure(row_data=row_data, reason=reason))
        if reason is AzureMigrateFailureReason.MISSING_VM_UUID:
            self.missing_vm_uuid_count += 1
        elif reason is AzureMigrateFailureReason.MISSING_OS_CONFIGURATION:
            self.missing_os_configuration_count += 1
        elif reason is AzureMigrateFailureReason.DUPLICATE_VM_UUID:
            self.duplicate_vm_uuid_count += 1
        elif reason is AzureMigrateFailureReason.VM_COUNT_EXCEEDED:
            self.vm_count_exceeded_count += 1
            self.vm_count_limit_reached = True
