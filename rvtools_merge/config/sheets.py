from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

"""Static RVTools sheet configuration.

Known sheets, which of them are required, their mandatory columns and the
header aliases used by older RVTools export versions. Built once at import
time and exposed through read-only mappings only.
"""

__all__ = [
    "SheetSchema",
    "PRIMARY_SHEET",
    "REQUIRED_SHEETS",
    "MINIMUM_REQUIRED_SHEETS",
    "MANDATORY_COLUMNS",
    "SHEET_COLUMN_HEADER_MAPPINGS",
    "SHEET_SCHEMAS",
    "get_sheet_schema",
    "get_mandatory_columns",
    "get_header_aliases",
]

PRIMARY_SHEET = "vInfo"

REQUIRED_SHEETS: tuple[str, ...] = ("vInfo", "vHost", "vPartition", "vMemory")

MINIMUM_REQUIRED_SHEETS: tuple[str, ...] = (PRIMARY_SHEET,)

# Column names shared by several components
VM_COLUMN = "VM"
VM_UUID_COLUMN = "VM UUID"
HOST_COLUMN = "Host"
OS_CONFIGURATION_COLUMN = "OS according to the configuration file"
SOURCE_FILE_COLUMN = "Source File"


@dataclass(frozen=True)
class SheetSchema:
    """Configuration of one known RVTools sheet."""
    name: str
    is_minimum_required: bool
    is_required: bool
    mandatory_columns: tuple[str, ...]
    header_aliases: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def canonical_header(self, raw: str) -> str | None:
        """Return the canonical name for an alias header (case-insensitive), else None."""
        wanted = raw.casefold()
        for alias, canonical in self.header_aliases.items():
            if alias.casefold() == wanted:
                return canonical
        return None


_HEADER_MAPPINGS: dict[str, dict[str, str]] = {
    "vInfo": {
        "vInfoVMName": "VM",
        "vInfoUUID": "VM UUID",
        "vInfoPowerstate": "Powerstate",
        "vInfoTemplate": "Template",
        "vInfoGuestHostName": "DNS Name",
        "vInfoCPUs": "CPUs",
        "vInfoMemory": "Memory",
        "vInfoProvisioned": "Provisioned MiB",
        "vInfoInUse": "In Use MiB",
        "vInfoDataCenter": "Datacenter",
        "vInfoCluster": "Cluster",
        "vInfoHost": "Host",
        "vInfoSRMPlaceHolder": "SRM Placeholder",
        "vInfoOSTools": "OS according to the VMware Tools",
        "vInfoOS": "OS according to the configuration file",
        "vInfoPrimaryIPAddress": "Primary IP Address",
        "vInfoNetwork1": "Network #1",
        "vInfoNetwork2": "Network #2",
        "vInfoNetwork3": "Network #3",
        "vInfoNetwork4": "Network #4",
        "vInfoNetwork5": "Network #5",
        "vInfoNetwork6": "Network #6",
        "vInfoNetwork7": "Network #7",
        "vInfoNetwork8": "Network #8",
        "vInfoResourcepool": "Resource pool",
        "vInfoFolder": "Folder",
        "vInfoCreateDate": "Creation Date",
        "vInfoNICs": "NICs",
        "vInfoNumVirtualDisks": "Disks",
    },
    "vHost": {
        "vHostName": "Host",
        "vHostDatacenter": "Datacenter",
        "vHostCluster": "Cluster",
        "vHostvSANFaultDomainName": "vSAN Fault Domain Name",
        "vHostCpuModel": "CPU Model",
        "vHostCpuMhz": "Speed",
        "vHostNumCpu": "# CPU",
        "vHostCoresPerCPU": "Cores per CPU",
        "vHostNumCpuCores": "# Cores",
        "vHostOverallCpuUsage": "CPU usage %",
        "vHostMemorySize": "# Memory",
        "vHostOverallMemoryUsage": "Memory usage %",
        "vHostvCPUs": "# vCPUs",
        "vHostVCPUsPerCore": "vCPUs per Core",
    },
    "vPartition": {
        "vPartitionDisk": "Disk",
        "vPartitionVMName": "VM",
        "vPartitionUUID": "VM UUID",
        "vPartitionConsumedMiB": "Consumed MiB",
        "vPartitionCapacityMiB": "Capacity MiB",
    },
    "vMemory": {
        "vMemoryVMName": "VM",
        "vMemoryUUID": "VM UUID",
        "vMemorySizeMiB": "Size MiB",
        "vMemoryReservation": "Reservation",
    },
}

_MANDATORY: dict[str, tuple[str, ...]] = {
    "vInfo": (
        "VM UUID",
        "Template",
        "SRM Placeholder",
        "Powerstate",
        "VM",
        "CPUs",
        "Memory",
        "In Use MiB",
        "OS according to the configuration file",
        "Creation Date",
        "NICs",
        "Disks",
        "Provisioned MiB",
    ),
    "vHost": (
        "Host",
        "Datacenter",
        "Cluster",
        "CPU Model",
        "Speed",
        "# CPU",
        "Cores per CPU",
        "# Cores",
        "CPU usage %",
        "# Memory",
        "Memory usage %",
    ),
    "vPartition": ("VM UUID", "VM", "Disk", "Capacity MiB", "Consumed MiB"),
    "vMemory": ("VM UUID", "VM", "Size MiB", "Reservation"),
}

SHEET_COLUMN_HEADER_MAPPINGS: Mapping[str, Mapping[str, str]] = MappingProxyType(
    {name: MappingProxyType(dict(aliases)) for name, aliases in _HEADER_MAPPINGS.items()}
)

MANDATORY_COLUMNS: Mapping[str, tuple[str, ...]] = MappingProxyType(dict(_MANDATORY))

SHEET_SCHEMAS: Mapping[str, SheetSchema] = MappingProxyType(
    {
        name: SheetSchema(
            name=name,
            is_minimum_required=name in MINIMUM_REQUIRED_SHEETS,
            is_required=name in REQUIRED_SHEETS,
            mandatory_columns=MANDATORY_COLUMNS.get(name, ()),
            header_aliases=SHEET_COLUMN_HEADER_MAPPINGS.get(name, MappingProxyType({})),
        )
        for name in REQUIRED_SHEETS
    }
)


def get_sheet_schema(sheet_name: str) -> SheetSchema | None:
    return SHEET_SCHEMAS.get(sheet_name)


def get_mandatory_columns(sheet_name: str) -> tuple[str, ...]:
    """Mandatory columns of a known sheet; empty tuple for unknown sheets."""
    return MANDATORY_COLUMNS.get(sheet_name, ())


def get_header_aliases(sheet_name: str) -> Mapping[str, str]:
    return SHEET_COLUMN_HEADER_MAPPINGS.get(sheet_name, MappingProxyType({}))
