# Shared pytest fixtures: temp work dir and RVTools-like workbooks
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

VINFO_COLUMNS = [
    "VM",
    "Powerstate",
    "Template",
    "SRM Placeholder",
    "CPUs",
    "Memory",
    "NICs",
    "Disks",
    "Provisioned MiB",
    "In Use MiB",
    "Creation Date",
    "OS according to the configuration file",
    "DNS Name",
    "Primary IP Address",
    "Datacenter",
    "Cluster",
    "Host",
    "VM UUID",
]
VHOST_COLUMNS = [
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
]
VPARTITION_COLUMNS = ["VM", "VM UUID", "Disk", "Capacity MiB", "Consumed MiB"]
VMEMORY_COLUMNS = ["VM", "VM UUID", "Size MiB", "Reservation"]


def vm_uuid(prefix: str, i: int) -> str:
    return f"4210{prefix}-0000-0000-0000-{i:012d}"


def vinfo_row(prefix: str, i: int, host: str = "esx01") -> list[Any]:
    return [
        f"{prefix}-{i:03d}",
        "poweredOn",
        "False",
        "False",
        2,
        4096,
        1,
        1,
        40960,
        20480,
        "2024-01-15",
        "Microsoft Windows Server 2019 (64-bit)",
        f"{prefix}-{i:03d}.corp.local",
        f"10.0.{i // 250}.{i % 250 + 1}",
        "DC1",
        "Cluster-A",
        host,
        vm_uuid(prefix, i),
    ]


def vhost_row(host: str) -> list[Any]:
    return [host, "DC1", "Cluster-A", "Intel Xeon Gold 6230", 2100, 2, 20, 40, 35, 524288, 60]


def write_workbook_rows(path: Path, sheets: dict[str, list[list[Any]]]) -> Path:
    """Write raw rows (header row first) per sheet, like an RVTools export."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            df = pd.DataFrame(rows)
            df.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


def build_rvtools_sheets(
    prefix: str = "vm",
    vm_count: int = 2,
    hosts: tuple[str, ...] = ("esx01",),
    partitions_per_vm: int = 1,
    memory_rows_per_vm: int = 1,
) -> dict[str, list[list[Any]]]:
    vinfo = [list(VINFO_COLUMNS)] + [vinfo_row(prefix, i, hosts[i % len(hosts)]) for i in range(1, vm_count + 1)]
    vhost = [list(VHOST_COLUMNS)] + [vhost_row(h) for h in hosts]
    vpartition = [list(VPARTITION_COLUMNS)]
    vmemory = [list(VMEMORY_COLUMNS)]
    for i in range(1, vm_count + 1):
        name = f"{prefix}-{i:03d}"
        for d in range(partitions_per_vm):
            vpartition.append([name, vm_uuid(prefix, i), f"C:\\{d}" if d else "C:\\", 40960, 10240])
        for _ in range(memory_rows_per_vm):
            vmemory.append([name, vm_uuid(prefix, i), 4096, 0])
    return {"vInfo": vinfo, "vHost": vhost, "vPartition": vpartition, "vMemory": vmemory}


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def make_rvtools_file(temp_workdir: Path) -> Callable[..., Path]:
    """Factory writing an RVTools-like export into data/.

    Keyword arguments go to build_rvtools_sheets; ``drop_sheets`` and
    ``drop_vinfo_columns`` remove parts of the generated workbook.
    """

    def _make(
        name: str,
        *,
        drop_sheets: tuple[str, ...] = (),
        drop_vinfo_columns: tuple[str, ...] = (),
        **kwargs: Any,
    ) -> Path:
        sheets = build_rvtools_sheets(**kwargs)
        for sheet_name in drop_sheets:
            sheets.pop(sheet_name, None)
        if drop_vinfo_columns and "vInfo" in sheets:
            keep = [i for i, c in enumerate(sheets["vInfo"][0]) if c not in drop_vinfo_columns]
            sheets["vInfo"] = [[row[i] for i in keep] for row in sheets["vInfo"]]
        return write_workbook_rows(temp_workdir / "data" / name, sheets)

    return _make


@pytest.fixture()
def read_output() -> Callable[[Path], dict[str, pd.DataFrame]]:
    """Read every sheet of a written workbook (header on the first row)."""

    def _read(path: Path) -> dict[str, pd.DataFrame]:
        return pd.read_excel(path, sheet_name=None, engine="openpyxl", dtype=object)

    return _read
