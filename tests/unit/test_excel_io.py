from __future__ import annotations

from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pandas as pd
import pytest
from openpyxl import load_workbook

from conftest import write_workbook_rows
from rvtools_merge.excel.reader import WorkbookOpenError, normalize_cell, open_workbook
from rvtools_merge.excel.writer import WorkbookWriteError, write_workbook


def test_open_missing_workbook(tmp_path: Path):
    with pytest.raises(WorkbookOpenError, match="Excel file not found"):
        open_workbook(tmp_path / "missing.xlsx")


def test_read_sheet_header_rows_and_blank_handling(tmp_path: Path):
    path = write_workbook_rows(
        tmp_path / "in.xlsx",
        {
            "vInfo": [
                ["VM", "Host", "Note"],
                ["vm1", "esx01", "NA"],
                [None, None, None],
                ["vm2", None, "null"],
            ]
        },
    )
    with open_workbook(path) as wb:
        assert wb.sheet_names == ["vInfo"]
        assert wb.find_sheet("VINFO") == "vInfo"
        assert wb.has_sheet("vHost") is False
        sheet = wb.read_sheet("vinfo")

    assert sheet.header == ["VM", "Host", "Note"]
    # NA-like strings are real values; blank cells become None
    assert sheet.rows == [["vm1", "esx01", "NA"], ["vm2", None, "null"]]
    assert sheet.has_data_rows


def test_read_unknown_sheet_raises_key_error(tmp_path: Path):
    path = write_workbook_rows(tmp_path / "in.xlsx", {"vInfo": [["VM"], ["vm1"]]})
    with open_workbook(path) as wb:
        with pytest.raises(KeyError):
            wb.read_sheet("vHost")


def test_normalize_cell():
    assert normalize_cell(float("nan")) is None
    assert normalize_cell(pd.NaT) is None
    assert normalize_cell(pd.Timestamp("2024-01-15 10:00")) == datetime(2024, 1, 15, 10, 0)
    assert normalize_cell("x") == "x"


def test_write_workbook_sheet_order_and_widths(tmp_path: Path):
    out = tmp_path / "out" / "merged.xlsx"
    write_workbook(
        out,
        {
            "vInfo": (["VM", "Source File"], [["vm1", "a.xlsx"], ["vm2", "b.xlsx"]]),
            "vHost": (["Host"], []),
        },
    )
    wb = load_workbook(out)
    assert wb.sheetnames == ["vInfo", "vHost"]
    ws = wb["vInfo"]
    assert [c.value for c in ws[1]] == ["VM", "Source File"]
    assert ws.max_row == 3
    assert ws.column_dimensions["B"].width == len("Source File") + 2
    assert [c.value for c in wb["vHost"][1]] == ["Host"]
    # no temporary files left behind
    assert [p.name for p in out.parent.iterdir()] == ["merged.xlsx"]


def test_write_workbook_requires_sheets(tmp_path: Path):
    with pytest.raises(WorkbookWriteError):
        write_workbook(tmp_path / "x.xlsx", {})


def test_write_failure_keeps_existing_output(tmp_path: Path):
    out = tmp_path / "merged.xlsx"
    out.write_bytes(b"previous")
    with patch("rvtools_merge.excel.writer.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(WorkbookWriteError, match="disk full"):
            write_workbook(out, {"vInfo": (["VM"], [["vm1"]])})
    assert out.read_bytes() == b"previous"
    assert [p.name for p in tmp_path.iterdir()] == ["merged.xlsx"]
