from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path

import pytest

from rvtools_merge.models.azure_migrate import AzureMigrateFailureReason, AzureMigrateValidationResult
from rvtools_merge.models.merge_result import MergeResult, SheetStat
from rvtools_merge.models.validation_issue import ValidationIssue
from rvtools_merge.services.summary import format_elapsed, render_issue, render_issues, render_summary_line

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY files=(\d+)/(\d+) skipped=(\d+) sheets=(\d+) rows=(\d+) vinfo_rows=(\d+) "
    r"elapsed_sec=([0-9]+\.?[0-9]*)( anonymized=\d+)?( azure_failed=\d+)?$"
)


def _result(**kwargs) -> MergeResult:
    start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
    base = dict(
        input_files=3,
        valid_files=["a.xlsx", "b.xlsx"],
        skipped_files=["c.xlsx"],
        sheet_stats=[SheetStat("vInfo", 10, 19), SheetStat("vHost", 2, 12), SheetStat("vPartition", 20, 6)],
        output_path=Path("merged-output.xlsx"),
        start_time=start,
        end_time=start,
        elapsed_seconds=2.0,
    )
    base.update(kwargs)
    return MergeResult(**base)


def test_summary_line_basic():
    line = render_summary_line(_result())
    assert line == "SUMMARY files=2/3 skipped=1 sheets=3 rows=32 vinfo_rows=10 elapsed_sec=2"
    assert SUMMARY_PATTERN.match(line)


def test_summary_line_optional_keys():
    azure = AzureMigrateValidationResult()
    azure.record(("x",), AzureMigrateFailureReason.MISSING_VM_UUID)
    line = render_summary_line(
        _result(anonymization_statistics={"VMs": {"a.xlsx": 3, "b.xlsx": 2}, "Hosts": {"a.xlsx": 1}}, azure_migrate_result=azure)
    )
    assert line.endswith("anonymized=6 azure_failed=1")
    assert SUMMARY_PATTERN.match(line)


@pytest.mark.parametrize(
    "seconds,expected",
    [(0, "0"), (3.0, "3"), (1.25, "1.25"), (0.0015, "0.0015")],
)
def test_format_elapsed(seconds, expected):
    assert format_elapsed(seconds) == expected


def test_render_issues():
    issues = [ValidationIssue("a.xlsx", True, "Missing optional sheet 'vHost'."), ValidationIssue("b.xlsx", False, "boom")]
    assert render_issue(issues[0]) == "[skipped] a.xlsx: Missing optional sheet 'vHost'."
    assert render_issues(issues)[1] == "[error] b.xlsx: boom"


def test_merge_result_helpers():
    result = _result()
    assert result.sheet_names == ["vInfo", "vHost", "vPartition"]
    assert result.rows_for("vPartition") == 20
    assert result.rows_for("vMemory") == 0
