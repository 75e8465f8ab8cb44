from __future__ import annotations

import json
import re
from pathlib import Path

import pytest

from rvtools_merge.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main as cli_main
from rvtools_merge.logging.init import reset_logging

"""CLI runs end to end: exit codes, SUMMARY line, side outputs and the debug issue log."""

SUMMARY_RE = re.compile(r"^SUMMARY files=(\d+)/(\d+) skipped=(\d+) sheets=(\d+) rows=(\d+) vinfo_rows=(\d+) ", re.M)


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


def test_directory_input_success(make_rvtools_file, temp_workdir: Path, capsys):
    make_rvtools_file("a.xlsx", prefix="a", vm_count=2)
    make_rvtools_file("b.xlsx", prefix="b", vm_count=2)

    code = cli_main(["data", "-o", "merged.xlsx"])

    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert (temp_workdir / "merged.xlsx").exists()
    m = SUMMARY_RE.search(out)
    assert m is not None
    # 4 vInfo + 2 vHost + 4 vPartition + 4 vMemory
    assert m.groups() == ("2", "2", "0", "4", "14", "4")


def test_skipped_file_gives_partial_exit_code(make_rvtools_file, temp_workdir: Path, capsys):
    good = make_rvtools_file("good.xlsx", prefix="g")
    bad = make_rvtools_file("bad.xlsx", prefix="b", drop_vinfo_columns=("VM",))

    code = cli_main([str(good), str(bad), "-o", "merged.xlsx", "-s"])

    out = capsys.readouterr().out
    assert code == EXIT_PARTIAL_FAILURE
    assert "WARN [error] bad.xlsx: 'vInfo' sheet is missing mandatory column(s): VM" in out
    assert "SUMMARY files=1/2 skipped=1" in out


def test_invalid_file_without_skip_is_fatal(make_rvtools_file, temp_workdir: Path, capsys):
    good = make_rvtools_file("good.xlsx", prefix="g")
    bad = make_rvtools_file("bad.xlsx", prefix="b", drop_sheets=("vInfo",))

    code = cli_main([str(good), str(bad), "--no-skip-invalid-files"])

    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "At least one invalid file found" in out
    assert not (temp_workdir / "merged-output.xlsx").exists()


def test_anonymize_and_row_cap(make_rvtools_file, temp_workdir: Path, capsys):
    make_rvtools_file("a.xlsx", vm_count=5)

    code = cli_main(["data", "-a", "--max-vinfo-rows", "2", "-o", "out/merged.xlsx"])

    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert (temp_workdir / "out" / "merged_AnonymizationMapping.xlsx").exists()
    assert "vinfo_rows=2" in out
    assert "anonymized=" in out


def test_debug_mode_writes_issue_log(make_rvtools_file, temp_workdir: Path, capsys):
    make_rvtools_file("a.xlsx", drop_sheets=("vHost",))

    code = cli_main(["data", "-d"])

    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert "DEBUG" in out
    logs = list((temp_workdir / "logs").glob("issues-*.log"))
    assert len(logs) == 1
    records = [json.loads(line) for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert records == [{"file_name": "a.xlsx", "skipped": True, "message": "Missing optional sheet 'vHost'."}]
