from __future__ import annotations

import json
import re
from pathlib import Path

from rvtools_merge.logging.issue_log import IssueLogBuffer
from rvtools_merge.models.validation_issue import ValidationIssue


def test_flush_writes_json_lines(tmp_path: Path):
    buf = IssueLogBuffer(logs_dir=tmp_path / "logs")
    buf.append(ValidationIssue("a.xlsx", False, "'vInfo' sheet is missing mandatory column(s): VM UUID"))
    buf.extend([ValidationIssue("b.xlsx", True, "Missing optional sheet 'vHost'.")])
    assert len(buf) == 2

    path = buf.flush()
    assert path is not None
    assert re.fullmatch(r"issues-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert records == [
        {"file_name": "a.xlsx", "skipped": False, "message": "'vInfo' sheet is missing mandatory column(s): VM UUID"},
        {"file_name": "b.xlsx", "skipped": True, "message": "Missing optional sheet 'vHost'."},
    ]
    assert len(buf) == 0


def test_flush_empty_buffer_writes_nothing(tmp_path: Path):
    logs = tmp_path / "logs"
    buf = IssueLogBuffer(logs_dir=logs)
    assert buf.flush() is None
    assert not logs.exists()


def test_second_flush_appends_to_same_file(tmp_path: Path):
    buf = IssueLogBuffer(logs_dir=tmp_path)
    buf.append(ValidationIssue("a.xlsx", True, "one"))
    first = buf.flush()
    buf.append(ValidationIssue("a.xlsx", True, "two"))
    second = buf.flush()
    assert first == second
    assert len(first.read_text(encoding="utf-8").splitlines()) == 2


def test_non_ascii_messages_are_kept(tmp_path: Path):
    buf = IssueLogBuffer(logs_dir=tmp_path)
    buf.append(ValidationIssue("müller.xlsx", True, "Zeile übersprungen"))
    path = buf.flush()
    assert "müller.xlsx" in path.read_text(encoding="utf-8")
