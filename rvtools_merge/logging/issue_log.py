from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from rvtools_merge.models.validation_issue import ValidationIssue

"""Validation issue log (JSON Lines).

In debug mode the CLI persists every validation issue of a run to
``logs/issues-YYYYMMDD-HHMMSS.log`` (UTC), one JSON object per line with the
keys file_name, skipped and message.
"""

__all__ = [
    "IssueLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class IssueLogBuffer:
    """In-memory buffer of validation issues. flush() appends JSON Lines to the log file."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ValidationIssue] = []
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"issues-{stamp}.log"
        return self._file_path

    def append(self, issue: ValidationIssue) -> None:
        self._records.append(issue)

    def extend(self, issues: Iterable[ValidationIssue]) -> None:
        self._records.extend(issues)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered issues and clear the buffer; None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for issue in self._records:
                f.write(issue.to_json_line() + "\n")
        self._records.clear()
        return fp
