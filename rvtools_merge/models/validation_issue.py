from __future__ import annotations

import json
from dataclasses import asdict, dataclass

"""ValidationIssue model.

Issues are appended by the file validator and the orchestrator into one
ordered list per merge run and drained by the caller for reporting. They are
never mutated after creation.
"""

__all__ = [
    "ValidationIssue",
]


@dataclass(frozen=True)
class ValidationIssue:
    """One validation finding for a source file.

    Attributes:
        file_name: Base name of the source workbook
        skipped: True for non-fatal issues (row or sheet excluded, merge continues),
            False for critical issues that invalidate the file
        message: Human readable description
    """
    file_name: str
    skipped: bool
    message: str

    @property
    def critical(self) -> bool:
        return not self.skipped

    def to_json_line(self) -> str:
        """Serialize to a single JSON line (keys: file_name, skipped, message)."""
        return json.dumps(asdict(self), ensure_ascii=False)
