from __future__ import annotations

from collections.abc import Iterable

from ..models.merge_result import MergeResult
from ..models.validation_issue import ValidationIssue

"""SUMMARY line and validation issue rendering.

The SUMMARY line is a single ``key=value`` line meant for log scraping:

    SUMMARY files=2/3 skipped=1 sheets=4 rows=1520 vinfo_rows=600 elapsed_sec=1.25

Optional keys are appended only when the matching feature ran:
``anonymized=<n>`` and ``azure_failed=<n>``.
"""

__all__ = [
    "format_elapsed",
    "render_summary_line",
    "render_issue",
    "render_issues",
]


def format_elapsed(seconds: float) -> str:
    """Compact seconds: integers without decimals, no scientific notation."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return str(seconds)


def render_summary_line(result: MergeResult) -> str:
    """Render the SUMMARY line for a finished merge.

    >>> render_summary_line(result)  # doctest: +SKIP
    'SUMMARY files=2/2 skipped=0 sheets=4 rows=40 vinfo_rows=10 elapsed_sec=0.5'
    """
    parts = [
        f"files={len(result.valid_files)}/{result.input_files}",
        f"skipped={len(result.skipped_files)}",
        f"sheets={len(result.sheet_stats)}",
        f"rows={result.total_rows}",
        f"vinfo_rows={result.rows_for('vInfo')}",
        f"elapsed_sec={format_elapsed(result.elapsed_seconds)}",
    ]
    if result.anonymization_statistics:
        anonymized = sum(
            count for files in result.anonymization_statistics.values() for count in files.values()
        )
        parts.append(f"anonymized={anonymized}")
    if result.azure_migrate_result is not None:
        parts.append(f"azure_failed={result.azure_migrate_result.total_failed_rows}")
    return "SUMMARY " + " ".join(parts)


def render_issue(issue: ValidationIssue) -> str:
    status = "skipped" if issue.skipped else "error"
    return f"[{status}] {issue.file_name}: {issue.message}"


def render_issues(issues: Iterable[ValidationIssue]) -> list[str]:
    return [render_issue(i) for i in issues]
