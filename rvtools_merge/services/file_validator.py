from __future__ import annotations

import logging
from pathlib import Path

from ..config.sheets import MINIMUM_REQUIRED_SHEETS, REQUIRED_SHEETS, get_mandatory_columns
from ..excel.reader import Workbook, WorkbookOpenError, open_workbook
from ..models.validation_issue import ValidationIssue
from .column_resolver import get_column_names

"""File level validation of RVTools exports.

Steps per file (the first critical failure stops validation):
1. open the workbook
2. the minimum required sheet (vInfo) must exist
3. its mandatory columns must exist (after header alias normalization)
4. it must contain at least one data row
5. unless ignored, every other required sheet should exist; a missing one is
   reported as a non-fatal (skipped) issue and the file stays valid
"""

__all__ = [
    "validate_file",
]

logger = logging.getLogger(__name__)


def _critical(issues: list[ValidationIssue], file_name: str, message: str) -> bool:
    issues.append(ValidationIssue(file_name=file_name, skipped=False, message=message))
    logger.warning("file=%s invalid: %s", file_name, message)
    return False


def _check_minimum_sheet(workbook: Workbook, sheet_name: str, issues: list[ValidationIssue]) -> bool:
    file_name = workbook.name
    if not workbook.has_sheet(sheet_name):
        return _critical(
            issues,
            file_name,
            f"Missing essential '{sheet_name}' sheet which is required for processing.",
        )

    sheet = workbook.read_sheet(sheet_name)
    column_names = {c.casefold() for c in get_column_names(sheet.header, sheet_name)}
    missing = [c for c in get_mandatory_columns(sheet_name) if c.casefold() not in column_names]
    if missing:
        return _critical(
            issues,
            file_name,
            f"'{sheet_name}' sheet is missing mandatory column(s): {', '.join(missing)}",
        )

    if not sheet.has_data_rows:
        return _critical(
            issues,
            file_name,
            f"'{sheet_name}' sheet contains no data rows. At least one entry is required.",
        )
    return True


def validate_file(path: Path, ignore_missing_optional_sheets: bool, issues: list[ValidationIssue]) -> bool:
    """Validate one RVTools export.

    Args:
        path: Workbook to validate
        ignore_missing_optional_sheets: Skip the check for required, non-minimum sheets
        issues: Append-only issue list shared by the whole merge run

    Returns:
        True when the file can be merged. Non-fatal issues may still have been appended.
    """
    path = Path(path)
    file_name = path.name

    try:
        workbook = open_workbook(path)
    except WorkbookOpenError as e:
        return _critical(issues, file_name, f"Error validating file: {e}")

    with workbook:
        try:
            for sheet_name in MINIMUM_REQUIRED_SHEETS:
                if not _check_minimum_sheet(workbook, sheet_name, issues):
                    return False
        except Exception as e:
            # Corrupt sheet content surfaces only while parsing
            return _critical(issues, file_name, f"Error validating file: {e}")

        if not ignore_missing_optional_sheets:
            for sheet_name in REQUIRED_SHEETS:
                if sheet_name in MINIMUM_REQUIRED_SHEETS or workbook.has_sheet(sheet_name):
                    continue
                issues.append(
                    ValidationIssue(
                        file_name=file_name,
                        skipped=True,
                        message=f"Missing optional sheet '{sheet_name}'.",
                    )
                )
                logger.info("file=%s missing optional sheet %s", file_name, sheet_name)

    logger.debug("file=%s validation passed", file_name)
    return True
