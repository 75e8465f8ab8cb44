from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..config.sheets import (
    OS_CONFIGURATION_COLUMN,
    PRIMARY_SHEET,
    REQUIRED_SHEETS,
    SOURCE_FILE_COLUMN,
    VM_UUID_COLUMN,
    get_mandatory_columns,
)
from ..excel.reader import SheetData, open_workbook
from ..excel.writer import SheetContent, WorkbookWriteError, write_workbook
from ..models.azure_migrate import AZURE_MIGRATE_VM_LIMIT, AzureMigrateFailureReason, AzureMigrateValidationResult
from ..models.merge_options import MergeOptions
from ..models.merge_result import MergeResult, SheetStat
from ..models.merged_sheet import MergedRow, MergedSheet
from ..models.validation_issue import ValidationIssue
from .anonymizer import Anonymizer
from .column_resolver import get_column_names, resolve_columns
from .file_validator import validate_file
from .progress import ProgressTracker
from .row_limit import apply_row_limit
from .row_validator import has_empty_mandatory_values, validate_azure_migrate_row

"""Merge orchestration.

Pipeline for one run:
1. argument checks (before any file I/O)
2. validation pass over every input file
3. read pass: each valid file is opened once and its sheets are loaded
4. sheet discovery and canonical column computation
5. row copy (empty mandatory check, anonymization, source file column)
6. primary sheet row cap, then Azure Migrate validation
7. output workbooks (main, failed Azure Migrate rows, anonymization mapping)

Files are processed sequentially in input order; the row cap keeps the first
rows encountered, so input order decides which VMs survive.
"""

__all__ = [
    "MergeError",
    "MergeArgumentError",
    "ConflictingOptionsError",
    "InvalidFileError",
    "NoValidFilesError",
    "NoValidSheetsError",
    "MergeCancelledError",
    "ANONYMIZATION_MAPPING_SUFFIX",
    "FAILED_AZURE_MIGRATE_SUFFIX",
    "FAILURE_REASON_COLUMN",
    "side_output_path",
    "merge_files",
]

logger = logging.getLogger(__name__)

ANONYMIZATION_MAPPING_SUFFIX = "_AnonymizationMapping"
FAILED_AZURE_MIGRATE_SUFFIX = "_FailedAzureMigrateValidation"
FAILURE_REASON_COLUMN = "Failure Reason"
MAPPING_COLUMNS = ("File", "Original Value", "Anonymized Value")

AZURE_LIMIT_MESSAGE = (
    f"VM count limit of {AZURE_MIGRATE_VM_LIMIT:,} has been reached for Azure Migrate. "
    "Additional VMs will not be included."
)


class MergeError(Exception):
    """Base class for errors that abort a merge run."""


class MergeArgumentError(MergeError, ValueError):
    pass


class ConflictingOptionsError(MergeError):
    pass


class InvalidFileError(MergeError):
    pass


class NoValidFilesError(MergeError):
    pass


class NoValidSheetsError(MergeError):
    pass


class MergeCancelledError(MergeError):
    pass


@dataclass
class _LoadedFile:
    path: Path
    sheets: dict[str, SheetData] = field(default_factory=dict)  # output sheet name -> data

    @property
    def name(self) -> str:
        return self.path.name


def side_output_path(output_path: Path, suffix: str) -> Path:
    """``<dir>/<stem><suffix>.xlsx`` next to the main output."""
    return output_path.with_name(f"{output_path.stem}{suffix}.xlsx")


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise MergeCancelledError("merge cancelled")


def _check_arguments(paths: Sequence[Path], options: MergeOptions) -> None:
    if not paths:
        raise MergeArgumentError("No files specified for merging.")
    if options.anonymize_data and options.process_all_sheets:
        raise ConflictingOptionsError(
            "Anonymization and processing all sheets cannot be enabled simultaneously. "
            "Anonymization is only supported for the core sheets (vInfo, vHost, vPartition, vMemory)."
        )


def _validate_files(
    paths: Sequence[Path],
    options: MergeOptions,
    issues: list[ValidationIssue],
    cancel_event: threading.Event | None,
) -> tuple[list[Path], list[Path]]:
    valid: list[Path] = []
    invalid: list[Path] = []
    with ProgressTracker(len(paths), description="Validating files") as progress:
        for path in paths:
            _check_cancelled(cancel_event)
            progress.start_file(path)
            if validate_file(path, options.ignore_missing_optional_sheets, issues):
                valid.append(path)
            else:
                invalid.append(path)
            progress.finish_file()
            progress.set_postfix(valid=len(valid), invalid=len(invalid))

    if invalid and not options.skip_invalid_files:
        raise InvalidFileError(
            "At least one invalid file found. Use the -s or --skip-invalid-files option to skip invalid files."
        )
    for path in invalid:
        logger.warning("file=%s skipped (failed validation)", path.name)
    if not valid:
        raise NoValidFilesError("No valid files to process after validation.")
    return valid, invalid


def _sheets_to_read(sheet_names: Sequence[str], process_all_sheets: bool) -> dict[str, str]:
    """Output sheet name -> actual sheet name for one workbook."""
    selected: dict[str, str] = {}
    by_fold = {name.casefold(): name for name in reversed(sheet_names)}  # first occurrence wins
    for known in REQUIRED_SHEETS:
        actual = by_fold.get(known.casefold())
        if actual is not None:
            selected[known] = actual
    if process_all_sheets:
        known_fold = {k.casefold() for k in REQUIRED_SHEETS}
        for name in sheet_names:
            if name.casefold() not in known_fold and name not in selected:
                selected[name] = name
    return selected


def _load_file(path: Path, options: MergeOptions) -> _LoadedFile:
    loaded = _LoadedFile(path=path)
    with open_workbook(path) as workbook:
        for output_name, actual in _sheets_to_read(workbook.sheet_names, options.process_all_sheets).items():
            loaded.sheets[output_name] = workbook.read_sheet(actual)
    logger.debug("file=%s loaded sheets=%s", path.name, ",".join(loaded.sheets))
    return loaded


def _load_files(
    paths: Sequence[Path],
    options: MergeOptions,
    issues: list[ValidationIssue],
    cancel_event: threading.Event | None,
) -> tuple[list[_LoadedFile], list[Path]]:
    loaded: list[_LoadedFile] = []
    failed: list[Path] = []
    with ProgressTracker(len(paths), description="Reading files") as progress:
        for path in paths:
            _check_cancelled(cancel_event)
            progress.start_file(path)
            try:
                loaded.append(_load_file(path, options))
            except Exception as e:
                if not options.skip_invalid_files:
                    raise MergeError(f"Error reading file '{path.name}': {e}") from e
                issues.append(
                    ValidationIssue(file_name=path.name, skipped=False, message=f"Error reading file: {e}")
                )
                logger.error("file=%s read failed, skipped: %s", path.name, e)
                failed.append(path)
            progress.finish_file()
    return loaded, failed


def _discover_sheets(files: Sequence[_LoadedFile]) -> list[str]:
    """Known sheets first in fixed order, then other sheets in first-seen order."""
    present: list[str] = []
    for f in files:
        for name in f.sheets:
            if name not in present:
                present.append(name)
    known = [s for s in REQUIRED_SHEETS if s in present]
    others = [s for s in present if s not in REQUIRED_SHEETS]
    return known + others


def _common_columns(sheet_name: str, files: Sequence[_LoadedFile], options: MergeOptions) -> list[str]:
    per_file = [
        get_column_names(f.sheets[sheet_name].header, sheet_name) for f in files if sheet_name in f.sheets
    ]
    if not per_file:
        return []
    folded_sets = [{c.casefold() for c in names} for names in per_file]

    mandatory = get_mandatory_columns(sheet_name)
    if options.only_mandatory_columns and mandatory:
        candidates = list(mandatory)
    else:
        candidates = per_file[0]

    columns: list[str] = []
    seen: set[str] = set()
    for name in candidates:
        key = name.casefold()
        if key in seen or key == SOURCE_FILE_COLUMN.casefold():
            continue
        if all(key in s for s in folded_sets):
            columns.append(name)
            seen.add(key)

    if columns and options.include_source_file_name:
        columns.append(SOURCE_FILE_COLUMN)
    return columns


def _copy_rows(
    loaded: _LoadedFile,
    sheet: MergedSheet,
    options: MergeOptions,
    anonymizer: Anonymizer | None,
    issues: list[ValidationIssue],
) -> int:
    data = loaded.sheets[sheet.name]
    file_name = loaded.name
    mappings = resolve_columns(data.header, sheet.columns, sheet.name)
    width = len(sheet.columns)
    mandatory_indices = [
        sheet.column_index(c) for c in get_mandatory_columns(sheet.name) if c != OS_CONFIGURATION_COLUMN
    ]
    mandatory_indices = [i for i in mandatory_indices if i >= 0]
    column_indices = sheet.column_indices()
    source_index = sheet.column_index(SOURCE_FILE_COLUMN) if options.include_source_file_name else -1
    anonymized_indices: list[int] = []
    if anonymizer is not None and sheet.name in REQUIRED_SHEETS:
        identifiers = anonymizer.get_column_identifiers()
        anonymized_indices = [idx for name, idx in column_indices.items() if name in identifiers]

    copied = 0
    for row_number, raw in data.iter_rows():
        values: list[Any] = [None] * width
        for m in mappings:
            if m.file_column_index < len(raw):
                values[m.canonical_column_index] = raw[m.file_column_index]

        if has_empty_mandatory_values(values, mandatory_indices):
            skip = options.skip_rows_with_empty_mandatory_values
            message = (
                f"Row {row_number} in sheet '{sheet.name}' has empty value(s) in mandatory column(s) "
                f"(excluding '{OS_CONFIGURATION_COLUMN}')."
            )
            issues.append(
                ValidationIssue(
                    file_name=file_name,
                    skipped=skip,
                    message=f"{message} Row skipped." if skip else message,
                )
            )
            if skip:
                continue

        if anonymizer is not None:
            for idx in anonymized_indices:
                values[idx] = anonymizer.anonymize_value(values[idx], idx, column_indices, file_name)

        if source_index >= 0:
            values[source_index] = file_name

        sheet.rows.append(MergedRow(values=values, source_file=file_name, row_number=row_number))
        copied += 1
    return copied


def _validate_azure_migrate(sheet: MergedSheet, issues: list[ValidationIssue]) -> AzureMigrateValidationResult:
    """Remove rows Azure Migrate would reject from the primary sheet."""
    result = AzureMigrateValidationResult()
    uuid_index = sheet.column_index(VM_UUID_COLUMN)
    os_index = sheet.column_index(OS_CONFIGURATION_COLUMN)
    seen: set[str] = set()
    kept: list[MergedRow] = []
    for row in sheet.rows:
        if result.vm_count_limit_reached:
            result.rows_skipped_after_limit_reached += 1
            continue
        reason = validate_azure_migrate_row(row.values, uuid_index, os_index, seen, result.total_vms_processed)
        if reason is None:
            result.total_vms_processed += 1
            kept.append(row)
            continue
        result.record(tuple(row.values), reason)
        if reason is AzureMigrateFailureReason.VM_COUNT_EXCEEDED:
            issues.append(ValidationIssue(file_name=row.source_file, skipped=True, message=AZURE_LIMIT_MESSAGE))
            logger.warning(AZURE_LIMIT_MESSAGE)
    sheet.rows = kept
    logger.info(
        "azure migrate: accepted=%d failed=%d skipped_after_limit=%d",
        result.total_vms_processed,
        result.total_failed_rows,
        result.rows_skipped_after_limit_reached,
    )
    return result


def _write_failed_rows(output_path: Path, sheet: MergedSheet, result: AzureMigrateValidationResult) -> Path:
    columns = [*sheet.columns, FAILURE_REASON_COLUMN]
    rows = [[*f.row_data, f.reason.description] for f in result.failed_rows]
    path = side_output_path(output_path, FAILED_AZURE_MIGRATE_SUFFIX)
    write_workbook(path, {sheet.name: (columns, rows)})
    logger.info("failed Azure Migrate rows written to %s", path)
    return path


def _write_anonymization_mapping(output_path: Path, anonymizer: Anonymizer) -> Path | None:
    sheets: dict[str, SheetContent] = {}
    for category, files in anonymizer.get_anonymization_mappings().items():
        rows = [
            [file_name, original, synthetic]
            for file_name, values in files.items()
            for original, synthetic in values.items()
        ]
        if rows:
            sheets[category] = (MAPPING_COLUMNS, rows)
    if not sheets:
        return None
    path = side_output_path(output_path, ANONYMIZATION_MAPPING_SUFFIX)
    write_workbook(path, sheets)
    logger.info("anonymization mapping written to %s", path)
    return path


def merge_files(
    paths: Sequence[Path | str],
    output_path: Path | str,
    options: MergeOptions,
    issues: list[ValidationIssue],
    cancel_event: threading.Event | None = None,
) -> MergeResult:
    """Merge RVTools exports into one workbook.

    Args:
        paths: Input workbooks, processed in this order
        output_path: Target .xlsx path; side workbooks are written next to it
        options: Merge options for this run
        issues: Append-only sink for validation issues
        cancel_event: Optional event; when set, the run stops at the next file
            boundary and no output is written

    Returns:
        MergeResult with per-sheet figures and side artifact paths

    Raises:
        MergeArgumentError: No input files
        ConflictingOptionsError: anonymize_data together with process_all_sheets
        InvalidFileError: An input failed validation and skip_invalid_files is off
        NoValidFilesError: No input file passed validation
        NoValidSheetsError: No sheet could be merged
        MergeCancelledError: cancel_event was set
        MergeError: Read or write failures
    """
    _check_arguments(paths, options)

    start_time = datetime.now(UTC)
    t0 = time.perf_counter()
    input_paths = [Path(p) for p in paths]
    output_path = Path(output_path)
    logger.info("merging %d file(s) into %s", len(input_paths), output_path)

    valid_paths, invalid_paths = _validate_files(input_paths, options, issues, cancel_event)
    loaded, failed_paths = _load_files(valid_paths, options, issues, cancel_event)
    if not loaded:
        raise NoValidFilesError("No valid files to process after validation.")

    merged: dict[str, MergedSheet] = {}
    for sheet_name in _discover_sheets(loaded):
        columns = _common_columns(sheet_name, loaded, options)
        if not columns:
            logger.warning("sheet=%s has no columns common to all files, not merged", sheet_name)
            continue
        merged[sheet_name] = MergedSheet(name=sheet_name, columns=columns)
    if not merged:
        raise NoValidSheetsError("No valid sheets found across the input files.")

    anonymizer = Anonymizer() if options.anonymize_data else None
    for f in loaded:
        _check_cancelled(cancel_event)
        for sheet in merged.values():
            if sheet.name in f.sheets:
                copied = _copy_rows(f, sheet, options, anonymizer, issues)
                logger.debug("file=%s sheet=%s rows=%d", f.name, sheet.name, copied)

    removed_by_limit: dict[str, int] = {}
    if options.max_primary_rows is not None:
        removed_by_limit = apply_row_limit(merged, options.max_primary_rows)

    azure_result: AzureMigrateValidationResult | None = None
    if options.enable_azure_migrate_validation and PRIMARY_SHEET in merged:
        azure_result = _validate_azure_migrate(merged[PRIMARY_SHEET], issues)

    _check_cancelled(cancel_event)
    written: list[Path] = []
    try:
        written.append(write_workbook(output_path, {s.name: (s.columns, s.row_values()) for s in merged.values()}))
        failed_validation_path = None
        if azure_result is not None and azure_result.failed_rows:
            failed_validation_path = _write_failed_rows(output_path, merged[PRIMARY_SHEET], azure_result)
            written.append(failed_validation_path)
        anonymization_map_path = None
        if anonymizer is not None:
            anonymization_map_path = _write_anonymization_mapping(output_path, anonymizer)
    except WorkbookWriteError as e:
        # A partial set of outputs must not look like a finished run
        for written_path in written:
            written_path.unlink(missing_ok=True)
        logger.error("write failed, removed %d partial output(s): %s", len(written), e)
        raise MergeError(str(e)) from e

    end_time = datetime.now(UTC)
    skipped = [p.name for p in [*invalid_paths, *failed_paths]]
    result = MergeResult(
        input_files=len(input_paths),
        valid_files=[f.name for f in loaded],
        skipped_files=skipped,
        sheet_stats=[
            SheetStat(
                sheet_name=s.name,
                rows=len(s.rows),
                columns=len(s.columns),
                rows_removed_by_limit=removed_by_limit.get(s.name, 0),
            )
            for s in merged.values()
        ],
        output_path=output_path,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=round(time.perf_counter() - t0, 3),
        anonymization_map_path=anonymization_map_path,
        failed_validation_path=failed_validation_path,
        anonymization_statistics=anonymizer.get_anonymization_statistics() if anonymizer else {},
        azure_migrate_result=azure_result,
    )
    logger.info(
        "merge complete: files=%d/%d sheets=%d rows=%d",
        len(result.valid_files),
        result.input_files,
        len(result.sheet_stats),
        result.total_rows,
    )
    return result
