"""Merge pipeline services."""

from .anonymizer import Anonymizer
from .column_resolver import get_column_names, normalize_header, resolve_columns
from .file_validator import validate_file
from .orchestrator import (
    ConflictingOptionsError,
    InvalidFileError,
    MergeArgumentError,
    MergeCancelledError,
    MergeError,
    NoValidFilesError,
    NoValidSheetsError,
    merge_files,
)
from .row_limit import apply_row_limit, build_identity_index, identity_key
from .row_validator import has_empty_mandatory_values, is_blank, validate_azure_migrate_row

__all__ = [
    "Anonymizer",
    "get_column_names",
    "normalize_header",
    "resolve_columns",
    "validate_file",
    "ConflictingOptionsError",
    "InvalidFileError",
    "MergeArgumentError",
    "MergeCancelledError",
    "MergeError",
    "NoValidFilesError",
    "NoValidSheetsError",
    "merge_files",
    "apply_row_limit",
    "build_identity_index",
    "identity_key",
    "has_empty_mandatory_values",
    "is_blank",
    "validate_azure_migrate_row",
]
