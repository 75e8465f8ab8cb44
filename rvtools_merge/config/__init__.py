from .loader import ConfigError, load_options
from .sheets import (
    MANDATORY_COLUMNS,
    MINIMUM_REQUIRED_SHEETS,
    PRIMARY_SHEET,
    REQUIRED_SHEETS,
    SHEET_COLUMN_HEADER_MAPPINGS,
    SHEET_SCHEMAS,
    SheetSchema,
    get_header_aliases,
    get_mandatory_columns,
    get_sheet_schema,
)

__all__ = [
    "ConfigError",
    "load_options",
    "MANDATORY_COLUMNS",
    "MINIMUM_REQUIRED_SHEETS",
    "PRIMARY_SHEET",
    "REQUIRED_SHEETS",
    "SHEET_COLUMN_HEADER_MAPPINGS",
    "SHEET_SCHEMAS",
    "SheetSchema",
    "get_header_aliases",
    "get_mandatory_columns",
    "get_sheet_schema",
]
