from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..config.sheets import get_sheet_schema
from ..models.column_mapping import ColumnMapping

"""Column resolution for RVTools worksheets.

Different RVTools versions label the same column differently (for example
``vInfoVMName`` instead of ``VM``). Headers are trimmed, translated through the
sheet's alias table and then matched case-insensitively against the merged
(canonical) column list. Extra columns in a source file are simply not mapped.
"""

__all__ = [
    "normalize_header",
    "get_column_names",
    "resolve_columns",
]


def _header_text(cell: Any) -> str | None:
    if cell is None:
        return None
    text = str(cell).strip()
    return text or None


def normalize_header(raw: Any, sheet_name: str) -> str | None:
    """Trimmed canonical name of a header cell; None for blank headers."""
    text = _header_text(raw)
    if text is None:
        return None
    schema = get_sheet_schema(sheet_name)
    if schema is not None:
        canonical = schema.canonical_header(text)
        if canonical is not None:
            return canonical
    return text


def get_column_names(header_row: Sequence[Any], sheet_name: str) -> list[str]:
    """Normalized, non-blank header names in file order."""
    names: list[str] = []
    for cell in header_row:
        name = normalize_header(cell, sheet_name)
        if name is not None:
            names.append(name)
    return names


def resolve_columns(
    header_row: Sequence[Any],
    canonical_columns: Sequence[str],
    sheet_name: str,
) -> list[ColumnMapping]:
    """Map file columns to canonical column positions.

    For each header, the alias-substituted name is looked up first and the
    trimmed original name second. Matching is case-insensitive. When several
    file columns resolve to the same canonical column the leftmost one wins.

    Returns:
        ColumnMapping list in file column order
    """
    lookup: dict[str, int] = {}
    for idx, name in enumerate(canonical_columns):
        lookup.setdefault(name.casefold(), idx)

    claimed: set[int] = set()
    mappings: list[ColumnMapping] = []
    for file_idx, cell in enumerate(header_row):
        original = _header_text(cell)
        if original is None:
            continue
        mapped = normalize_header(original, sheet_name)
        canonical_idx = lookup.get(mapped.casefold()) if mapped is not None else None
        if canonical_idx is None and mapped != original:
            canonical_idx = lookup.get(original.casefold())
        if canonical_idx is None or canonical_idx in claimed:
            continue
        claimed.add(canonical_idx)
        mappings.append(ColumnMapping(file_column_index=file_idx, canonical_column_index=canonical_idx))
    return mappings
