from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..config.sheets import PRIMARY_SHEET, VM_COLUMN, VM_UUID_COLUMN
from ..models.merged_sheet import MergedRow, MergedSheet
from .row_validator import is_blank

"""Primary sheet row cap with cross-sheet VM identity filtering.

The primary sheet (vInfo) keeps its first N rows in input order. Every
dependent sheet carrying a VM identity column (VM UUID or VM) is then filtered
down to the VMs that survived. The identity index is built once, so each
dependent row costs a single dict lookup.

Identity keys:
    ("uuid", <uuid>)                  when the VM UUID cell is filled
    ("name", <source file>, <name>)   otherwise; VM names repeat across exports
"""

__all__ = [
    "IdentityKey",
    "identity_key",
    "build_identity_index",
    "apply_row_limit",
]

logger = logging.getLogger(__name__)

IdentityKey = tuple[str, ...]


def _text(values: Sequence[Any], idx: int) -> str | None:
    if idx < 0 or idx >= len(values) or is_blank(values[idx]):
        return None
    return str(values[idx]).strip()


def _candidate_keys(values: Sequence[Any], uuid_index: int, name_index: int, source_file: str) -> list[IdentityKey]:
    keys: list[IdentityKey] = []
    uuid = _text(values, uuid_index)
    if uuid is not None:
        keys.append(("uuid", uuid))
    name = _text(values, name_index)
    if name is not None:
        keys.append(("name", source_file, name))
    return keys


def identity_key(values: Sequence[Any], uuid_index: int, name_index: int, source_file: str) -> IdentityKey | None:
    """Preferred identity of a row: UUID first, file-scoped VM name second.

    Returns None when the row carries neither value.
    """
    keys = _candidate_keys(values, uuid_index, name_index, source_file)
    return keys[0] if keys else None


def build_identity_index(
    retained: Iterable[MergedRow],
    excluded: Iterable[MergedRow],
    uuid_index: int,
    name_index: int,
) -> dict[IdentityKey, bool]:
    """Map every identity seen on the primary sheet to whether it survived.

    Both the UUID and the name key of a primary row are registered, so a
    dependent sheet that only has one of the two columns still matches. A key
    shared by a retained and an excluded row counts as retained.
    """
    index: dict[IdentityKey, bool] = {}
    for row in excluded:
        for key in _candidate_keys(row.values, uuid_index, name_index, row.source_file):
            index.setdefault(key, False)
    for row in retained:
        for key in _candidate_keys(row.values, uuid_index, name_index, row.source_file):
            index[key] = True
    return index


def _filter_dependent(sheet: MergedSheet, index: Mapping[IdentityKey, bool]) -> int:
    uuid_index = sheet.column_index(VM_UUID_COLUMN)
    name_index = sheet.column_index(VM_COLUMN)
    kept: list[MergedRow] = []
    for row in sheet.rows:
        key = identity_key(row.values, uuid_index, name_index, row.source_file)
        # rows without identity cannot be correlated and are kept
        if key is None or index.get(key, False):
            kept.append(row)
    removed = len(sheet.rows) - len(kept)
    sheet.rows = kept
    return removed


def apply_row_limit(sheets: Mapping[str, MergedSheet], max_primary_rows: int) -> dict[str, int]:
    """Cap the primary sheet and filter dependent sheets in place.

    Args:
        sheets: Accumulated output sheets keyed by name
        max_primary_rows: Positive cap on primary sheet rows

    Returns:
        Removed row count per sheet (only sheets that were touched)
    """
    primary = sheets.get(PRIMARY_SHEET)
    if primary is None:
        return {}

    retained = primary.rows[:max_primary_rows]
    excluded = primary.rows[max_primary_rows:]
    primary.rows = retained
    removed: dict[str, int] = {PRIMARY_SHEET: len(excluded)}

    uuid_index = primary.column_index(VM_UUID_COLUMN)
    name_index = primary.column_index(VM_COLUMN)
    index = build_identity_index(retained, excluded, uuid_index, name_index)
    logger.debug(
        "row limit=%d primary kept=%d removed=%d identities=%d",
        max_primary_rows,
        len(retained),
        len(excluded),
        len(index),
    )

    for name, sheet in sheets.items():
        if name == PRIMARY_SHEET:
            continue
        if sheet.column_index(VM_UUID_COLUMN) < 0 and sheet.column_index(VM_COLUMN) < 0:
            continue
        removed[name] = _filter_dependent(sheet, index)
        if removed[name]:
            logger.info("sheet=%s removed %d rows of VMs beyond the row limit", name, removed[name])
    return removed
