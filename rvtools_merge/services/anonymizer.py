from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .row_validator import is_blank

"""Deterministic, file-scoped anonymization of identifying columns.

Each (category, source file, original value) gets a synthetic value
``<prefix><n>`` where n counts per category and file from 1. The same value in
two different files is anonymized independently, so the merged output does
not reveal that two exports share a VM, host or cluster.

All state lives on an Anonymizer instance; create one per merge run.
"""

__all__ = [
    "AnonymizationCategory",
    "ANONYMIZATION_CATEGORIES",
    "Anonymizer",
]


@dataclass(frozen=True)
class AnonymizationCategory:
    column_name: str  # canonical column the category owns
    display_name: str  # statistics / mapping workbook label
    prefix: str


ANONYMIZATION_CATEGORIES: tuple[AnonymizationCategory, ...] = (
    AnonymizationCategory("VM", "VMs", "vm"),
    AnonymizationCategory("DNS Name", "DNS Names", "dns"),
    AnonymizationCategory("Cluster", "Clusters", "cluster"),
    AnonymizationCategory("Host", "Hosts", "host"),
    AnonymizationCategory("Datacenter", "Datacenters", "datacenter"),
    AnonymizationCategory("Primary IP Address", "IP Addresses", "ip"),
)


class Anonymizer:
    """Memoizing anonymizer. Thread-safe; one lock guards all mapping tables."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # display_name -> source file -> original -> synthetic
        self._maps: dict[str, dict[str, dict[str, str]]] = {
            c.display_name: {} for c in ANONYMIZATION_CATEGORIES
        }
        self._by_column = {c.column_name: c for c in ANONYMIZATION_CATEGORIES}

    @staticmethod
    def get_column_identifiers() -> dict[str, str]:
        """Canonical column name -> category display name."""
        return {c.column_name: c.display_name for c in ANONYMIZATION_CATEGORIES}

    def _category_for(self, column_index: int, column_indices: Mapping[str, int]) -> AnonymizationCategory | None:
        for column_name, idx in column_indices.items():
            if idx == column_index and column_name in self._by_column:
                return self._by_column[column_name]
        return None

    def anonymize_value(
        self,
        value: Any,
        column_index: int,
        column_indices: Mapping[str, int],
        source_file: str,
    ) -> Any:
        """Return the synthetic value for a cell, or the value itself.

        Args:
            value: Original cell value
            column_index: Merged column position of the cell
            column_indices: Canonical column name -> merged position for the sheet
            source_file: Name of the workbook the cell came from
        """
        category = self._category_for(column_index, column_indices)
        if category is None or is_blank(value):
            return value

        original = str(value)
        with self._lock:
            file_map = self._maps[category.display_name].setdefault(source_file, {})
            synthetic = file_map.get(original)
            if synthetic is None:
                synthetic = f"{category.prefix}{len(file_map) + 1}"
                file_map[original] = synthetic
        return synthetic

    def get_anonymization_statistics(self) -> dict[str, dict[str, int]]:
        """Category -> source file -> number of distinct anonymized values."""
        with self._lock:
            return {
                category: {file: len(values) for file, values in files.items()}
                for category, files in self._maps.items()
            }

    def get_anonymization_mappings(self) -> dict[str, dict[str, dict[str, str]]]:
        """Category -> source file -> {original: synthetic} (a copy)."""
        with self._lock:
            return {
                category: {file: dict(values) for file, values in files.items()}
                for category, files in self._maps.items()
            }

    def total_anonymized(self) -> int:
        with self._lock:
            return sum(len(values) for files in self._maps.values() for values in files.values())
