from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from rvtools_merge.models.merge_options import MergeOptions

"""Merge options loader.

Responsibilities:
- Load an optional YAML options file (e.g. config/merge.yml)
- Validate it against options_schema.json (unknown keys are rejected)
- Apply explicit overrides (CLI flags) on top of the file values
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "load_options",
]

SCHEMA_PATH = Path(__file__).parent / "options_schema.json"


class ConfigError(Exception):
    pass


def _validate_options_schema(data: dict[str, Any]) -> None:
    """Validate options data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the data
            fails validation (unknown keys, wrong types, non-positive row cap)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"options schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"options validation failed: {e.message}") from e


def load_options(
    path: Path | None,
    overrides: dict[str, Any] | None = None,
    defaults: dict[str, Any] | None = None,
) -> MergeOptions:
    """Build MergeOptions from defaults, an optional YAML file and overrides.

    Args:
        path: YAML options file, or None to start from defaults
        defaults: Caller defaults applied below the file values
        overrides: Values that win over the file (None values are ignored)

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    data: dict[str, Any] = dict(defaults or {})
    if path is not None:
        if not path.exists():
            raise ConfigError(f"config file not found: {path}")
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid yaml: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"config root must be a mapping: {path}")
        _validate_options_schema(loaded)
        data.update(loaded)

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return MergeOptions.from_mapping(data)
    except ValueError as e:
        raise ConfigError(str(e)) from e
