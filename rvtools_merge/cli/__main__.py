from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from rvtools_merge.config.loader import ConfigError, load_options
from rvtools_merge.logging.init import log_summary, set_debug, setup_logging
from rvtools_merge.logging.issue_log import IssueLogBuffer
from rvtools_merge.models.validation_issue import ValidationIssue
from rvtools_merge.services.orchestrator import MergeError, merge_files
from rvtools_merge.services.summary import render_issue, render_summary_line

"""CLI entrypoint.

    python -m rvtools_merge.cli [inputs...] -o merged.xlsx [flags]

Inputs are workbooks or directories (non-recursive ``*.xlsx`` scan). Flags
map 1:1 onto MergeOptions and win over the options file named by --config,
the RVTOOLS_MERGE_CONFIG environment variable or config/merge.yml. Without
-s or -f invalid files abort the run and no "Source File" column is added.

Exit codes: 0 success, 2 success with skipped files, 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DEFAULT_OUTPUT = "merged-output.xlsx"
DEFAULT_CONFIG_PATH = Path("config/merge.yml")
CONFIG_ENV_VAR = "RVTOOLS_MERGE_CONFIG"

# Off unless requested by flag or options file
CLI_DEFAULTS = {
    "skip_invalid_files": False,
    "include_source_file_name": False,
}


def _load_env_file(path: Path) -> None:
    """Load .env into the environment without overriding variables already set."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="rvtools-merge", description="Merge RVTools exports into one workbook")
    p.add_argument("inputs", nargs="*", help="RVTools .xlsx files or directories containing them")
    p.add_argument("-o", "--output", default=DEFAULT_OUTPUT, help=f"Output workbook (default: {DEFAULT_OUTPUT})")
    p.add_argument("--config", type=Path, default=None, help="YAML options file")
    p.add_argument(
        "-i", "--ignore-missing-sheets", dest="ignore_missing_optional_sheets", action="store_const", const=True,
        help="Do not report missing vHost/vPartition/vMemory sheets",
    )
    p.add_argument(
        "-s", "--skip-invalid-files", dest="skip_invalid_files", action=argparse.BooleanOptionalAction,
        default=None, help="Skip files that fail validation instead of aborting",
    )
    p.add_argument("-a", "--anonymize", dest="anonymize_data", action="store_const", const=True,
                   help="Anonymize VM, DNS, cluster, host, datacenter and IP values")
    p.add_argument("-M", "--only-mandatory-columns", dest="only_mandatory_columns", action="store_const", const=True,
                   help="Keep only mandatory columns")
    p.add_argument("-f", "--include-source-filename", dest="include_source_file_name", action="store_const",
                   const=True, help="Append a 'Source File' column")
    p.add_argument("--no-source-filename", dest="include_source_file_name", action="store_const", const=False,
                   help="Do not append the 'Source File' column")
    p.add_argument("-e", "--skip-empty-values", dest="skip_rows_with_empty_mandatory_values", action="store_const",
                   const=True, help="Drop rows with empty mandatory values")
    p.add_argument("-d", "--debug", dest="debug_mode", action="store_const", const=True,
                   help="Debug logging and JSON Lines issue log under logs/")
    p.add_argument("-z", "--azure-migrate", dest="enable_azure_migrate_validation", action="store_const", const=True,
                   help="Validate vInfo rows for Azure Migrate import")
    p.add_argument("--max-vinfo-rows", dest="max_primary_rows", type=int, default=None, metavar="N",
                   help="Keep only the first N vInfo rows and their dependent rows")
    p.add_argument("-A", "--all-sheets", dest="process_all_sheets", action="store_const", const=True,
                   help="Merge every sheet, not only vInfo/vHost/vPartition/vMemory")
    return p.parse_args(argv)


def _resolve_config_path(arg: Path | None) -> Path | None:
    if arg is not None:
        return arg
    env = os.getenv(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    keys = (
        "ignore_missing_optional_sheets",
        "skip_invalid_files",
        "anonymize_data",
        "only_mandatory_columns",
        "include_source_file_name",
        "skip_rows_with_empty_mandatory_values",
        "max_primary_rows",
        "process_all_sheets",
        "debug_mode",
        "enable_azure_migrate_validation",
    )
    overrides = {k: getattr(args, k) for k in keys}
    if args.process_all_sheets:
        # All-sheets mode cannot expect the fixed sheet set
        overrides["ignore_missing_optional_sheets"] = True
    return overrides


def expand_inputs(inputs: list[str]) -> list[Path]:
    """Files as given; directories expanded to their .xlsx files (sorted, Excel lock files skipped)."""
    paths: list[Path] = []
    for raw in inputs:
        p = Path(raw)
        if p.is_dir():
            paths.extend(
                sorted(c for c in p.iterdir() if c.is_file() and c.suffix.lower() == ".xlsx" and not c.name.startswith("~$"))
            )
        else:
            paths.append(p)
    return paths


def _report_issues(logger: Any, issues: list[ValidationIssue]) -> None:
    for issue in issues:
        if issue.skipped:
            logger.info(render_issue(issue))
        else:
            logger.warning(render_issue(issue))


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # An explicit empty list must not fall back to sys.argv (pytest arguments)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    try:
        options = load_options(_resolve_config_path(args.config), _overrides(args), defaults=CLI_DEFAULTS)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if options.debug_mode:
        set_debug(True)

    paths = expand_inputs(args.inputs)
    output_path = Path(args.output)
    logger.info(f"Merging {len(paths)} file(s) into {output_path}")

    issues: list[ValidationIssue] = []
    try:
        result = merge_files(paths, output_path, options, issues)
    except MergeError as e:
        _report_issues(logger, issues)
        logger.error(f"merge: {e}")
        return EXIT_FATAL
    finally:
        if options.debug_mode:
            issue_log = IssueLogBuffer()
            issue_log.extend(issues)
            log_path = issue_log.flush()
            if log_path is not None:
                logger.debug(f"issue log written to {log_path}")

    _report_issues(logger, issues)
    if result.anonymization_map_path is not None:
        logger.info(f"anonymization mapping: {result.anonymization_map_path}")
    if result.failed_validation_path is not None:
        logger.info(f"failed Azure Migrate rows: {result.failed_validation_path}")

    # log_summary adds the "SUMMARY " prefix itself
    log_summary(render_summary_line(result)[len("SUMMARY "):])

    if result.skipped_files:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
