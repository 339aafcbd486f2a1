from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import pandas as pd
from dotenv import load_dotenv
from openpyxl.utils import get_column_letter

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..errors import ConfigShapeError
from ..excel.reader import load_sheet
from ..kintone.client import KintoneClient, json_default
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..mapping.engine import map_sheet
from ..mapping.normalizer import normalize_config, parse_plugin_config
from ..models.attachment import FileStatus
from ..services.orchestrator import ProcessingError, process_record
from ..services.summary import render_summary_line
from ..services.validation import AttachmentValidationError

"""CLI entrypoint.

- --record-id: process the attachments of one source record and post the
  derived records (the usual trigger after a record is created)
- --map-file: map a local workbook and print the record (no network)
- --inspect-data: print the cell grid of a local workbook
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_REJECTED_OR_PARTIAL = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so KINTONE_* variables take precedence over the YAML config."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="excel-record-mapper",
        description="Map spreadsheet attachments of a source record to destination records",
    )
    action = p.add_mutually_exclusive_group(required=True)
    action.add_argument("--record-id", help="Source record whose attachments are processed")
    action.add_argument("--map-file", type=Path, help="Map a local workbook and print the record JSON")
    action.add_argument("--inspect-data", type=Path, help="Print the cell grid of a local workbook and exit")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--dry-run", action="store_true", help="Print derived records instead of posting")
    p.add_argument("--skip-checks", action="store_true", help="Skip pre-submission attachment checks")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _print_json(data: Any) -> None:
    print(json.dumps(data, default=json_default, ensure_ascii=False, indent=2))


def _inspect_data(path: Path) -> int:
    if not path.exists():
        print(f"inspect: file not found: {path}")
        return EXIT_FATAL
    sheet = load_sheet(path.read_bytes(), path.name)
    print(f"FILE: {path.name} cells={len(sheet.cells)}")
    if sheet.status is FileStatus.UNREADABLE:
        print(f"  read_error: {sheet.error}")
        return EXIT_REJECTED_OR_PARTIAL
    if not sheet.cells:
        print("  (no cells)")
        return EXIT_SUCCESS
    df = pd.DataFrame([{"row": c.row, "column": c.column, "value": c.value} for c in sheet.cells])
    grid = df.pivot(index="row", columns="column", values="value")
    grid.columns = [get_column_letter(int(c)) for c in grid.columns]
    print(grid.to_string(na_rep=""))
    return EXIT_SUCCESS


def _map_file(config, path: Path) -> int:
    if not path.exists():
        print(f"map: file not found: {path}")
        return EXIT_FATAL
    sheet = load_sheet(path.read_bytes(), path.name)
    outcome = map_sheet(config, sheet.cells, file_name=path.name, source_record_id=None)
    _print_json(outcome.record)
    for issue in outcome.issues:
        print(f"  issue field={issue.field} type={issue.error_type}: {issue.message}", file=sys.stderr)
    return EXIT_REJECTED_OR_PARTIAL if sheet.status is FileStatus.UNREADABLE else EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when no explicit list is given (main([]) in tests)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        for h in logger.handlers:
            h.setLevel("DEBUG")
        logger.setLevel("DEBUG")
        logger.debug("debug mode enabled")

    if args.inspect_data is not None:
        return _inspect_data(args.inspect_data)

    _load_env_file(Path(".env"), override=True)
    try:
        settings = load_config(args.config)
        config = normalize_config(parse_plugin_config(settings.plugin))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except ConfigShapeError as e:
        logger.error(f"plugin config: {e}")
        return EXIT_FATAL

    if args.map_file is not None:
        return _map_file(config, args.map_file)

    client = KintoneClient.from_settings(settings.kintone)
    error_log = ErrorLogBuffer(Path(settings.error_log_dir))
    logger.info(f"Processing record {args.record_id} of app {settings.kintone.source_app}")
    try:
        result = process_record(
            config,
            settings.kintone.source_app,
            args.record_id,
            client,
            check=not args.skip_checks,
            max_workers=settings.max_workers,
            dry_run=args.dry_run,
            error_log=error_log,
        )
    except AttachmentValidationError as e:
        logger.error(f"rejected: {e}")
        return EXIT_REJECTED_OR_PARTIAL
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"error log written: {log_path}")

    if args.dry_run:
        _print_json(result.records)

    # log_summary adds the "SUMMARY " prefix itself
    log_summary(render_summary_line(result)[len("SUMMARY "):])

    if result.failed_files > 0:
        return EXIT_REJECTED_OR_PARTIAL
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
