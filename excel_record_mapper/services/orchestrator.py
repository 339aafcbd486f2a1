from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Protocol

from ..excel.reader import load_sheet
from ..kintone.client import AddRecordsResult, KintoneApiError
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..mapping.engine import TableSchema, map_sheet
from ..models.attachment import Attachment, FileStatus, ParsedSheet
from ..models.config_models import RelayConfig
from ..models.processing_result import AttachmentStat, ProcessingResult
from .progress import ProgressTracker
from .validation import validate_attachments

"""Submission orchestration.

For one source record:
1. download every attachment while the destination subtables are fetched
2. read the first worksheet of each download
3. map every sheet to one destination record
4. post all records in one bulk call (skipped in dry-run mode)

Network and parsing run on a thread pool; mapping is pure and runs per
sheet without shared state. Failures of the REST collaborators abort the run
as ProcessingError; field-level problems only end up in the error log.
"""

__all__ = [
    "ProcessingError",
    "process_submission",
    "process_record",
    "get_attachments",
    "resolve_back_reference",
]

logger = logging.getLogger(__name__)

FILE_LEVEL = "<FILE_LEVEL>"


class ProcessingError(Exception):
    """Fatal error for one submission run."""


class _Collaborators(Protocol):
    def get_record(self, app: str, record_id: str | int) -> dict[str, Any]: ...
    def download_file(self, file_key: str) -> bytes: ...
    def get_table_schema(self, app: str) -> list[TableSchema]: ...
    def find_records_by_values(self, app: str, field_code: str, values: Sequence[str]) -> list[str]: ...
    def add_records(self, app: str, records: Sequence[dict[str, Any]]) -> AddRecordsResult: ...


def resolve_back_reference(source_record: dict[str, Any]) -> Any:
    """Record id of the source record, stamped into the reference holder of
    every derived record.
    """
    try:
        return source_record["$id"]["value"]
    except (KeyError, TypeError) as e:
        raise ProcessingError("source record has no $id") from e


def get_attachments(config: RelayConfig, source_record: dict[str, Any]) -> list[Attachment]:
    field_code = config.source_attachment_field
    if field_code not in source_record:
        raise ProcessingError(f"source record has no attachment field '{field_code}'")
    raw = source_record[field_code].get("value") or []
    try:
        return [Attachment.from_field_value(item) for item in raw]
    except (KeyError, TypeError, ValueError) as e:
        raise ProcessingError(f"malformed attachment entry in '{field_code}': {e}") from e


def _download_and_read(
    config: RelayConfig,
    attachments: list[Attachment],
    client: _Collaborators,
    max_workers: int,
) -> tuple[list[ParsedSheet], list[TableSchema]]:
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        schema_future = pool.submit(client.get_table_schema, config.destination_app)
        download_futures = [pool.submit(client.download_file, a.file_key) for a in attachments]
        try:
            contents = [f.result() for f in download_futures]
            table_schema = schema_future.result()
        except KintoneApiError as e:
            for f in download_futures:
                f.cancel()
            raise ProcessingError(f"download failed: {e}") from e
        sheets = list(pool.map(load_sheet, contents, [a.name for a in attachments]))
    return sheets, table_schema


def process_submission(
    config: RelayConfig,
    source_record: dict[str, Any],
    client: _Collaborators,
    *,
    max_workers: int = 4,
    dry_run: bool = False,
    error_log: ErrorLogBuffer | None = None,
) -> ProcessingResult:
    """Derive and post one destination record per attached spreadsheet.

    Args:
        config: normalized plugin configuration
        source_record: source record as returned by the REST API
        client: REST collaborators (kintone.client.KintoneClient)
        max_workers: thread pool size for downloads and parsing
        dry_run: build the records but do not post them
        error_log: buffer receiving field issues and read failures

    Returns:
        ProcessingResult with the derived records and posted ids

    Raises:
        ProcessingError: a REST collaborator failed, or the source record
            lacks the configured fields
    """
    start_time = datetime.now(timezone.utc)
    back_reference = resolve_back_reference(source_record)
    attachments = get_attachments(config, source_record)
    logger.info("record=%s attachments=%d", back_reference, len(attachments))

    sheets: list[ParsedSheet] = []
    table_schema: list[TableSchema] = []
    if attachments:
        sheets, table_schema = _download_and_read(config, attachments, client, max_workers)

    records: list[dict[str, Any]] = []
    file_stats: list[AttachmentStat] = []
    issue_count = 0

    with ProgressTracker(len(sheets)) as progress:
        for sheet in sheets:
            progress.start_file(sheet.file_name)
            file_start = time.monotonic()
            if sheet.status is FileStatus.UNREADABLE and error_log is not None:
                error_log.append(ErrorRecord.create(
                    file=sheet.file_name,
                    field=FILE_LEVEL,
                    row=-1,
                    error_type="SHEET_READ_ERROR",
                    message=sheet.error or "unreadable spreadsheet",
                ))

            outcome = map_sheet(
                config,
                sheet.cells,
                file_name=sheet.file_name,
                source_record_id=back_reference,
                table_schema=table_schema,
            )
            records.append(outcome.record)
            if error_log is not None:
                for issue in outcome.issues:
                    error_log.append(ErrorRecord.create(
                        file=sheet.file_name,
                        field=issue.field,
                        row=issue.row,
                        error_type=issue.error_type,
                        message=issue.message,
                    ))
            issue_count += len(outcome.issues)

            ok = sheet.status is not FileStatus.UNREADABLE
            status = FileStatus.MAPPED if ok else FileStatus.FAILED
            file_stats.append(AttachmentStat(
                file_name=sheet.file_name,
                status=status.value,
                cell_count=len(sheet.cells),
                issue_count=len(outcome.issues),
                elapsed_seconds=time.monotonic() - file_start,
            ))
            logger.info(
                "file=%s status=%s cells=%d issues=%d",
                sheet.file_name, status.value, len(sheet.cells), len(outcome.issues),
            )
            progress.finish_file(success=ok)

    record_ids: list[str] = []
    if records and not dry_run:
        try:
            posted = client.add_records(config.destination_app, records)
        except KintoneApiError as e:
            raise ProcessingError(f"posting records failed: {e}") from e
        record_ids = posted.ids
        logger.info("app=%s posted=%d ids=%s", config.destination_app, len(record_ids), record_ids)
    elif dry_run:
        logger.info("dry-run: %d record(s) not posted", len(records))

    end_time = datetime.now(timezone.utc)
    return ProcessingResult(
        source_record_id=str(back_reference),
        mapped_files=progress.mapped,
        failed_files=progress.failed,
        posted_records=len(record_ids),
        issue_count=issue_count,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        records=records,
        record_ids=record_ids,
        file_stats=file_stats,
    )


def process_record(
    config: RelayConfig,
    source_app: str,
    record_id: str | int,
    client: _Collaborators,
    *,
    check: bool = True,
    max_workers: int = 4,
    dry_run: bool = False,
    error_log: ErrorLogBuffer | None = None,
) -> ProcessingResult:
    """Fetch source record record_id, optionally run the pre-submission checks, then process it.

    Raises:
        ProcessingError: the source record cannot be fetched or processed
        AttachmentValidationError: check=True and the attachments are rejected
    """
    try:
        source_record = client.get_record(source_app, record_id)
    except KintoneApiError as e:
        raise ProcessingError(f"cannot fetch source record {record_id}: {e}") from e
    if check:
        attachments = get_attachments(config, source_record)
        try:
            validate_attachments(config, attachments, client)
        except KintoneApiError as e:
            raise ProcessingError(f"already-posted check failed: {e}") from e
    return process_submission(
        config,
        source_record,
        client,
        max_workers=max_workers,
        dry_run=dry_run,
        error_log=error_log,
    )
