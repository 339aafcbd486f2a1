from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

"""Processing result models for one submission run.

AttachmentStat is kept per spreadsheet; ProcessingResult aggregates them
together with the derived records and the ids returned by the destination.
"""


@dataclass(frozen=True)
class AttachmentStat:
    """Per-attachment statistics."""
    file_name: str
    status: str  # FileStatus value
    cell_count: int
    issue_count: int  # recovered field-level issues
    elapsed_seconds: float


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated outcome of processing one source record (SUMMARY line source)."""
    source_record_id: str
    mapped_files: int
    failed_files: int  # unreadable spreadsheets (records still carry holder fields)
    posted_records: int  # 0 in dry-run mode
    issue_count: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    records: list[dict[str, Any]] = field(default_factory=list)
    record_ids: list[str] = field(default_factory=list)
    file_stats: list[AttachmentStat] | None = None

    @property
    def total_files(self) -> int:
        return self.mapped_files + self.failed_files
