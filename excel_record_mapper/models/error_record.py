from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

"""ErrorRecord model for the JSON Lines error log.

Field-level problems that the engine recovers from (type mismatches,
missing cells, unknown subtables) and file-level read failures are logged
with this fixed schema. row=-1 marks entries without a meaningful row.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Spreadsheet file name being mapped
        field: Destination field code ("<FILE_LEVEL>" for file errors)
        row: Sheet row number (1-based), -1 when not applicable
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str
    file: str
    field: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, field: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            field=field,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
