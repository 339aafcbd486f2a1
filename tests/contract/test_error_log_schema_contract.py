from __future__ import annotations

import json
import re
from pathlib import Path

import jsonschema

from excel_record_mapper.logging.error_log import ErrorLogBuffer
from excel_record_mapper.models.error_record import ErrorRecord

"""Error log line schema contract (one JSON object per line)."""

ERROR_LINE_SCHEMA = {
    "type": "object",
    "required": ["timestamp", "file", "field", "row", "error_type", "message"],
    "additionalProperties": False,
    "properties": {
        "timestamp": {"type": "string", "pattern": r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$"},
        "file": {"type": "string"},
        "field": {"type": "string"},
        "row": {"type": "integer", "minimum": -1},
        "error_type": {"type": "string", "pattern": r"^[A-Z][A-Z0-9_]*$"},
        "message": {"type": "string"},
    },
}


def test_written_lines_follow_schema(tmp_path: Path):
    buffer = ErrorLogBuffer(tmp_path)
    buffer.append(ErrorRecord.create("orders.xlsx", "amount", 5, "TYPE_MISMATCH", "'x' cannot be stored as NUMBER"))
    buffer.append(ErrorRecord.create("broken.xlsx", "<FILE_LEVEL>", -1, "SHEET_READ_ERROR", "cannot open workbook"))
    path = buffer.flush()
    for line in path.read_text(encoding="utf-8").splitlines():
        jsonschema.validate(json.loads(line), ERROR_LINE_SCHEMA)


def test_unknown_row_is_minus_one():
    line = json.loads(ErrorRecord.create("a.xlsx", "items", -1, "UNKNOWN_TABLE", "m").to_json_line())
    assert line["row"] == -1


def test_non_ascii_is_kept_readable():
    line = ErrorRecord.create("見積書.xlsx", "金額", 3, "TYPE_MISMATCH", "数値ではありません").to_json_line()
    assert "見積書.xlsx" in line
    assert re.search(r"\\u[0-9a-f]{4}", line) is None
