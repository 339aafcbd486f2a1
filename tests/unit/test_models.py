from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from excel_record_mapper.models import Attachment, Cell, ProcessingResult


def test_cells_are_immutable():
    cell = Cell(row=1, column=1, address="A1")
    with pytest.raises(FrozenInstanceError):
        cell.value = "changed"  # type: ignore[misc]


def test_attachment_from_field_value():
    a = Attachment.from_field_value({"fileKey": "k", "name": "Report.XLSX", "contentType": "x", "size": "12"})
    assert (a.file_key, a.name, a.size, a.extension) == ("k", "Report.XLSX", 12, "xlsx")
    assert Attachment.from_field_value({"fileKey": "k", "name": "README"}).extension == ""


def test_total_files():
    now = datetime.now(timezone.utc)
    result = ProcessingResult(
        source_record_id="1", mapped_files=2, failed_files=3, posted_records=5, issue_count=0,
        start_time=now, end_time=now, elapsed_seconds=0.0,
    )
    assert result.total_files == 5
    assert result.records == []
