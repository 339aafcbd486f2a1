from __future__ import annotations

from datetime import datetime, timezone

import pytest

from excel_record_mapper.models.processing_result import ProcessingResult
from excel_record_mapper.services.progress import ProgressTracker
from excel_record_mapper.services.summary import _format_seconds, render_summary_line


def _result(**overrides) -> ProcessingResult:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    values = dict(
        source_record_id="101", mapped_files=2, failed_files=1, posted_records=3, issue_count=4,
        start_time=start, end_time=start, elapsed_seconds=1.5,
    )
    values.update(overrides)
    return ProcessingResult(**values)


def test_render_summary_line():
    assert render_summary_line(_result()) == (
        "SUMMARY files=3/3 mapped=2 failed=1 posted=3 issues=4 elapsed_sec=1.5"
    )


def test_dry_run_summary_posts_nothing():
    line = render_summary_line(_result(posted_records=0, failed_files=0, issue_count=0, elapsed_seconds=0))
    assert line == "SUMMARY files=2/2 mapped=2 failed=0 posted=0 issues=0 elapsed_sec=0"


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0"), (3.0, "3"), (1.23456, "1.235"), (0.0012, "0.0012"), (0.5, "0.5")],
)
def test_format_seconds(seconds, expected):
    assert _format_seconds(seconds) == expected


def test_progress_tracker_counts_without_tty(monkeypatch):
    monkeypatch.setattr("excel_record_mapper.services.progress.is_tty_enabled", lambda: False)
    with ProgressTracker(2) as progress:
        assert not progress.enabled
        progress.start_file("a.xlsx")
        progress.finish_file()
        progress.start_file("b.xlsx")
        progress.finish_file(success=False)
    assert (progress.current_file, progress.mapped, progress.failed) == (2, 1, 1)


def test_progress_tracker_with_tty(monkeypatch):
    monkeypatch.setattr("excel_record_mapper.services.progress.is_tty_enabled", lambda: True)
    progress = ProgressTracker(1, description="Testing")
    assert progress.enabled
    progress.start_file("a.xlsx")
    progress.finish_file()
    assert progress.pbar.n == 1
    progress.close()
    assert progress.pbar is None


def test_progress_tracker_no_bar_for_zero_files(monkeypatch):
    monkeypatch.setattr("excel_record_mapper.services.progress.is_tty_enabled", lambda: True)
    with ProgressTracker(0) as progress:
        assert not progress.enabled
