from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Attachment progress with tqdm (TTY only).

One bar per submission run; the postfix shows how many spreadsheets were
mapped and how many could not be read. Without a TTY (webhook workers, CI)
no bar is created, the counters are still kept.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    def __init__(self, total_files: int, *, description: str = "Mapping attachments") -> None:
        self.total_files = total_files
        self.description = description
        self.current_file = 0
        self.mapped = 0
        self.failed = 0

        self.pbar: TqdmType[Any] | None = None
        if is_tty_enabled() and total_files > 0:
            self.pbar = tqdm(
                total=total_files,
                desc=description,
                unit="file",
                leave=True,
                ncols=80,
                ascii=True,
            )

    @property
    def enabled(self) -> bool:
        return self.pbar is not None

    def start_file(self, file_name: str) -> None:
        self.current_file += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} [{self.current_file}/{self.total_files}] {file_name}")

    def finish_file(self, success: bool = True) -> None:
        if success:
            self.mapped += 1
        else:
            self.failed += 1
        if self.pbar is not None:
            self.pbar.set_postfix(mapped=self.mapped, failed=self.failed)
            self.pbar.update(1)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.set_description(self.description)
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
