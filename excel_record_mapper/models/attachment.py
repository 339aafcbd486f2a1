from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .cell import Cell

"""Attachment models for the submission flow.

An Attachment is one file entry of the source record's attachment field.
It moves through download -> parse -> map; ParsedSheet carries the cells
of its first worksheet together with the outcome of the read.
"""


class FileStatus(Enum):
    """Status of one attachment through the submission lifecycle.

    (parsed | unreadable) after download, (mapped | failed) after mapping
    """
    PARSED = "parsed"
    UNREADABLE = "unreadable"
    MAPPED = "mapped"
    FAILED = "failed"


@dataclass(frozen=True)
class Attachment:
    file_key: str
    name: str
    content_type: str | None = None
    size: int | None = None

    @property
    def extension(self) -> str:
        return self.name.rsplit(".", 1)[-1].lower() if "." in self.name else ""

    @classmethod
    def from_field_value(cls, raw: dict[str, Any]) -> Attachment:
        """Build from one entry of a FILE field value as returned by the REST API."""
        size = raw.get("size")
        return cls(
            file_key=raw["fileKey"],
            name=raw["name"],
            content_type=raw.get("contentType"),
            size=int(size) if size not in (None, "") else None,
        )


@dataclass(frozen=True)
class ParsedSheet:
    file_name: str
    cells: list[Cell] = field(default_factory=list)
    status: FileStatus = FileStatus.PARSED
    error: str | None = None  # read failure summary
