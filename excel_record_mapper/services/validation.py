from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from ..models.attachment import Attachment
from ..models.config_models import RelayConfig

"""Pre-submission checks for attachments.

These run before the mapping engine and are optional: a caller may skip
them entirely. All violations are collected and raised together.
"""

__all__ = [
    "ALLOWED_EXTENSIONS",
    "AttachmentValidationError",
    "find_duplicate_names",
    "find_already_posted",
    "find_unsupported_files",
    "validate_attachments",
]

logger = logging.getLogger(__name__)

# formats openpyxl can read
ALLOWED_EXTENSIONS = ("xlsx", "xlsm")


class _RecordLookup(Protocol):
    def find_records_by_values(self, app: str, field_code: str, values: Sequence[str]) -> list[str]:
        ...


class AttachmentValidationError(Exception):
    def __init__(self, problems: list[str]) -> None:
        super().__init__("; ".join(problems))
        self.problems = problems


def find_unsupported_files(attachments: Sequence[Attachment]) -> list[str]:
    return [a.name for a in attachments if a.extension not in ALLOWED_EXTENSIONS]


def find_duplicate_names(attachments: Sequence[Attachment]) -> list[str]:
    """Names that occur more than once, each reported once, in first-seen order."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for a in attachments:
        if a.name in seen and a.name not in duplicates:
            duplicates.append(a.name)
        seen.add(a.name)
    return duplicates


def find_already_posted(
    config: RelayConfig, attachments: Sequence[Attachment], client: _RecordLookup
) -> list[str]:
    """Names already stored in the destination's file name holder field."""
    names = [a.name for a in attachments]
    if not names:
        return []
    return client.find_records_by_values(config.destination_app, config.file_name_holder, names)


def validate_attachments(
    config: RelayConfig,
    attachments: Sequence[Attachment],
    client: _RecordLookup | None = None,
) -> None:
    """Raise AttachmentValidationError if the attachments must not be processed.

    The already-posted lookup needs a client and is skipped without one.
    """
    problems: list[str] = []
    unsupported = find_unsupported_files(attachments)
    if unsupported:
        problems.append(f"only Excel files are allowed: {', '.join(unsupported)}")
    duplicates = find_duplicate_names(attachments)
    if duplicates:
        problems.append(f"duplicate file names found: {', '.join(duplicates)}")
    if client is not None and not problems:
        posted = find_already_posted(config, attachments, client)
        if posted:
            problems.append(f"the following files have already been posted: {', '.join(posted)}")
    if problems:
        for p in problems:
            logger.warning("validation: %s", p)
        raise AttachmentValidationError(problems)
