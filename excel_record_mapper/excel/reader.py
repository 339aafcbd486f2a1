from __future__ import annotations

import io
import logging
import zipfile
from datetime import date, datetime, time, timedelta
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from ..models.attachment import FileStatus, ParsedSheet
from ..models.cell import Cell

"""Spreadsheet reader producing the flat Cell sequence.

Only the first worksheet is read. Rows are traversed top to bottom; within
a row every position from column A up to the row's last non-empty cell is
emitted (empty positions included with value None). Rows without any value
are skipped.

Workbooks are opened with data_only=True so formula cells carry their last
computed value.
"""

__all__ = [
    "SheetReadError",
    "read_sheet",
    "load_sheet",
    "map_cell_value",
]

logger = logging.getLogger(__name__)

_SCALAR_TYPES = (str, int, float, bool, date, datetime, time)

# failures of load_workbook on input that is not a readable xlsx/xlsm
_OPEN_ERRORS = (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError)

SECONDS_PER_DAY = 86400


class SheetReadError(Exception):
    """Raised when the workbook cannot be opened or has no worksheet."""


def map_cell_value(value: Any) -> Any:
    """Flatten an openpyxl cell value to a plain scalar.

    Durations (cells formatted like [h]:mm:ss) become their day count, the
    number Excel stores for them. Rich text runs are joined into one string;
    anything else non-scalar is rendered as text.
    """
    if value is None or isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, timedelta):
        return value.total_seconds() / SECONDS_PER_DAY
    runs = getattr(value, "__iter__", None)
    if runs is not None and not isinstance(value, (bytes, dict)):
        # CellRichText: sequence of str / TextBlock
        return "".join(getattr(part, "text", str(part)) for part in value)
    return str(value)


def _read_cells(data: bytes) -> list[Cell]:
    try:
        workbook = load_workbook(io.BytesIO(data), data_only=True)
    except _OPEN_ERRORS as e:
        raise SheetReadError(f"cannot open workbook: {e}") from e
    try:
        if not workbook.worksheets:
            raise SheetReadError("workbook has no worksheet")
        worksheet = workbook.worksheets[0]
        cells: list[Cell] = []
        for row_cells in worksheet.iter_rows(min_row=1, min_col=1):
            values = [map_cell_value(c.value) for c in row_cells]
            last = max((i for i, v in enumerate(values) if v is not None), default=-1)
            if last < 0:
                continue
            row_number = row_cells[0].row
            for idx in range(last + 1):
                column = idx + 1
                cells.append(
                    Cell(
                        row=row_number,
                        column=column,
                        address=f"{get_column_letter(column)}{row_number}",
                        value=values[idx],
                    )
                )
        return cells
    finally:
        workbook.close()


def read_sheet(data: bytes) -> list[Cell]:
    """Return the cells of the first worksheet, or [] for an unreadable file."""
    try:
        return _read_cells(data)
    except SheetReadError as e:
        logger.warning("spreadsheet could not be read: %s", e)
        return []


def load_sheet(data: bytes, file_name: str) -> ParsedSheet:
    """Like read_sheet, but keeps the read outcome for reporting."""
    try:
        cells = _read_cells(data)
    except SheetReadError as e:
        logger.warning("file=%s spreadsheet could not be read: %s", file_name, e)
        return ParsedSheet(file_name=file_name, cells=[], status=FileStatus.UNREADABLE, error=str(e))
    logger.debug("file=%s cells=%d", file_name, len(cells))
    return ParsedSheet(file_name=file_name, cells=cells, status=FileStatus.PARSED)
