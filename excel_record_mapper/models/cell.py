from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Union

"""Cell model for the spreadsheet side of the mapping.

A Cell is one addressed position of the first worksheet, produced by
excel.reader.read_sheet. The ordered list of cells for one sheet is the unit
handed to the mapping engine (order = sheet traversal order).
"""

__all__ = [
    "Cell",
    "CellRef",
    "CellValue",
]

CellValue = Union[str, int, float, bool, date, datetime, time, None]


@dataclass(frozen=True)
class CellRef:
    """Reference to a cell picked in the mapping configuration."""
    row: int  # 1-based
    column: int  # 1-based
    address: str  # e.g. "B3"


@dataclass(frozen=True)
class Cell:
    """One cell of a worksheet after value normalization.

    Formulas carry their last computed value and rich text is flattened,
    so `value` is always a plain scalar (or None for an empty cell).
    """
    row: int
    column: int
    address: str  # unique within a sheet
    value: CellValue = None
