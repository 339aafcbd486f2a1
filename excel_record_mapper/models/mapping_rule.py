from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .cell import CellRef

"""Canonical mapping rule and resolved field models.

MappingRule is the engine-consumable form of one configured mapper entry
(see mapping.normalizer). ScalarField / TableField are the transient
results of resolving one rule against one sheet.
"""

__all__ = [
    "FieldType",
    "MappingRule",
    "ValueRowPair",
    "ScalarField",
    "TableField",
    "ResolvedField",
]


class FieldType(Enum):
    """Coercion class of a destination field.

    The destination reports field types by name (SINGLE_LINE_TEXT, NUMBER, ...);
    every name that is not coerced falls into OTHER.
    """
    TEXT = "SINGLE_LINE_TEXT"
    MULTI_TEXT = "MULTI_LINE_TEXT"
    NUMBER = "NUMBER"
    DATE = "DATE"
    OTHER = "OTHER"

    @classmethod
    def of(cls, type_name: str | None) -> FieldType:
        for member in cls:
            if member is not cls.OTHER and member.value == type_name:
                return member
        return cls.OTHER


@dataclass(frozen=True)
class MappingRule:
    """One destination field fed from the sheet.

    Invariants (enforced by the normalizer):
    - parent_table and map_from_until are set iff is_table_field
    - table ranges are single-column with map_from.row <= map_from_until.row
    - split is False for table fields
    """
    field_code: str
    field_type: str  # destination type name, e.g. "SINGLE_LINE_TEXT"
    map_from: CellRef
    is_table_field: bool = False
    parent_table: str | None = None
    map_from_until: CellRef | None = None
    split: bool = False
    start_line: int | None = None  # 1-based, inclusive
    end_line: int | None = None  # 1-based, inclusive

    @property
    def kind(self) -> FieldType:
        return FieldType.of(self.field_type)


@dataclass(frozen=True)
class ValueRowPair:
    cell_value: Any
    row_number: int


@dataclass(frozen=True)
class ScalarField:
    code: str
    value: Any
    type: str


@dataclass(frozen=True)
class TableField:
    code: str
    value_row_pairs: tuple[ValueRowPair, ...]
    parent_table: str
    type: str


ResolvedField = Union[ScalarField, TableField]
