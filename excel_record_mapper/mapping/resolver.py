from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..errors import TypeMismatchError
from ..models.cell import Cell
from ..models.mapping_rule import MappingRule, ResolvedField, ScalarField, TableField, ValueRowPair

"""Field resolver: one canonical rule + one sheet -> one resolved field.

Table rules collect the non-empty cells of their single-column range as
(value, row) pairs in sheet order. Scalar rules take the cell at the
configured address; a missing cell resolves to None. Split rules keep only
a 1-based inclusive line range of a text value.
"""

__all__ = [
    "resolve_field",
    "resolve_table_field",
    "resolve_scalar_field",
    "split_lines",
]


def split_lines(text: str, start_line: int | None = None, end_line: int | None = None) -> str:
    """Return lines start_line..end_line (1-based, inclusive) of text.

    A missing start means the first line, a missing end the last one.
    """
    lines = text.split("\n")
    start = start_line - 1 if start_line else 0
    end = end_line if end_line else None
    return "\n".join(lines[start:end])


def _is_blank(value: Any) -> bool:
    # None, "", 0 and False all count as blank: such cells contribute no row
    return not value


def resolve_table_field(rule: MappingRule, cells: Sequence[Cell]) -> TableField:
    until = rule.map_from_until
    if until is None or rule.parent_table is None:
        # normalizer guarantees both; guard against hand-built rules
        raise TypeMismatchError(rule.field_code, "table rule without range end or parent table")
    first_row, last_row = rule.map_from.row, until.row
    column = rule.map_from.column
    pairs = tuple(
        ValueRowPair(cell_value=cell.value, row_number=cell.row)
        for cell in cells
        if cell.column == column and first_row <= cell.row <= last_row and not _is_blank(cell.value)
    )
    return TableField(
        code=rule.field_code,
        value_row_pairs=pairs,
        parent_table=rule.parent_table,
        type=rule.field_type,
    )


def resolve_scalar_field(rule: MappingRule, cells: Sequence[Cell]) -> ScalarField:
    """Resolve a non-table rule.

    Raises:
        TypeMismatchError: split is requested but the value is not text
            (including a missing cell).
    """
    address = rule.map_from.address
    value = next((cell.value for cell in cells if cell.address == address), None)
    if rule.split:
        if not isinstance(value, str):
            kind = "empty" if value is None else type(value).__name__
            raise TypeMismatchError(rule.field_code, f"cannot split {kind} value of {address}")
        value = split_lines(value, rule.start_line, rule.end_line)
    return ScalarField(code=rule.field_code, value=value, type=rule.field_type)


def resolve_field(rule: MappingRule, cells: Sequence[Cell]) -> ResolvedField:
    if rule.is_table_field:
        return resolve_table_field(rule, cells)
    return resolve_scalar_field(rule, cells)
