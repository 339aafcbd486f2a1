from __future__ import annotations

import pytest

from excel_record_mapper.errors import TypeMismatchError
from excel_record_mapper.mapping.resolver import resolve_field, split_lines
from excel_record_mapper.models.cell import Cell, CellRef
from excel_record_mapper.models.mapping_rule import MappingRule, ScalarField, TableField, ValueRowPair


def _cells(*entries: tuple[int, int, object]) -> list[Cell]:
    from openpyxl.utils import get_column_letter

    return [Cell(row=r, column=c, address=f"{get_column_letter(c)}{r}", value=v) for r, c, v in entries]


def _scalar(address: str, row: int, column: int, **kwargs) -> MappingRule:
    return MappingRule(
        field_code=kwargs.pop("field_code", "memo"),
        field_type=kwargs.pop("field_type", "MULTI_LINE_TEXT"),
        map_from=CellRef(row=row, column=column, address=address),
        **kwargs,
    )


def _table(first: int, last: int, column: int = 2) -> MappingRule:
    from openpyxl.utils import get_column_letter

    letter = get_column_letter(column)
    return MappingRule(
        field_code="item",
        field_type="SINGLE_LINE_TEXT",
        is_table_field=True,
        parent_table="items",
        map_from=CellRef(row=first, column=column, address=f"{letter}{first}"),
        map_from_until=CellRef(row=last, column=column, address=f"{letter}{last}"),
    )


def test_scalar_field_takes_cell_at_address():
    cells = _cells((2, 1, "label"), (2, 2, "Acme Corp"))
    resolved = resolve_field(_scalar("B2", 2, 2, field_type="SINGLE_LINE_TEXT"), cells)
    assert resolved == ScalarField(code="memo", value="Acme Corp", type="SINGLE_LINE_TEXT")


def test_missing_cell_resolves_to_none():
    resolved = resolve_field(_scalar("Z99", 99, 26), _cells((1, 1, "x")))
    assert isinstance(resolved, ScalarField)
    assert resolved.value is None


def test_split_selects_inclusive_line_range():
    cells = _cells((1, 1, "L1\nL2\nL3\nL4"))
    resolved = resolve_field(_scalar("A1", 1, 1, split=True, start_line=2, end_line=3), cells)
    assert resolved.value == "L2\nL3"


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (None, None, "L1\nL2\nL3\nL4"),
        (None, 2, "L1\nL2"),
        (3, None, "L3\nL4"),
        (4, 4, "L4"),
        (5, None, ""),
        (2, 10, "L2\nL3\nL4"),
    ],
)
def test_split_lines_defaults(start, end, expected):
    assert split_lines("L1\nL2\nL3\nL4", start, end) == expected


def test_split_of_missing_cell_raises_type_mismatch():
    with pytest.raises(TypeMismatchError) as e:
        resolve_field(_scalar("A1", 1, 1, split=True, start_line=1), [])
    assert e.value.field_code == "memo"


def test_split_of_number_raises_type_mismatch():
    with pytest.raises(TypeMismatchError, match="float"):
        resolve_field(_scalar("A1", 1, 1, split=True), _cells((1, 1, 3.5)))


def test_table_field_collects_non_empty_cells_in_range():
    cells = _cells(
        (2, 2, "header"),
        (3, 2, "x"), (3, 3, "other column"),
        (4, 2, ""),
        (5, 2, "y"),
        (6, 2, "after range"),
    )
    resolved = resolve_field(_table(3, 5), cells)
    assert isinstance(resolved, TableField)
    assert resolved.parent_table == "items"
    assert resolved.value_row_pairs == (
        ValueRowPair(cell_value="x", row_number=3),
        ValueRowPair(cell_value="y", row_number=5),
    )


def test_table_field_drops_all_falsy_values():
    cells = _cells((1, 1, None), (2, 1, 0), (3, 1, False), (4, 1, "a"), (5, 1, 0.5))
    resolved = resolve_field(_table(1, 5, column=1), cells)
    assert [p.row_number for p in resolved.value_row_pairs] == [4, 5]


def test_table_pairs_follow_sheet_order():
    cells = [
        Cell(row=5, column=2, address="B5", value="later"),
        Cell(row=3, column=2, address="B3", value="earlier"),
    ]
    resolved = resolve_field(_table(3, 5), cells)
    assert [p.row_number for p in resolved.value_row_pairs] == [5, 3]


def test_table_rule_is_never_split():
    rule = _table(1, 2, column=1)
    cells = _cells((1, 1, "a\nb"))
    resolved = resolve_field(rule, cells)
    assert resolved.value_row_pairs[0].cell_value == "a\nb"
