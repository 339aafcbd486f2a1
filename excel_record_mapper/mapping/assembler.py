from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..models.mapping_rule import ResolvedField, ScalarField, TableField

"""Record assembler: resolved fields -> one destination record payload.

Record shape (REST add-record format):

    {
        "company": {"value": "Acme Corp", "type": "SINGLE_LINE_TEXT"},
        "items": {"value": [
            {"value": {"item_name": {"value": "x", "type": "SINGLE_LINE_TEXT"}}},
            ...
        ]},
        "<file name holder>": {"value": "orders.xlsx"},
        "<reference holder>": {"value": "42"},
    }

Sub-rows are keyed by source row number while assembling and emitted in
ascending row order, so rows without any value never appear.
"""

__all__ = [
    "DestinationRecord",
    "assemble_record",
]

DestinationRecord = dict[str, dict[str, Any]]


def _assemble_tables(fields: Iterable[TableField]) -> dict[str, list[dict[str, Any]]]:
    # parent table -> row number -> nested field code -> {"value", "type"}
    tables: dict[str, dict[int, dict[str, dict[str, Any]]]] = {}
    for field in fields:
        rows = tables.setdefault(field.parent_table, {})
        for pair in field.value_row_pairs:
            sub_row = rows.setdefault(pair.row_number, {})
            entry = sub_row.setdefault(field.code, {"value": pair.cell_value, "type": field.type})
            # last pair for the same (table, row, code) wins
            entry["value"] = pair.cell_value
    return {
        parent: [{"value": rows[row_number]} for row_number in sorted(rows)]
        for parent, rows in tables.items()
    }


def assemble_record(
    fields: Iterable[ResolvedField],
    *,
    file_name: str,
    source_record_id: Any,
    file_name_holder: str,
    reference_holder: str,
) -> DestinationRecord:
    """Merge resolved fields into one destination record.

    Scalar fields are expected to be coerced already; table fields carry raw
    cell values. The two holder fields are written last and replace any
    mapped field with the same code.
    """
    record: DestinationRecord = {}
    table_fields: list[TableField] = []
    for field in fields:
        if isinstance(field, TableField):
            table_fields.append(field)
        elif isinstance(field, ScalarField):
            record[field.code] = {"value": field.value, "type": field.type}
        else:  # pragma: no cover
            raise TypeError(f"unexpected resolved field: {field!r}")

    for parent, sub_rows in _assemble_tables(table_fields).items():
        record[parent] = {"value": sub_rows}

    record[file_name_holder] = {"value": file_name}
    record[reference_holder] = {"value": source_record_id}
    return record
