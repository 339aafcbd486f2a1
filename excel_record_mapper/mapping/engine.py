from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..errors import TypeMismatchError
from ..models.cell import Cell
from ..models.config_models import RelayConfig
from ..models.mapping_rule import MappingRule, ResolvedField, ScalarField
from .assembler import DestinationRecord, assemble_record
from .coercer import coerce_value
from .resolver import resolve_field

"""One mapping pass over one sheet.

resolve (per rule) -> coerce (scalar rules) -> assemble (all rules).

The pass holds no state between calls: each invocation receives its own
cell list and returns its own record, so sheets can be mapped in parallel.
Recoverable per-field problems are returned as FieldIssue entries.
"""

__all__ = [
    "FieldIssue",
    "MappingOutcome",
    "TableSchema",
    "check_table_rules",
    "map_sheet",
]

logger = logging.getLogger(__name__)

TYPE_MISMATCH = "TYPE_MISMATCH"
RESOLUTION_MISS = "RESOLUTION_MISS"
UNKNOWN_TABLE = "UNKNOWN_TABLE"


@dataclass(frozen=True)
class TableSchema:
    """A subtable of the destination app and the codes of its nested fields."""
    field_code: str
    nested_field_codes: frozenset[str]


@dataclass(frozen=True)
class FieldIssue:
    field: str
    error_type: str  # TYPE_MISMATCH | RESOLUTION_MISS | UNKNOWN_TABLE
    message: str
    row: int = -1


@dataclass(frozen=True)
class MappingOutcome:
    record: DestinationRecord
    issues: list[FieldIssue] = field(default_factory=list)


def check_table_rules(
    rules: Iterable[MappingRule], table_schema: Iterable[TableSchema]
) -> list[FieldIssue]:
    """Compare table rules with the destination's subtables."""
    tables = {t.field_code: t for t in table_schema}
    issues: list[FieldIssue] = []
    for rule in rules:
        if not rule.is_table_field:
            continue
        table = tables.get(rule.parent_table or "")
        if table is None:
            issues.append(FieldIssue(
                field=rule.field_code,
                error_type=UNKNOWN_TABLE,
                message=f"'{rule.parent_table}' is not a subtable of the destination app",
            ))
        elif rule.field_code not in table.nested_field_codes:
            issues.append(FieldIssue(
                field=rule.field_code,
                error_type=UNKNOWN_TABLE,
                message=f"'{rule.field_code}' is not a field of subtable '{rule.parent_table}'",
            ))
    return issues


def _resolve_and_coerce(
    rule: MappingRule, cells: Sequence[Cell], addresses: set[str], issues: list[FieldIssue]
) -> ResolvedField:
    if not rule.is_table_field and rule.map_from.address not in addresses:
        issues.append(FieldIssue(
            field=rule.field_code,
            error_type=RESOLUTION_MISS,
            message=f"cell {rule.map_from.address} not found",
            row=rule.map_from.row,
        ))
    try:
        resolved = resolve_field(rule, cells)
    except TypeMismatchError as e:
        issues.append(FieldIssue(field=rule.field_code, error_type=TYPE_MISMATCH,
                                 message=str(e), row=rule.map_from.row))
        return ScalarField(code=rule.field_code, value=None, type=rule.field_type)

    if isinstance(resolved, ScalarField):
        coerced = coerce_value(resolved.value, rule.kind)
        if coerced is None and resolved.value is not None:
            issues.append(FieldIssue(
                field=rule.field_code,
                error_type=TYPE_MISMATCH,
                message=f"{resolved.value!r} cannot be stored as {rule.field_type}",
                row=rule.map_from.row,
            ))
        return ScalarField(code=resolved.code, value=coerced, type=resolved.type)
    return resolved


def map_sheet(
    config: RelayConfig,
    cells: Sequence[Cell],
    *,
    file_name: str,
    source_record_id: Any,
    table_schema: Iterable[TableSchema] | None = None,
) -> MappingOutcome:
    """Map one sheet to one destination record.

    Parameters
    ----------
    config: normalized plugin configuration
    cells: cells of the sheet (excel.reader.read_sheet)
    file_name: spreadsheet name, stamped into the file name holder field
    source_record_id: back-reference, stamped into the reference holder field
    table_schema: destination subtables; when given, table rules are checked
        against it (mismatches are reported, values are still assembled)
    """
    issues: list[FieldIssue] = []
    if table_schema is not None:
        issues.extend(check_table_rules(config.table_rules, table_schema))

    addresses = {cell.address for cell in cells}
    fields = [_resolve_and_coerce(rule, cells, addresses, issues) for rule in config.rules]
    record = assemble_record(
        fields,
        file_name=file_name,
        source_record_id=source_record_id,
        file_name_holder=config.file_name_holder,
        reference_holder=config.reference_holder,
    )
    for issue in issues:
        logger.debug("file=%s field=%s %s: %s", file_name, issue.field, issue.error_type, issue.message)
    return MappingOutcome(record=record, issues=issues)
