from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from ..errors import ConfigShapeError
from ..models.cell import CellRef
from ..models.config_models import RelayConfig
from ..models.mapping_rule import MappingRule

"""Mapper normalizer: raw plugin configuration -> canonical rules.

The host platform stores every plugin setting as a string; most of them are
JSON-encoded picker objects (field descriptors with code and label, cell
descriptors with row/column/address plus display attributes). This module
decodes them and reduces every reference to what the engine needs.

Shape errors are raised as ConfigShapeError and never swallowed.
"""

__all__ = [
    "REQUIRED_PLUGIN_KEYS",
    "UNENCODED_PLUGIN_KEYS",
    "parse_plugin_config",
    "normalize_config",
    "normalize_mapper_list",
    "normalize_rule",
]

REQUIRED_PLUGIN_KEYS = (
    "destinationApp",
    "destinationExcelNameHolder",
    "destinationReferenceHolder",
    "mapperList",
    "sourceAttachmentField",
)

# settings the platform stores as plain text, never JSON-encoded
UNENCODED_PLUGIN_KEYS = ("sourceReferenceField",)


def parse_plugin_config(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Decode JSON-encoded plugin settings.

    Keys in UNENCODED_PLUGIN_KEYS and values that are not JSON are kept as
    they are.
    """
    parsed: dict[str, Any] = {}
    for key, value in raw.items():
        if isinstance(value, str) and key not in UNENCODED_PLUGIN_KEYS:
            try:
                parsed[key] = json.loads(value)
            except ValueError:
                parsed[key] = value
        else:
            parsed[key] = value
    return parsed


def _code_of(ref: Any) -> Any:
    """Return `.code` of a field descriptor, or the value itself if it is already a code."""
    if isinstance(ref, Mapping):
        return ref.get("code")
    return ref


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _as_int(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise ConfigShapeError(f"{what} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigShapeError(f"{what} must be an integer, got {value!r}") from e


def _line_number(value: Any, what: str) -> int | None:
    # 0 / "" / None all mean "not set"
    if value is None or value == "" or value == 0:
        return None
    number = _as_int(value, what)
    if number < 0:
        raise ConfigShapeError(f"{what} must be positive, got {value!r}")
    return number or None


def _cell_ref(raw: Any, what: str) -> CellRef:
    if not isinstance(raw, Mapping):
        raise ConfigShapeError(f"{what} is missing or not a cell reference")
    missing = [k for k in ("rowNumber", "colNumber", "cellAddress") if raw.get(k) in (None, "")]
    if missing:
        raise ConfigShapeError(f"{what} lacks {', '.join(missing)}")
    return CellRef(
        row=_as_int(raw["rowNumber"], f"{what}.rowNumber"),
        column=_as_int(raw["colNumber"], f"{what}.colNumber"),
        address=str(raw["cellAddress"]),
    )


def normalize_rule(raw: Mapping[str, Any], index: int = 0) -> MappingRule:
    """Normalize one mapper entry.

    mapFromUntil is only read for table fields; for every other rule it is
    None regardless of what the configuration holds. Table rules are never
    line-split.
    """
    if not isinstance(raw, Mapping):
        raise ConfigShapeError(f"mapper[{index}] is not an object")

    field_code = _code_of(raw.get("fieldCode")) or _code_of(raw.get("mapTo"))
    if not field_code:
        raise ConfigShapeError(f"mapper[{index}] has no fieldCode")
    where = f"mapper[{index}] ({field_code})"

    is_table = _as_bool(raw.get("isTableField", False))
    map_from = _cell_ref(raw.get("mapFrom"), f"{where}.mapFrom")

    parent_table = None
    map_from_until = None
    if is_table:
        parent_table = _code_of(raw.get("parentTable"))
        if not parent_table:
            raise ConfigShapeError(f"{where} is a table field without parentTable")
        map_from_until = _cell_ref(raw.get("mapFromUntil"), f"{where}.mapFromUntil")
        if map_from_until.column != map_from.column:
            raise ConfigShapeError(
                f"{where} table range must be a single column "
                f"({map_from.address}..{map_from_until.address})"
            )
        if map_from.row > map_from_until.row:
            raise ConfigShapeError(
                f"{where} table range is reversed ({map_from.address}..{map_from_until.address})"
            )

    return MappingRule(
        field_code=str(field_code),
        field_type=str(raw.get("fieldType") or ""),
        map_from=map_from,
        is_table_field=is_table,
        parent_table=str(parent_table) if parent_table else None,
        map_from_until=map_from_until,
        split=False if is_table else _as_bool(raw.get("split", False)),
        start_line=_line_number(raw.get("startLine"), f"{where}.startLine"),
        end_line=_line_number(raw.get("endLine"), f"{where}.endLine"),
    )


def normalize_mapper_list(mapper_list: Any) -> tuple[MappingRule, ...]:
    if not isinstance(mapper_list, Sequence) or isinstance(mapper_list, (str, bytes)):
        raise ConfigShapeError("mapperList must be a list of mapper objects")
    rules = tuple(normalize_rule(raw, i) for i, raw in enumerate(mapper_list))
    seen: set[str] = set()
    for rule in rules:
        if rule.field_code in seen:
            raise ConfigShapeError(f"fieldCode '{rule.field_code}' is mapped more than once")
        seen.add(rule.field_code)
    return rules


def normalize_config(parsed: Mapping[str, Any]) -> RelayConfig:
    """Build a RelayConfig from decoded plugin settings (see parse_plugin_config)."""
    missing = [k for k in REQUIRED_PLUGIN_KEYS if parsed.get(k) in (None, "")]
    if missing:
        raise ConfigShapeError(f"plugin config lacks {', '.join(missing)}")

    destination_app = parsed["destinationApp"]
    if isinstance(destination_app, Mapping):
        destination_app = destination_app.get("appId")
    file_name_holder = _code_of(parsed["destinationExcelNameHolder"])
    reference_holder = _code_of(parsed["destinationReferenceHolder"])
    attachment_field = _code_of(parsed["sourceAttachmentField"])
    for name, value in (
        ("destinationApp.appId", destination_app),
        ("destinationExcelNameHolder.code", file_name_holder),
        ("destinationReferenceHolder.code", reference_holder),
        ("sourceAttachmentField.code", attachment_field),
    ):
        if value in (None, ""):
            raise ConfigShapeError(f"plugin config lacks {name}")

    reference_field = _code_of(parsed.get("sourceReferenceField")) or None

    return RelayConfig(
        destination_app=str(destination_app),
        file_name_holder=str(file_name_holder),
        reference_holder=str(reference_holder),
        rules=normalize_mapper_list(parsed["mapperList"]),
        source_attachment_field=str(attachment_field),
        source_reference_field=str(reference_field) if reference_field else None,
    )
