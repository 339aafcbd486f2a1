"""Mapping engine: normalizer, resolver, coercer and assembler."""

from .assembler import DestinationRecord, assemble_record
from .coercer import coerce_value
from .engine import FieldIssue, MappingOutcome, TableSchema, map_sheet
from .normalizer import normalize_config, parse_plugin_config
from .resolver import resolve_field, split_lines

__all__ = [
    "DestinationRecord",
    "FieldIssue",
    "MappingOutcome",
    "TableSchema",
    "assemble_record",
    "coerce_value",
    "map_sheet",
    "normalize_config",
    "parse_plugin_config",
    "resolve_field",
    "split_lines",
]
