"""Domain models for the spreadsheet -> record mapper.

This package contains the dataclasses shared by the reader, the mapping
engine and the submission services.
"""

from .attachment import Attachment, FileStatus, ParsedSheet
from .cell import Cell, CellRef
from .config_models import AppSettings, KintoneSettings, RelayConfig
from .mapping_rule import FieldType, MappingRule, ResolvedField, ScalarField, TableField, ValueRowPair
from .processing_result import AttachmentStat, ProcessingResult

__all__ = [
    # Sheet side
    "Cell",
    "CellRef",
    # Configuration models
    "AppSettings",
    "KintoneSettings",
    "RelayConfig",
    # Mapping models
    "FieldType",
    "MappingRule",
    "ResolvedField",
    "ScalarField",
    "TableField",
    "ValueRowPair",
    # Submission models
    "Attachment",
    "FileStatus",
    "ParsedSheet",
    "AttachmentStat",
    "ProcessingResult",
]
