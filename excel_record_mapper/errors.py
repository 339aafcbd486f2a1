from __future__ import annotations

"""Error taxonomy shared by the mapping engine and its callers.

- ConfigShapeError: a mapping rule is missing a required sub-field. Fatal.
- TypeMismatchError: a value cannot be represented as required. The engine
  recovers it as a null value for that one field.
- Missing cells are not errors (the field value is simply null).
- External failures are raised by kintone.client as KintoneApiError.
"""

__all__ = [
    "MappingError",
    "ConfigShapeError",
    "TypeMismatchError",
]


class MappingError(Exception):
    """Base exception for mapping engine errors."""


class ConfigShapeError(MappingError):
    """Raised when plugin configuration does not have the expected shape."""


class TypeMismatchError(MappingError):
    """Raised when a value cannot be processed as its rule requires."""

    def __init__(self, field_code: str, message: str) -> None:
        super().__init__(f"{field_code}: {message}")
        self.field_code = field_code
