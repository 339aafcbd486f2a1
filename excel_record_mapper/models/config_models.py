from __future__ import annotations

from dataclasses import dataclass

from .mapping_rule import MappingRule

"""Config dataclasses for the spreadsheet -> record mapper.

These are the normalized shapes produced by config.loader (connection side)
and mapping.normalizer (plugin side). Raw configuration never reaches the
engine; everything downstream works on these frozen objects.
"""


@dataclass(frozen=True)
class KintoneSettings:
    """Connection settings for the platform REST API.

    Environment variables take precedence over the YAML values
    (resolved in config.loader).
    """
    base_url: str
    source_app: str
    api_token: str | None = None
    username: str | None = None
    password: str | None = None
    timeout: float = 30.0


@dataclass(frozen=True)
class RelayConfig:
    """Normalized plugin configuration for one source app.

    Loaded once per submission and not mutated afterwards.
    """
    destination_app: str
    file_name_holder: str  # destination field receiving the spreadsheet name
    reference_holder: str  # destination field receiving the back-reference
    rules: tuple[MappingRule, ...]
    source_attachment_field: str
    source_reference_field: str | None = None

    @property
    def table_rules(self) -> tuple[MappingRule, ...]:
        return tuple(r for r in self.rules if r.is_table_field)


@dataclass(frozen=True)
class AppSettings:
    """Root settings object returned by config.loader.load_config."""
    kintone: KintoneSettings
    plugin: dict[str, object]  # raw plugin config, normalized lazily
    max_workers: int = 4
    error_log_dir: str = "./logs"
