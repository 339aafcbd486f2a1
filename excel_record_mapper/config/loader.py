from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import AppSettings, KintoneSettings

"""Config loader.

Responsibilities:
- Load the YAML config (default config/relay.yml)
- Validate it against config_schema.json
- Apply defaults (timeout=30, max_workers=4, error_log_dir=./logs)
- Let KINTONE_* environment variables override the connection settings

The plugin section is returned as-is; mapping.normalizer turns it into
canonical rules.
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/relay.yml")

ENV_OVERRIDES = {
    "base_url": "KINTONE_BASE_URL",
    "api_token": "KINTONE_API_TOKEN",
    "username": "KINTONE_USERNAME",
    "password": "KINTONE_PASSWORD",
}


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: the schema file is missing or invalid, or the data
            violates it (missing keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _kintone_settings(raw: dict[str, Any]) -> KintoneSettings:
    values = dict(raw)
    for key, env_name in ENV_OVERRIDES.items():
        env_value = os.getenv(env_name)
        if env_value:
            values[key] = env_value
    return KintoneSettings(
        base_url=values["base_url"],
        source_app=str(values["source_app"]),
        api_token=values.get("api_token"),
        username=values.get("username"),
        password=values.get("password"),
        timeout=float(values.get("timeout", 30)),
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppSettings:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    return AppSettings(
        kintone=_kintone_settings(data["kintone"]),
        plugin=dict(data["plugin"]),
        max_workers=data.get("max_workers", 4),
        error_log_dir=data.get("error_log_dir", "./logs"),
    )
