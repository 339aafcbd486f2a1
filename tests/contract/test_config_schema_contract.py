from __future__ import annotations

import json

import jsonschema
import pytest
from jsonschema.exceptions import ValidationError

from excel_record_mapper.config.loader import SCHEMA_PATH

"""Config schema contract."""


def _schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def _config() -> dict:
    return {
        "kintone": {"base_url": "https://example.cybozu.com", "source_app": "12", "api_token": "t", "timeout": 10},
        "plugin": {
            "destinationApp": {"appId": "34"},
            "destinationExcelNameHolder": '{"code": "file_name"}',
            "destinationReferenceHolder": '{"code": "source_ref"}',
            "mapperList": [],
            "sourceAttachmentField": '{"code": "attachments"}',
            "sourceReferenceField": None,
        },
        "max_workers": 8,
        "error_log_dir": "./logs",
    }


def test_schema_is_valid_draft7():
    jsonschema.Draft7Validator.check_schema(_schema())


def test_valid_config():
    jsonschema.validate(_config(), _schema())


@pytest.mark.parametrize("key", ["kintone", "plugin"])
def test_missing_section(key):
    config = _config()
    del config[key]
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())


def test_missing_source_app():
    config = _config()
    del config["kintone"]["source_app"]
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())


def test_unknown_connection_key():
    config = _config()
    config["kintone"]["proxy"] = "http://proxy"
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())


def test_zero_timeout_rejected():
    config = _config()
    config["kintone"]["timeout"] = 0
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())
