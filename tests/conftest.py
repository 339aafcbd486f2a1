# Shared pytest fixtures
from __future__ import annotations

import io
import json
import tempfile
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook


def _cell(address: str) -> dict[str, Any]:
    from openpyxl.utils.cell import coordinate_from_string, column_index_from_string

    letters, row = coordinate_from_string(address)
    return {"cellAddress": address, "colNumber": column_index_from_string(letters), "rowNumber": row}


def build_workbook(cells: dict[str, Any], sheet_title: str = "Sheet1", extra_sheets: dict[str, dict[str, Any]] | None = None) -> bytes:
    """Create an .xlsx in memory with the given address -> value assignments."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title
    for address, value in cells.items():
        ws[address] = value
    for title, more in (extra_sheets or {}).items():
        other = wb.create_sheet(title)
        for address, value in more.items():
            other[address] = value
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture()
def make_workbook():
    return build_workbook


@pytest.fixture()
def cell_ref():
    return _cell


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        for name in ("KINTONE_BASE_URL", "KINTONE_API_TOKEN", "KINTONE_USERNAME", "KINTONE_PASSWORD"):
            monkeypatch.delenv(name, raising=False)
        yield p


@pytest.fixture()
def mapper_list() -> list[dict[str, Any]]:
    """Mapper entries shaped like the plugin settings screen stores them."""
    return [
        {
            "fieldCode": "company",
            "fieldType": "SINGLE_LINE_TEXT",
            "isTableField": False,
            "mapTo": {"code": "company", "label": "Company", "type": "SINGLE_LINE_TEXT"},
            "mapFrom": {**_cell("B2"), "label": "B2 (Acme Corp)"},
            "split": False,
        },
        {
            "fieldCode": "orderDate",
            "fieldType": "DATE",
            "isTableField": False,
            "mapFrom": _cell("C5"),
        },
        {
            "fieldCode": "amount",
            "fieldType": "NUMBER",
            "isTableField": False,
            "mapFrom": _cell("D5"),
        },
        {
            "fieldCode": "address",
            "fieldType": "MULTI_LINE_TEXT",
            "isTableField": False,
            "mapFrom": _cell("B3"),
            "split": True,
            "startLine": "2",
            "endLine": 3,
        },
        {
            "fieldCode": "item_name",
            "fieldType": "SINGLE_LINE_TEXT",
            "isTableField": True,
            "parentTable": "items",
            "mapFrom": _cell("B8"),
            "mapFromUntil": _cell("B11"),
            "split": True,
        },
        {
            "fieldCode": "item_qty",
            "fieldType": "NUMBER",
            "isTableField": True,
            "parentTable": {"code": "items", "label": "Items"},
            "mapFrom": _cell("C8"),
            "mapFromUntil": _cell("C11"),
        },
    ]


@pytest.fixture()
def raw_plugin_config(mapper_list) -> dict[str, str]:
    """Plugin settings as the platform stores them: every value a string."""
    return {
        "destinationApp": json.dumps({"appId": "34", "name": "Orders"}),
        "destinationExcelNameHolder": json.dumps({"code": "file_name", "label": "File"}),
        "destinationReferenceHolder": json.dumps({"code": "source_ref", "label": "Source"}),
        "mapperList": json.dumps(mapper_list),
        "sourceAttachmentField": json.dumps({"code": "attachments", "label": "Attachments"}),
        "sourceReferenceField": "",
    }


@pytest.fixture()
def relay_config(raw_plugin_config):
    from excel_record_mapper.mapping.normalizer import normalize_config, parse_plugin_config

    return normalize_config(parse_plugin_config(raw_plugin_config))


@pytest.fixture()
def order_workbook(make_workbook) -> bytes:
    return make_workbook({
        "A1": "Order sheet",
        "B2": "Acme Corp",
        "B3": "Head office\n1-2-3 Main St\nSpringfield\nJapan",
        "C5": "3/4/24",
        "D5": "12.5",
        "A7": "Item",
        "B8": "Widget",
        "C8": 2,
        "B9": None,
        "B10": "Gadget",
        "C10": 5,
        "C11": 7,
        "B12": "outside range",
    })


@pytest.fixture()
def sample_config_yaml(raw_plugin_config) -> str:
    import yaml

    return yaml.safe_dump({
        "kintone": {
            "base_url": "https://example.cybozu.com",
            "source_app": 12,
            "api_token": "yaml-token",
        },
        "plugin": raw_plugin_config,
        "max_workers": 2,
        "error_log_dir": "./logs",
    }, allow_unicode=True, sort_keys=False)


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "relay.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def source_record() -> dict[str, Any]:
    return {
        "$id": {"type": "__ID__", "value": "101"},
        "ref_no": {"type": "SINGLE_LINE_TEXT", "value": "PO-2024-001"},
        "attachments": {
            "type": "FILE",
            "value": [
                {"fileKey": "key-1", "name": "orders.xlsx", "contentType": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "size": "1024"},
                {"fileKey": "key-2", "name": "more.xlsx", "contentType": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "size": "2048"},
            ],
        },
    }


@pytest.fixture(autouse=True)
def _reset_package_logger():
    from excel_record_mapper.logging.init import reset_logging

    yield
    reset_logging()
