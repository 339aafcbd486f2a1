from __future__ import annotations

import base64
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any

import requests

from ..mapping.engine import TableSchema
from ..models.config_models import KintoneSettings

"""REST client for the host platform.

Covers the calls the submission flow needs: read the source record,
download attachments, read destination form metadata, look up records by
file name and bulk-add the derived records. Every failure surfaces as
KintoneApiError; there is no retry here.
"""

__all__ = [
    "AddRecordsResult",
    "KintoneApiError",
    "KintoneClient",
    "json_default",
]

logger = logging.getLogger(__name__)


class KintoneApiError(Exception):
    """Raised when a REST call fails (transport error or non-2xx response)."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


@dataclass(frozen=True)
class AddRecordsResult:
    ids: list[str]
    revisions: list[str]


def json_default(value: Any) -> Any:
    """json.dumps default: dates and times as ISO strings."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class KintoneClient:
    """Thin REST API client.

    Authenticates with an API token when given, else with username/password.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_token: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers: dict[str, str] = {}
        if api_token:
            self.headers["X-Cybozu-API-Token"] = api_token
        elif username and password:
            token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
            self.headers["X-Cybozu-Authorization"] = token

    @classmethod
    def from_settings(cls, settings: KintoneSettings) -> KintoneClient:
        return cls(
            settings.base_url,
            api_token=settings.api_token,
            username=settings.username,
            password=settings.password,
            timeout=settings.timeout,
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = dict(self.headers)
        headers.update(kwargs.pop("headers", {}))
        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise KintoneApiError(f"{method} {path} failed: {e}") from e
        if not response.ok:
            message = response.text
            code = None
            try:
                body = response.json()
                message = body.get("message", message)
                code = body.get("code")
            except ValueError:
                pass
            raise KintoneApiError(
                f"{method} {path} returned {response.status_code}: {message}",
                status_code=response.status_code,
                code=code,
            )
        return response

    def get_record(self, app: str, record_id: str | int) -> dict[str, Any]:
        resp = self._request("GET", "/k/v1/record.json", params={"app": app, "id": record_id})
        return resp.json()["record"]

    def download_file(self, file_key: str) -> bytes:
        resp = self._request("GET", "/k/v1/file.json", params={"fileKey": file_key})
        logger.debug("downloaded fileKey=%s bytes=%d", file_key, len(resp.content))
        return resp.content

    def get_table_schema(self, app: str) -> list[TableSchema]:
        """Return the SUBTABLE fields of an app with their nested field codes."""
        resp = self._request("GET", "/k/v1/app/form/fields.json", params={"app": app})
        properties = resp.json().get("properties", {})
        tables = [
            TableSchema(
                field_code=code,
                nested_field_codes=frozenset(prop.get("fields", {}).keys()),
            )
            for code, prop in properties.items()
            if prop.get("type") == "SUBTABLE"
        ]
        logger.debug("app=%s subtables=%s", app, [t.field_code for t in tables])
        return tables

    def find_records_by_values(self, app: str, field_code: str, values: Sequence[str]) -> list[str]:
        """Return the values of field_code found among existing records of app."""
        if not values:
            return []
        query = f"{field_code} in ({','.join(_quote(v) for v in values)})"
        resp = self._request(
            "GET",
            "/k/v1/records.json",
            params={"app": app, "query": query, "fields[0]": field_code, "totalCount": "true"},
        )
        body = resp.json()
        if int(body.get("totalCount") or 0) == 0:
            return []
        return [record[field_code]["value"] for record in body.get("records", [])]

    def add_records(self, app: str, records: Sequence[dict[str, Any]]) -> AddRecordsResult:
        payload = json.dumps({"app": app, "records": list(records)}, default=json_default, ensure_ascii=False)
        resp = self._request(
            "POST",
            "/k/v1/records.json",
            data=payload.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        body = resp.json()
        return AddRecordsResult(ids=list(body.get("ids", [])), revisions=list(body.get("revisions", [])))
