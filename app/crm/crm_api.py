"""
Client for the CRM business-data REST API (customers, quotes, orders, ...).

Bodies are opaque JSON records; this console only reads the keys it
displays. The API defines no auth header yet.
"""
from __future__ import annotations

import logging
import time
import urllib.parse
from dataclasses import dataclass, field
from typing import Any

import requests
from flask import Flask, current_app

from app.crm.errors import CrmApiError

logger = logging.getLogger(__name__)

_EXTENSION_KEY = "crm_api"
_RETRY_STATUSES = frozenset({429, 502, 503, 504})


@dataclass(frozen=True)
class CrmApiClient:
    base_url: str
    timeout_seconds: float = 30
    retries: int = 2
    http: requests.Session = field(default_factory=requests.Session, compare=False, repr=False)

    def _url(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    def request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        url = self._url(path)
        # Only reads are retried; a POST that timed out may already have been applied.
        attempts = self.retries + 1 if method.upper() == "GET" else 1
        last_err: Exception | None = None
        for attempt in range(attempts):
            try:
                resp = self.http.request(
                    method,
                    url,
                    params={k: v for k, v in (params or {}).items() if v is not None} or None,
                    json=json_body,
                    headers={"Accept": "application/json"},
                    timeout=self.timeout_seconds,
                )
            except requests.RequestException as e:
                last_err = e
                logger.warning("CRM API %s %s failed (attempt %d/%d): %s", method, path, attempt + 1, attempts, e)
                if attempt + 1 < attempts:
                    time.sleep(min(0.5 * 2**attempt, 5))
                continue

            if resp.status_code in _RETRY_STATUSES and attempt + 1 < attempts:
                last_err = CrmApiError(f"HTTP {resp.status_code}", status_code=resp.status_code)
                logger.warning("CRM API %s %s returned %s; retrying", method, path, resp.status_code)
                time.sleep(min(0.5 * 2**attempt, 5))
                continue
            if resp.status_code >= 400:
                raise CrmApiError(
                    f"HTTP {resp.status_code} from CRM API ({path}): {resp.text[:300]}",
                    status_code=resp.status_code,
                )
            try:
                return resp.json()
            except ValueError as e:
                raise CrmApiError(f"Invalid JSON from CRM API ({path})") from e
        raise CrmApiError(f"CRM API request failed after retries: {last_err}")

    # ---------- Generic collections ----------

    def list(self, collection: str, **params: Any) -> list[dict[str, Any]]:
        j = self.request_json("GET", f"/{collection}", params=params)
        if isinstance(j, dict):
            # Some endpoints wrap the list: {"items": [...]} / {"<collection>": [...]}
            j = j.get("items", j.get(collection.replace("-", "_"), []))
        return [r for r in j if isinstance(r, dict)] if isinstance(j, list) else []

    def get(self, collection: str, record_id: str | int) -> dict[str, Any]:
        j = self.request_json("GET", f"/{collection}/{urllib.parse.quote(str(record_id))}")
        return j if isinstance(j, dict) else {}

    # ---------- Named endpoints ----------

    def get_customers(self) -> list[dict[str, Any]]:
        return self.list("customers")

    def get_customer_by_id(self, customer_id: str | int) -> dict[str, Any]:
        return self.get("customers", customer_id)

    def get_quotes(self) -> list[dict[str, Any]]:
        return self.list("quotes")

    def get_products(self) -> list[dict[str, Any]]:
        return self.list("products")

    def create_quote(self, quote: dict[str, Any]) -> dict[str, Any]:
        j = self.request_json("POST", "/quotes", json_body=quote)
        return j if isinstance(j, dict) else {}


def init_api(app: Flask, client: Any = None) -> Any:
    if client is None:
        client = CrmApiClient(
            base_url=app.config["CRM_API_URL"],
            timeout_seconds=float(app.config.get("CRM_API_TIMEOUT", 30)),
        )
    app.extensions[_EXTENSION_KEY] = client
    return client


def get_api(app: Flask | None = None) -> CrmApiClient:
    return (app or current_app).extensions[_EXTENSION_KEY]
