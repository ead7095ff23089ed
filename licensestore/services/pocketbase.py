# licensestore/services/pocketbase.py
"""PocketBase collection access with admin password auth.

An ``AdminSession`` exchanges the admin email/password for a bearer token;
``PocketBaseRecordStore`` is bound to one such token for the lifetime of a
request. Nothing here caches credentials across requests.
"""
import logging
from typing import Optional

import requests

from ..errors import AuthenticationFailed, BackendUnavailable
from .record_store import RecordStore

logger = logging.getLogger(__name__)


def _quote(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{text}'"


def build_filter(filters: dict) -> str:
    """Equality conjunction in PocketBase filter syntax."""
    if not filters:
        return ""
    return "(" + " && ".join(f"{k}={_quote(v)}" for k, v in filters.items()) + ")"


class AdminSession:
    def __init__(self, base_url: str, email: str, password: str, timeout: float = 10, http=None):
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.timeout = timeout
        self.http = http or requests.Session()

    def authenticate(self) -> str:
        if not self.email or not self.password:
            raise AuthenticationFailed("Record store admin credentials are not configured")
        try:
            r = self.http.request(
                "POST",
                f"{self.base_url}/api/admins/auth-with-password",
                json={"identity": self.email, "password": self.password},
                timeout=self.timeout,
            )
            data = r.json() if r.ok else {}
        except requests.Timeout:
            logger.error("record store admin auth timed out after %ss", self.timeout)
            raise BackendUnavailable("Record store authentication timed out")
        except (requests.RequestException, ValueError) as e:
            logger.error("record store admin auth failed: %s", e)
            raise AuthenticationFailed("Failed to authenticate with the record store")

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            logger.error("record store admin auth rejected (HTTP %s)", r.status_code)
            raise AuthenticationFailed("Failed to authenticate with the record store")
        return token


class PocketBaseRecordStore(RecordStore):
    def __init__(self, base_url: str, token: str, collection: str = "store_orders",
                 timeout: float = 10, http=None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.collection = collection
        self.timeout = timeout
        self.http = http or requests.Session()

    @property
    def records_url(self) -> str:
        return f"{self.base_url}/api/collections/{self.collection}/records"

    def _headers(self):
        return {"Authorization": f"Bearer {self.token}", "Content-Type": "application/json"}

    def _call(self, method: str, url: str, action: str, allow_404: bool = False, **kwargs) -> Optional[dict]:
        try:
            r = self.http.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.Timeout:
            logger.error("record store %s timed out after %ss", action, self.timeout)
            raise BackendUnavailable(f"Record store {action} timed out")
        except requests.RequestException as e:
            logger.error("record store %s failed: %s", action, e)
            raise BackendUnavailable(f"Record store {action} failed")

        if allow_404 and r.status_code == 404:
            return None
        if not r.ok:
            logger.error("record store %s returned HTTP %s: %s", action, r.status_code, r.text[:500])
            raise BackendUnavailable(f"Record store {action} failed")
        try:
            body = r.json()
        except ValueError:
            logger.error("record store %s returned a non-JSON body", action)
            raise BackendUnavailable(f"Record store {action} failed")
        if not isinstance(body, dict):
            logger.error("record store %s returned %s instead of an object", action, type(body).__name__)
            raise BackendUnavailable(f"Record store {action} failed")
        return body

    def find_first(self, filters):
        data = self._call("GET", self.records_url, "lookup",
                          params={"filter": build_filter(filters), "perPage": 1})
        items = data.get("items") or []
        return items[0] if items else None

    def create(self, data):
        return self._call("POST", self.records_url, "create", json=data)

    def update(self, record_id, data):
        return self._call("PATCH", f"{self.records_url}/{record_id}", "update", json=data)

    def get(self, record_id):
        return self._call("GET", f"{self.records_url}/{record_id}", "get", allow_404=True)

    def list_records(self, filters, page=1, per_page=20):
        params = {"page": page, "perPage": per_page, "sort": "-created"}
        if filters:
            params["filter"] = build_filter(filters)
        data = self._call("GET", self.records_url, "list", params=params)
        return data.get("items") or [], int(data.get("totalItems") or 0)
