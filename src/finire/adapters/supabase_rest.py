"""Supabase adapter - PostgREST tables and GoTrue admin users over HTTP."""

import logging

import requests

from finire.config import Config, load_config
from finire.errors import ConfigError, StoreError

logger = logging.getLogger(__name__)

USERS_PAGE_SIZE = 1000


def _encode_filter(value) -> str:
    if isinstance(value, bool):
        return "eq.true" if value else "eq.false"
    if value is None:
        return "is.null"
    return f"eq.{value}"


class SupabaseRestStore:
    """
    Supabase REST adapter.

    Implements RecordStore and IdentityProvider protocols using the service
    role key. No business logic - just I/O.
    """

    def __init__(self, config: Config | None = None, timeout: int = 30):
        self.config = config or load_config()
        if not self.config.supabase_url or not self.config.supabase_service_role_key:
            raise ConfigError(
                "Missing Supabase credentials. Set SUPABASE_URL and "
                "SUPABASE_SERVICE_ROLE_KEY in finire.conf"
            )
        self.base_url = self.config.supabase_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        key = self.config.supabase_service_role_key
        self._session.headers.update(
            {
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            }
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
        json_body=None,
        prefer: str | None = None,
    ):
        """Make an authenticated request, mapping any failure to StoreError."""
        headers = {"Prefer": prefer} if prefer else None
        try:
            resp = self._session.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoreError(f"{method} {path} failed: {e}")

        if not resp.ok:
            raise StoreError(f"{method} {path} failed ({resp.status_code}): {resp.text}")
        if not resp.content:
            return None
        return resp.json()

    @staticmethod
    def _first(rows, table: str) -> dict:
        if not rows:
            raise StoreError(f"Empty response writing '{table}'")
        return rows[0]

    def select(
        self,
        table: str,
        filters: dict | None = None,
        order: str | None = None,
    ) -> list[dict]:
        """Rows whose columns equal every filter value."""
        params = {"select": "*"}
        for column, value in (filters or {}).items():
            params[column] = _encode_filter(value)
        if order:
            direction = "desc" if order.startswith("-") else "asc"
            params["order"] = f"{order.lstrip('-')}.{direction}"
        return self._request("GET", f"/rest/v1/{table}", params=params) or []

    def insert(self, table: str, row: dict) -> dict:
        rows = self._request(
            "POST",
            f"/rest/v1/{table}",
            json_body=row,
            prefer="return=representation",
        )
        return self._first(rows, table)

    def update(self, table: str, row_id: str, patch: dict) -> dict:
        rows = self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params={"id": f"eq.{row_id}"},
            json_body=patch,
            prefer="return=representation",
        )
        return self._first(rows, table)

    def upsert(self, table: str, row: dict, conflict_key: tuple[str, ...]) -> dict:
        rows = self._request(
            "POST",
            f"/rest/v1/{table}",
            params={"on_conflict": ",".join(conflict_key)},
            json_body=row,
            prefer="resolution=merge-duplicates,return=representation",
        )
        return self._first(rows, table)

    def list_users(self) -> list[dict]:
        """All users from the auth admin API, following pagination."""
        users = []
        page = 1
        while True:
            data = self._request(
                "GET",
                "/auth/v1/admin/users",
                params={"page": page, "per_page": USERS_PAGE_SIZE},
            ) or {}
            batch = data.get("users", [])
            users.extend({"id": u["id"], "email": u.get("email")} for u in batch)
            if len(batch) < USERS_PAGE_SIZE:
                break
            page += 1
        logger.debug(f"Fetched {len(users)} users")
        return users
