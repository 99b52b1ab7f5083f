"""File-based record store adapter."""

import json
import logging
import uuid
from pathlib import Path

from finire.errors import StoreError

logger = logging.getLogger(__name__)

UNIQUE_KEYS: dict[str, tuple[str, ...]] = {
    "days": ("user_id", "day_number"),
    "reminders": ("user_id",),
    "reminder_deliveries": ("user_id", "minute_key"),
    "users": ("email",),
}


def _sort_rows(rows: list[dict], order: str | None) -> list[dict]:
    if not order:
        return rows
    descending = order.startswith("-")
    column = order.lstrip("-")
    return sorted(
        rows,
        key=lambda r: (r.get(column) is None, r.get(column)),
        reverse=descending,
    )


class FileRecordStore:
    """
    File-based record store.

    Implements RecordStore and IdentityProvider protocols. Each table is a
    JSON array in its own file; unique keys are enforced on write.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path_for_table(self, table: str) -> Path:
        """Get the file path for a table."""
        return self.data_dir / f"{table}.json"

    def _read(self, table: str) -> list[dict]:
        path = self._path_for_table(table)
        if not path.exists():
            return []
        try:
            return json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            raise StoreError(f"Cannot read table '{table}': {e}")

    def _write(self, table: str, rows: list[dict]) -> None:
        path = self._path_for_table(table)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(json.dumps(rows, indent=2, default=str))
            tmp.replace(path)
        except OSError as e:
            raise StoreError(f"Cannot write table '{table}': {e}")

    def _find_conflict(
        self, rows: list[dict], row: dict, key: tuple[str, ...]
    ) -> dict | None:
        if not key or any(k not in row for k in key):
            return None
        return next(
            (r for r in rows if all(r.get(k) == row[k] for k in key)),
            None,
        )

    def select(
        self,
        table: str,
        filters: dict | None = None,
        order: str | None = None,
    ) -> list[dict]:
        """Rows whose columns equal every filter value."""
        rows = self._read(table)
        if filters:
            rows = [r for r in rows if all(r.get(k) == v for k, v in filters.items())]
        return _sort_rows(rows, order)

    def insert(self, table: str, row: dict) -> dict:
        """Insert a row, rejecting unique-key conflicts."""
        rows = self._read(table)
        if self._find_conflict(rows, row, UNIQUE_KEYS.get(table, ())):
            raise StoreError(f"Duplicate key in '{table}' for {row}")
        stored = {"id": uuid.uuid4().hex, **row}
        rows.append(stored)
        self._write(table, rows)
        return dict(stored)

    def update(self, table: str, row_id: str, patch: dict) -> dict:
        """Patch the row with the given id."""
        rows = self._read(table)
        for stored in rows:
            if stored.get("id") == row_id:
                stored.update(patch)
                self._write(table, rows)
                return dict(stored)
        raise StoreError(f"No row '{row_id}' in '{table}'")

    def upsert(self, table: str, row: dict, conflict_key: tuple[str, ...]) -> dict:
        """Insert, or merge into the row matching conflict_key."""
        rows = self._read(table)
        existing = self._find_conflict(rows, row, conflict_key)
        if existing is None:
            stored = {"id": uuid.uuid4().hex, **row}
            rows.append(stored)
        else:
            existing.update(row)
            stored = existing
        self._write(table, rows)
        return dict(stored)

    def list_users(self) -> list[dict]:
        """All users from the local users table."""
        return [{"id": r["id"], "email": r.get("email")} for r in self._read("users")]

    def add_user(self, email: str) -> dict:
        """Register a local user."""
        return self.insert("users", {"email": email})
