"""Record store interface."""

from typing import Protocol


class RecordStore(Protocol):
    """
    Interface for generic table storage.

    Rows are plain dicts carrying a store-assigned "id". Implementations raise
    StoreError on any failure.
    """

    def select(
        self,
        table: str,
        filters: dict | None = None,
        order: str | None = None,
    ) -> list[dict]:
        """Rows whose columns equal every filter value, optionally sorted by a column."""
        ...

    def insert(self, table: str, row: dict) -> dict:
        """Insert a row. Returns the stored row."""
        ...

    def update(self, table: str, row_id: str, patch: dict) -> dict:
        """Patch the row with the given id. Returns the stored row."""
        ...

    def upsert(self, table: str, row: dict, conflict_key: tuple[str, ...]) -> dict:
        """Insert, or merge into the row matching conflict_key. Returns the stored row."""
        ...
