"""Identity provider interface."""

from typing import Protocol


class IdentityProvider(Protocol):
    """Interface for resolving users to deliverable addresses."""

    def list_users(self) -> list[dict]:
        """All users as {"id": ..., "email": ...} dicts."""
        ...
