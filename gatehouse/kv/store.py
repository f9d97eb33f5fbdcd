"""Key-value store interface."""

from abc import ABC, abstractmethod
from typing import Any


class KeyValueStoreError(Exception):
    """Raised when the backing store cannot be reached or returns garbage."""


class KeyValueStore(ABC):
    """Abstract interface for a JSON key-value store with per-key TTL."""

    @abstractmethod
    async def get_json(self, key: str) -> Any | None:
        """Get and decode a value.

        Args:
            key: Store key

        Returns:
            Decoded JSON value, or None if absent, expired or undecodable
        """
        pass

    @abstractmethod
    async def put_json(
        self,
        key: str,
        value: Any,
        ttl_seconds: int | None = None,
    ) -> None:
        """Encode and store a value.

        Args:
            key: Store key
            value: JSON-serializable value
            ttl_seconds: Expiry in seconds; None keeps the value until deleted
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a key. Deleting a missing key is not an error."""
        pass
