# horizon/contracts/storage.py
"""Abstract interface for durable key-value persistence."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable


class IKeyValueStore(ABC):
    """
    Durable key-value store holding JSON-compatible values.

    No transactions and no compare-and-swap: every write replaces the whole
    value stored under a key. Implementations can use:
    - SQLite on local disk
    - An in-process dict
    """

    @abstractmethod
    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        """
        Read several keys at once.

        Returns:
            Mapping containing only the keys that are present
        """
        pass

    @abstractmethod
    async def set(self, items: Dict[str, Any]) -> None:
        """Replace the values stored under each key of items."""
        pass

    @abstractmethod
    async def get_all(self) -> Dict[str, Any]:
        """Read every stored key/value pair (used for export)."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Delete everything."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close connections and cleanup."""
        pass
