# horizon/storage/memory_kv.py
"""In-process key-value storage."""

import asyncio
import copy
from typing import Any, Dict, Iterable, Optional

from ..contracts.storage import IKeyValueStore


class MemoryKeyValueStore(IKeyValueStore):
    """
    Dict-backed store for ephemeral runs and tests.

    Values are deep-copied on the way in and out, matching the
    whole-value semantics of a real store. Every call yields to the event
    loop once, like an I/O-bound store would.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self._data: Dict[str, Any] = copy.deepcopy(self.config.get("initial", {}))

    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        await asyncio.sleep(0)
        return {key: copy.deepcopy(self._data[key]) for key in keys if key in self._data}

    async def set(self, items: Dict[str, Any]) -> None:
        snapshot = copy.deepcopy(items)
        await asyncio.sleep(0)
        self._data.update(snapshot)

    async def get_all(self) -> Dict[str, Any]:
        await asyncio.sleep(0)
        return copy.deepcopy(self._data)

    async def clear(self) -> None:
        await asyncio.sleep(0)
        self._data.clear()

    def close(self) -> None:
        pass
