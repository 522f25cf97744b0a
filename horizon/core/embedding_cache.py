# horizon/core/embedding_cache.py
"""Bounded LRU cache of embeddings keyed by content hash, with a durable snapshot."""

import asyncio
import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Any

from ..contracts.storage import IKeyValueStore


logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "embedding_cache"
MAX_ENTRIES = 20


class EmbeddingCache:
    """
    LRU mapping of content hash -> embedding.

    Recency is refreshed by get() and put(); inserting past max_entries
    evicts the single least recently used hash. The durable copy is one
    snapshot value, a list ordered oldest -> newest, rewritten whole after
    every mutation (or only on flush() when flush_on_write is off).

    Persistence is best effort: read and write failures are logged and the
    in-memory cache stays authoritative for the rest of the process.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        max_entries: int = MAX_ENTRIES,
        flush_on_write: bool = True,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")

        self.store = store
        self.max_entries = max_entries
        self.flush_on_write = flush_on_write

        self._entries: "OrderedDict[str, List[float]]" = OrderedDict()
        self._loaded = False
        self._load_lock = asyncio.Lock()
        self._flush_lock = asyncio.Lock()
        self._dirty = False

        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, content_hash: str) -> bool:
        return content_hash in self._entries

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def keys(self) -> List[str]:
        """Resident hashes, least recently used first."""
        return list(self._entries.keys())

    async def load_once(self) -> None:
        """
        Restore entries from the snapshot, once per cache lifetime.

        Concurrent first callers wait on the same load; later calls return
        immediately. Entries already resident when the snapshot arrives are
        treated as newer than anything in it.
        """
        if self._loaded:
            return

        async with self._load_lock:
            if self._loaded:
                return

            snapshot = None
            try:
                result = await self.store.get([SNAPSHOT_KEY])
                snapshot = result.get(SNAPSHOT_KEY)
            except Exception as e:
                logger.warning("Could not read embedding cache snapshot, starting empty: %s", e)

            restored = self._merge_snapshot(snapshot)
            self._loaded = True
            logger.debug("Embedding cache loaded (%d from snapshot, %d resident)", restored, len(self._entries))

    def _merge_snapshot(self, snapshot: Any) -> int:
        if not isinstance(snapshot, list):
            return 0

        merged: "OrderedDict[str, List[float]]" = OrderedDict()
        for item in snapshot:
            if not isinstance(item, dict):
                continue
            content_hash = item.get('hash')
            embedding = item.get('embedding')
            if not isinstance(content_hash, str) or not isinstance(embedding, list):
                continue
            if content_hash in self._entries:
                continue
            try:
                vector = [float(v) for v in embedding]
            except (TypeError, ValueError):
                logger.warning("Skipping unreadable snapshot entry %s", content_hash[:12])
                continue
            merged[content_hash] = vector
            merged.move_to_end(content_hash)

        restored = len(merged)
        for content_hash, embedding in self._entries.items():
            merged[content_hash] = embedding

        while len(merged) > self.max_entries:
            merged.popitem(last=False)

        self._entries = merged
        return restored

    def get(self, content_hash: str) -> Optional[List[float]]:
        """Return the cached embedding and mark it most recently used."""
        embedding = self._entries.get(content_hash)
        if embedding is None:
            self.misses += 1
            return None

        self._entries.move_to_end(content_hash)
        self.hits += 1
        return list(embedding)

    async def put(self, content_hash: str, embedding: List[float]) -> Optional[str]:
        """
        Insert or refresh an entry.

        Returns:
            The evicted hash, if the insert pushed one out
        """
        await self.load_once()

        self._entries[content_hash] = list(embedding)
        self._entries.move_to_end(content_hash)

        evicted = None
        if len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted %s from embedding cache", evicted[:12])

        self._dirty = True
        if self.flush_on_write:
            await self.flush()

        return evicted

    def snapshot(self) -> List[Dict[str, Any]]:
        """Serializable copy of the cache, oldest -> newest."""
        return [
            {'hash': content_hash, 'embedding': list(embedding)}
            for content_hash, embedding in self._entries.items()
        ]

    async def flush(self) -> bool:
        """
        Write the whole cache as the new snapshot.

        Returns:
            True if the snapshot was written
        """
        async with self._flush_lock:
            if not self._dirty:
                return True

            # Taken under the lock so the last writer always stores the newest state.
            payload = self.snapshot()
            self._dirty = False
            try:
                await self.store.set({SNAPSHOT_KEY: payload})
            except Exception as e:
                self._dirty = True
                logger.warning("Could not persist embedding cache snapshot: %s", e)
                return False

        return True

    def reset(self) -> None:
        """Drop all resident entries and allow the snapshot to be loaded again."""
        self._entries.clear()
        self._loaded = False
        self._dirty = False
        self.hits = 0
        self.misses = 0

    def stats(self) -> Dict[str, Any]:
        total = self.hits + self.misses
        return {
            'entries': len(self._entries),
            'max_entries': self.max_entries,
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': self.hits / total if total > 0 else 0.0,
            'loaded': self._loaded,
        }
