# horizon/storage/__init__.py
"""Durable key-value stores."""

from .sqlite_kv import SQLiteKeyValueStore
from .memory_kv import MemoryKeyValueStore

__all__ = ["SQLiteKeyValueStore", "MemoryKeyValueStore"]
