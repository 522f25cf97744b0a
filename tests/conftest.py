# tests/conftest.py
"""Shared fixtures: in-memory stores and a deterministic embedder."""

import asyncio
import hashlib
from datetime import date
from typing import List

import pytest

from horizon.classifiers.training import train_default_classifier
from horizon.contracts.embedder import ITextEmbedder
from horizon.core.aggregator import EngagementAggregator
from horizon.core.pipeline import InferencePipeline
from horizon.core.service import EngagementService, SETTINGS_KEY
from horizon.core.state import InferenceState
from horizon.storage.memory_kv import MemoryKeyValueStore


FIXED_DAY = date(2025, 3, 14)


class HashEmbedder(ITextEmbedder):
    """Derives an 8-dimensional vector from the text's digest."""

    def __init__(self, fail_load: bool = False, fail_embed: bool = False, delay: float = 0.0):
        self.fail_load = fail_load
        self.fail_embed = fail_embed
        self.delay = delay
        self.load_calls = 0
        self.embed_calls: List[str] = []
        self.last_options = None

    async def embed(self, text: str, pooling: str = "mean", normalize: bool = True) -> List[float]:
        await self.load()
        self.embed_calls.append(text)
        self.last_options = (pooling, normalize)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_embed:
            raise RuntimeError("inference exploded")
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        # Many decimal digits so quantization is observable.
        return [b / 255.0 + 1e-9 for b in digest[:8]]

    async def load(self) -> None:
        self.load_calls += 1
        if self.fail_load:
            raise OSError("model download failed")

    def unload(self) -> None:
        pass

    def get_embedding_dim(self) -> int:
        return 8


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose reads or writes can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_get = False
        self.fail_set = False
        self.set_calls = 0

    async def get(self, keys):
        if self.fail_get:
            raise OSError("disk unavailable")
        return await super().get(keys)

    async def set(self, items):
        self.set_calls += 1
        if self.fail_set:
            raise OSError("disk full")
        await super().set(items)


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest.fixture
def embedder():
    return HashEmbedder()


@pytest.fixture
async def trained_store(store):
    await train_default_classifier(store)
    return store


def build_service(store, embedder=None, max_samples: int = 50, day: date = FIXED_DAY) -> EngagementService:
    state = InferenceState(store, {'max_entries': 20})
    pipeline = InferencePipeline(state, embedder)
    aggregator = EngagementAggregator(store, {'max_samples': max_samples}, today=lambda: day)
    return EngagementService(store, state, pipeline, aggregator)


async def enable(store, tracking=True, titles=True, ml=True):
    await store.set({SETTINGS_KEY: {
        'enableTracking': tracking,
        'includeTitles': titles,
        'enableML': ml,
    }})
