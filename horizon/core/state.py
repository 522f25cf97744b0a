# horizon/core/state.py
"""Process-scoped inference state with an explicit lifecycle."""

import asyncio
import logging
from typing import Optional, Dict, Any

from .embedding_cache import EmbeddingCache, MAX_ENTRIES
from ..classifiers.naive_bayes import NaiveBayesClassifier
from ..contracts.storage import IKeyValueStore


logger = logging.getLogger(__name__)


class ClassifierProvider:
    """
    Lazily loads the stored TopicModel and keeps it for the process lifetime.

    A successful load happens at most once. While no usable model is
    stored, each call looks again, so a model trained later is picked up
    without a restart.
    """

    def __init__(self, store: IKeyValueStore):
        self.store = store
        self._classifier: Optional[NaiveBayesClassifier] = None
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._classifier is not None

    async def get(self) -> Optional[NaiveBayesClassifier]:
        """Return the loaded classifier, or None when no usable model is stored."""
        if self._classifier is not None:
            return self._classifier

        async with self._lock:
            if self._classifier is not None:
                return self._classifier

            classifier = NaiveBayesClassifier()
            if await classifier.load(self.store):
                self._classifier = classifier
            else:
                logger.info("No trained topic model found; topics fall back to the default")

        return self._classifier

    def install(self, classifier: NaiveBayesClassifier) -> None:
        """Use a freshly trained classifier without reading the store."""
        self._classifier = classifier

    def reset(self) -> None:
        self._classifier = None


class InferenceState:
    """
    Holds the classifier provider and the embedding cache shared by one pipeline.

    Create one per process (or per test) and pass it to InferencePipeline.
    """

    def __init__(self, store: IKeyValueStore, cache_config: Optional[Dict[str, Any]] = None):
        cache_config = cache_config or {}
        self.store = store
        self.classifiers = ClassifierProvider(store)
        self.cache = EmbeddingCache(
            store,
            max_entries=int(cache_config.get('max_entries', MAX_ENTRIES)),
            flush_on_write=bool(cache_config.get('flush_on_write', True)),
        )

    async def initialize(self) -> None:
        """Warm the classifier and the cache. Failures degrade, they do not raise."""
        try:
            await self.classifiers.get()
        except Exception as e:
            logger.warning("Topic model could not be loaded: %s", e)
        await self.cache.load_once()

    async def shutdown(self) -> None:
        """Write any unflushed cache state."""
        await self.cache.flush()

    def reset(self) -> None:
        """Forget everything loaded; the next use reloads from the store."""
        self.classifiers.reset()
        self.cache.reset()
