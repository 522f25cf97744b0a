# horizon/core/pipeline.py
"""Two-stage inference: topic classification, then cached embedding."""

import logging
from typing import List, Optional, Dict, Any
import numpy as np

from .checksums import normalize_text, compute_content_hash
from .state import InferenceState
from ..contracts.embedder import ITextEmbedder
from ..models.engagement import InferenceResult
from ..models.result import Ok, Err, Result, ClassifyError, EmbedError
from ..models.topic import Classification


logger = logging.getLogger(__name__)


def quantize(vector, digits: int) -> List[float]:
    """Round every component to a fixed number of decimal digits."""
    return np.round(np.asarray(vector, dtype=np.float64), digits).tolist()


class InferencePipeline:
    """
    Turns a text sample into a topic and an embedding.

    Stages:
    1. Gate: empty, short or ML-disabled input returns an empty result
    2. Classify: topic from the stored Naive Bayes model
    3. Hash: SHA256 of the normalized text
    4. Embed: cache lookup, else the external embedder, then cache insert

    Classification and embedding fail independently. Each produces a
    Result; the two are merged into one InferenceResult and no stage error
    escapes infer().
    """

    def __init__(
        self,
        state: InferenceState,
        embedder: Optional[ITextEmbedder] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.state = state
        self.embedder = embedder
        self.config = config or {}
        self.min_text_length = int(self.config.get('min_text_length', 5))
        self.quantize_digits = int(self.config.get('quantize_digits', 6))
        self.pooling = self.config.get('pooling', 'mean')
        self.normalize = bool(self.config.get('normalize', True))
        self.fallback_topic = self.config.get('fallback_topic', 'unknown')

    async def infer(self, text: Optional[str], enabled: bool = True) -> InferenceResult:
        """
        Run both stages for one text sample.

        Args:
            text: Raw text sample (a page or post title)
            enabled: The enableML flag as read for this event

        Returns:
            InferenceResult; all fields None when the input is gated out
        """
        normalized = normalize_text(text)
        if not enabled or len(normalized) <= self.min_text_length:
            return InferenceResult()

        result = InferenceResult()

        classified = await self._classify(normalized)
        if isinstance(classified, Ok):
            result.topic = classified.value.category
            result.confidence = classified.value.confidence
        else:
            result.topic = self.fallback_topic
            result.errors.append(classified.error.kind)

        content_hash = compute_content_hash(normalized)
        embedded = await self._embed(normalized, content_hash)
        if isinstance(embedded, Ok):
            result.embedding = embedded.value
            result.embedding_hash = content_hash
        else:
            result.errors.append(embedded.error.kind)

        return result

    async def _classify(self, text: str) -> Result[Classification, ClassifyError]:
        try:
            classifier = await self.state.classifiers.get()
            if classifier is None:
                return Err(ClassifyError("model_unavailable", "no trained topic model"))
            return Ok(classifier.classify(text))
        except Exception as e:
            logger.warning("Classification failed: %s", e)
            return Err(ClassifyError("classification_failed", str(e)))

    async def _embed(self, text: str, content_hash: str) -> Result[List[float], EmbedError]:
        cache = self.state.cache
        await cache.load_once()

        cached = cache.get(content_hash)
        if cached is not None:
            return Ok(cached)

        if self.embedder is None:
            return Err(EmbedError("embedder_unavailable", "no embedder configured"))

        try:
            await self.embedder.load()
        except Exception as e:
            logger.warning("Embedding model unavailable: %s", e)
            return Err(EmbedError("embedder_unavailable", str(e)))

        try:
            vector = await self.embedder.embed(text, pooling=self.pooling, normalize=self.normalize)
        except Exception as e:
            logger.warning("Embedding failed: %s", e)
            return Err(EmbedError("embedding_failed", str(e)))

        if vector is None or len(vector) == 0:
            return Err(EmbedError("embedding_failed", "embedder returned no vector"))

        embedding = quantize(vector, self.quantize_digits)
        await cache.put(content_hash, embedding)
        return Ok(embedding)
