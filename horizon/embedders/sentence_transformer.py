# horizon/embedders/sentence_transformer.py
"""Sentence Transformers embedder."""

import asyncio
import gc
import logging
from typing import List, Optional, Dict, Any
import numpy as np

try:
    import torch
    from sentence_transformers import SentenceTransformer
    SENTENCE_TRANSFORMERS_AVAILABLE = True
except ImportError:
    SENTENCE_TRANSFORMERS_AVAILABLE = False

from ..contracts.embedder import ITextEmbedder


logger = logging.getLogger(__name__)

SUPPORTED_POOLING = ("mean", "cls")


class SentenceTransformerEmbedder(ITextEmbedder):
    """
    Embedder using Sentence Transformers.

    Default model: sentence-transformers/all-MiniLM-L6-v2
    - Embedding dim: 384
    - Mean pooling over token embeddings
    - Runs comfortably on CPU for short titles

    The model is loaded on first use. Loading and encoding run in a worker
    thread so the event loop keeps serving other events meanwhile.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        if not SENTENCE_TRANSFORMERS_AVAILABLE:
            raise ImportError(
                "sentence-transformers is required. "
                "Install with: pip install sentence-transformers"
            )

        self.config = config or {}
        self.model_name = self.config.get("model", "sentence-transformers/all-MiniLM-L6-v2")
        self.device = self.config.get("device") or ("cuda" if torch.cuda.is_available() else "cpu")

        self.model = None
        self._embedding_dim = None
        self._load_lock = asyncio.Lock()

    async def embed(self, text: str, pooling: str = "mean", normalize: bool = True) -> List[float]:
        """Generate embedding vector for single text."""
        if pooling not in SUPPORTED_POOLING:
            raise ValueError(f"Unsupported pooling '{pooling}'. Use one of {SUPPORTED_POOLING}")

        await self.load()
        vector = await asyncio.to_thread(self._encode, text, pooling, normalize)
        return vector.tolist()

    def _encode(self, text: str, pooling: str, normalize: bool) -> np.ndarray:
        # Pool the token embeddings here so the model's own pooling layer
        # cannot override the requested mode.
        tokens = self.model.encode(
            text,
            output_value="token_embeddings",
            show_progress_bar=False,
        )
        if hasattr(tokens, "cpu"):
            tokens = tokens.cpu().numpy()
        tokens = np.asarray(tokens, dtype=np.float64)

        if pooling == "mean":
            vector = tokens.mean(axis=0)
        else:
            vector = tokens[0]

        if normalize:
            norm = np.linalg.norm(vector)
            if norm > 0:
                vector = vector / norm
        return vector

    def get_embedding_dim(self) -> int:
        """Return the dimensionality of embeddings."""
        if self._embedding_dim is None:
            if self.model is not None:
                self._embedding_dim = self.model.get_sentence_embedding_dimension()
            elif "MiniLM-L6" in self.model_name:
                return 384
            else:
                return 768  # Default guess

        return self._embedding_dim

    async def load(self) -> None:
        """Load model into memory."""
        if self.model is not None:
            return  # Already loaded

        async with self._load_lock:
            if self.model is not None:
                return  # Loaded while waiting

            logger.info("Loading embedding model: %s on %s", self.model_name, self.device)
            model = await asyncio.to_thread(SentenceTransformer, self.model_name, device=self.device)
            self._embedding_dim = model.get_sentence_embedding_dimension()
            self.model = model
            logger.info("Embedding model loaded (dim=%d)", self._embedding_dim)

    def unload(self) -> None:
        """Free resources."""
        if self.model is None:
            return

        del self.model
        self.model = None
        gc.collect()

        if self.device == "cuda" and torch.cuda.is_available():
            torch.cuda.empty_cache()

        logger.info("Embedding model unloaded")
