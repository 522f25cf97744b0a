# horizon/contracts/embedder.py
"""Abstract interface for text embedding."""

from abc import ABC, abstractmethod
from typing import List


class ITextEmbedder(ABC):
    """
    Turns a text sample into a fixed-length semantic vector.

    The model behind it is opaque to the rest of the system. Implementations
    must initialize lazily and at most once; the first embed() call may pay
    the load cost.
    """

    @abstractmethod
    async def embed(self, text: str, pooling: str = "mean", normalize: bool = True) -> List[float]:
        """
        Generate the embedding for a single text.

        Args:
            text: Normalized text sample
            pooling: Token pooling strategy ("mean" or "cls")
            normalize: L2-normalize the pooled vector

        Returns:
            Embedding as a list of floats

        Raises:
            Any exception on load or inference failure; callers treat it as
            "no embedding available".
        """
        pass

    @abstractmethod
    async def load(self) -> None:
        """Load the model. Repeated and concurrent calls load only once."""
        pass

    @abstractmethod
    def unload(self) -> None:
        """Free model resources."""
        pass

    @abstractmethod
    def get_embedding_dim(self) -> int:
        """Return the dimensionality of embeddings."""
        pass
