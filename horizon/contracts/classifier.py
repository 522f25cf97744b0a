# horizon/contracts/classifier.py
"""Abstract interface for topic classification."""

from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

from ..models.topic import Classification


class IClassifier(ABC):
    """
    Assigns one topic from a closed category set to a text sample.

    Default categories:
    - politics
    - sports
    - tech
    - entertainment
    """

    @abstractmethod
    def train(self, samples: Sequence[Tuple[str, int]]) -> None:
        """
        Build the model from labeled samples.

        Args:
            samples: (text, category index) pairs
        """
        pass

    @abstractmethod
    def classify(self, text: str) -> Classification:
        """
        Classify a single text sample.

        Args:
            text: Raw text sample

        Returns:
            Classification with category, confidence and per-category scores
        """
        pass

    @abstractmethod
    def classify_batch(self, texts: List[str]) -> List[Classification]:
        """Classify several samples."""
        pass

    @abstractmethod
    def is_trained(self) -> bool:
        """Whether the loaded parameters can produce a meaningful prediction."""
        pass
