# horizon/models/topic.py
"""Topic model state and classification results."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any


DEFAULT_CATEGORIES = ["politics", "sports", "tech", "entertainment"]
MODEL_VERSION = 1


@dataclass
class Classification:
    """Topic classification result."""

    category: str
    confidence: float  # 0.0 to 1.0, soft-max of the winning score
    scores: Dict[str, float] = field(default_factory=dict)  # log scores per category

    def to_dict(self) -> dict:
        return {
            'category': self.category,
            'confidence': self.confidence,
            'scores': dict(self.scores),
        }


@dataclass
class TopicModel:
    """
    Persisted multinomial Naive Bayes state.

    word_counts maps word -> category -> count, category_counts maps
    category -> number of training documents. Every category referenced in
    word_counts must appear in categories.
    """

    word_counts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    category_counts: Dict[str, int] = field(default_factory=dict)
    total_words: int = 0
    categories: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    version: int = MODEL_VERSION

    @property
    def vocabulary_size(self) -> int:
        return len(self.word_counts)

    def is_usable(self) -> bool:
        """A model without categories, documents or vocabulary counts as no model."""
        return bool(self.categories) and bool(self.category_counts) and bool(self.word_counts)

    def to_dict(self) -> dict:
        """Serialize using the stored key names."""
        return {
            'wordCounts': {word: dict(counts) for word, counts in self.word_counts.items()},
            'categoryCounts': dict(self.category_counts),
            'totalWords': self.total_words,
            'categories': list(self.categories),
            'version': self.version,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['TopicModel']:
        """
        Restore a model from its stored form.

        Returns None when the payload is not a mapping or its tables have
        the wrong shape. Missing tables default to empty so the caller can
        decide usability with is_usable().
        """
        if not isinstance(data, dict):
            return None

        word_counts = data.get('wordCounts') or {}
        category_counts = data.get('categoryCounts') or {}
        categories = data.get('categories') or list(DEFAULT_CATEGORIES)

        if not isinstance(word_counts, dict) or not isinstance(category_counts, dict):
            return None
        if not isinstance(categories, list):
            return None

        try:
            parsed_words = {
                str(word): {str(cat): int(count) for cat, count in counts.items()}
                for word, counts in word_counts.items()
            }
            parsed_categories = {str(cat): int(count) for cat, count in category_counts.items()}
            total_words = int(data.get('totalWords') or 0)
            version = int(data.get('version') or MODEL_VERSION)
        except (AttributeError, TypeError, ValueError):
            return None

        known = {str(cat) for cat in categories}
        if any(cat not in known for counts in parsed_words.values() for cat in counts):
            return None

        return cls(
            word_counts=parsed_words,
            category_counts=parsed_categories,
            total_words=total_words,
            categories=[str(cat) for cat in categories],
            version=version,
        )
