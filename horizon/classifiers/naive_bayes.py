# horizon/classifiers/naive_bayes.py
"""Multinomial Naive Bayes topic classifier (no GPU, no external model)."""

import logging
import math
import re
from typing import List, Sequence, Tuple, Optional, Dict, Any

from ..contracts.classifier import IClassifier
from ..contracts.storage import IKeyValueStore
from ..models.topic import Classification, TopicModel, DEFAULT_CATEGORIES


logger = logging.getLogger(__name__)

MODEL_KEY = "topic_model"


def tokenize(text: str) -> List[str]:
    """Lowercase, turn non-word characters into spaces, keep tokens longer than 2."""
    cleaned = re.sub(r'[^\w\s]', ' ', text.lower())
    return [word for word in cleaned.split() if len(word) > 2]


class NaiveBayesClassifier(IClassifier):
    """
    Word-frequency classifier over a closed category set.

    Scoring per category:
        log(max(documents(cat), 1)) + sum over tokens of
        log((count(word, cat) + 1) / (max(documents(cat), 1) + total_words))

    The arg-max category wins (ties go to the earlier category) and the
    confidence is its soft-max share. An untrained model scores every
    category as log(1) and predicts the first category at uniform
    confidence, which callers must treat as low-confidence.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, model: Optional[TopicModel] = None):
        self.config = config or {}
        self.model = model or TopicModel(
            categories=list(self.config.get("categories", DEFAULT_CATEGORIES))
        )

    @property
    def categories(self) -> List[str]:
        return self.model.categories

    def train(self, samples: Sequence[Tuple[str, int]]) -> None:
        """Accumulate word/category frequencies from (text, category index) pairs."""
        model = self.model

        for text, label in samples:
            category = model.categories[label]
            model.category_counts[category] = model.category_counts.get(category, 0) + 1

            for word in tokenize(text):
                counts = model.word_counts.setdefault(word, {})
                counts[category] = counts.get(category, 0) + 1
                model.total_words += 1

        logger.info(
            "Training complete: %d categories, %d unique words",
            len(model.category_counts), model.vocabulary_size,
        )

    def classify(self, text: str) -> Classification:
        """Classify single text."""
        model = self.model
        words = tokenize(text)

        scores: Dict[str, float] = {}
        for category in model.categories:
            doc_count = model.category_counts.get(category) or 1
            score = math.log(doc_count)
            for word in words:
                word_count = model.word_counts.get(word, {}).get(category, 0)
                score += math.log((word_count + 1) / (doc_count + model.total_words))
            scores[category] = score

        if not scores:
            return Classification(category="unknown", confidence=0.0, scores={})

        best_category = model.categories[0]
        best_score = -math.inf
        for category in model.categories:
            if scores[category] > best_score:
                best_score = scores[category]
                best_category = category

        total = sum(math.exp(score - best_score) for score in scores.values())
        confidence = 1.0 / total

        return Classification(category=best_category, confidence=confidence, scores=scores)

    def classify_batch(self, texts: List[str]) -> List[Classification]:
        """Batch classification."""
        return [self.classify(text) for text in texts]

    def is_trained(self) -> bool:
        return self.model.is_usable()

    def evaluate(self, samples: Sequence[Tuple[str, int]]) -> float:
        """Fraction of labeled samples classified into their own category."""
        if not samples:
            return 0.0

        correct = sum(
            1 for text, label in samples
            if self.classify(text).category == self.model.categories[label]
        )
        return correct / len(samples)

    async def save(self, store: IKeyValueStore) -> dict:
        """Persist the full model state, returning the stored payload."""
        payload = self.model.to_dict()
        await store.set({MODEL_KEY: payload})
        logger.info("Topic model saved (version %d)", self.model.version)
        return payload

    async def load(self, store: IKeyValueStore) -> bool:
        """
        Replace the in-memory model with the stored one.

        Returns False when nothing usable is stored; the current model is
        left untouched in that case.
        """
        result = await store.get([MODEL_KEY])
        model = TopicModel.from_dict(result.get(MODEL_KEY))

        if model is None or not model.is_usable():
            return False

        self.model = model
        logger.debug("Topic model loaded (%d words)", model.vocabulary_size)
        return True
