# horizon/classifiers/training.py
"""Training run and model status checks for the built-in classifier."""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Tuple, Optional, Dict, Any

from .corpus import TRAINING_CORPUS, PROBE_TEXTS
from .naive_bayes import NaiveBayesClassifier, MODEL_KEY
from ..contracts.storage import IKeyValueStore
from ..models.topic import TopicModel, DEFAULT_CATEGORIES


logger = logging.getLogger(__name__)


@dataclass
class TrainingReport:
    """Outcome of a training run."""

    accuracy: float
    vocabulary_size: int
    total_words: int
    categories: List[str]
    duration_s: float
    probes: List[Tuple[str, str, float]] = field(default_factory=list)  # (text, category, confidence)


@dataclass
class ModelStatus:
    """What is currently stored under the model key."""

    state: str  # 'not_trained', 'needs_retraining', 'ready'
    categories: List[str] = field(default_factory=list)
    vocabulary_size: int = 0
    total_words: int = 0
    version: Optional[int] = None

    @property
    def is_ready(self) -> bool:
        return self.state == "ready"


async def train_default_classifier(
    store: IKeyValueStore,
    config: Optional[Dict[str, Any]] = None,
) -> Tuple[NaiveBayesClassifier, TrainingReport]:
    """
    Train on the built-in corpus, persist the model and report accuracy.

    Returns:
        The trained classifier and its report
    """
    start = time.time()

    classifier = NaiveBayesClassifier(config=config)
    classifier.train(TRAINING_CORPUS)

    probes = []
    for text in PROBE_TEXTS:
        result = classifier.classify(text)
        probes.append((text, result.category, result.confidence))
        logger.info("Probe %r -> %s (%.1f%%)", text, result.category, result.confidence * 100)

    await classifier.save(store)

    accuracy = classifier.evaluate(TRAINING_CORPUS)
    logger.info("Training accuracy: %.2f%%", accuracy * 100)

    report = TrainingReport(
        accuracy=accuracy,
        vocabulary_size=classifier.model.vocabulary_size,
        total_words=classifier.model.total_words,
        categories=list(classifier.categories),
        duration_s=time.time() - start,
        probes=probes,
    )
    return classifier, report


async def model_status(store: IKeyValueStore) -> ModelStatus:
    """Inspect the stored model without loading it into the pipeline."""
    result = await store.get([MODEL_KEY])
    raw = result.get(MODEL_KEY)
    model = TopicModel.from_dict(raw)

    if model is None or not (model.word_counts and model.category_counts):
        return ModelStatus(state="not_trained")

    complete = len(model.categories) >= len(DEFAULT_CATEGORIES) and model.is_usable()
    return ModelStatus(
        state="ready" if complete else "needs_retraining",
        categories=list(model.categories),
        vocabulary_size=model.vocabulary_size,
        total_words=model.total_words,
        version=model.version,
    )
