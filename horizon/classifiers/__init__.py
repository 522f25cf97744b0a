# horizon/classifiers/__init__.py
"""Topic classifiers."""

from .naive_bayes import NaiveBayesClassifier, tokenize, MODEL_KEY
from .training import train_default_classifier, model_status, TrainingReport, ModelStatus

__all__ = [
    "NaiveBayesClassifier",
    "tokenize",
    "MODEL_KEY",
    "train_default_classifier",
    "model_status",
    "TrainingReport",
    "ModelStatus",
]
