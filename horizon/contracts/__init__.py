# horizon/contracts/__init__.py
"""Abstract contracts for pluggable components."""

from .classifier import IClassifier
from .embedder import ITextEmbedder
from .storage import IKeyValueStore

__all__ = [
    "IClassifier",
    "ITextEmbedder",
    "IKeyValueStore",
]
