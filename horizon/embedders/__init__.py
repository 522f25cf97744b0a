# horizon/embedders/__init__.py
"""Text embedders."""

from .sentence_transformer import SentenceTransformerEmbedder

__all__ = ["SentenceTransformerEmbedder"]
