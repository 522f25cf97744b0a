# horizon/__init__.py
"""Horizon - passive usage analytics: topic classification, embedding cache and daily aggregates."""

__version__ = "0.1.0"
