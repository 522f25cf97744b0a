# horizon/core/__init__.py
"""Core engine: hashing, caching, inference pipeline, aggregation and service."""
