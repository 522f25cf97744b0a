# horizon/core/checksums.py
"""Content hashing for cache keys and deduplication."""

import hashlib
from typing import Optional


def normalize_text(text: Optional[str]) -> str:
    """Trim surrounding whitespace; None becomes the empty string."""
    if not text:
        return ""
    return text.strip()


def compute_content_hash(content: Optional[str]) -> Optional[str]:
    """
    Compute SHA256 hash of normalized content.

    Args:
        content: Text content to hash

    Returns:
        Hex string of SHA256 hash, or None for empty/whitespace-only input
    """
    normalized = normalize_text(content)
    if not normalized:
        return None

    return hashlib.sha256(normalized.encode('utf-8', 'surrogatepass')).hexdigest()
