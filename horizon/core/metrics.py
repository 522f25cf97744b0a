# horizon/core/metrics.py
"""Derived figures for the daily summary view."""

from typing import Dict, List, Tuple
import numpy as np


MS_PER_MINUTE = 1000 * 60


def format_minutes(ms: int) -> str:
    return f"{round(ms / MS_PER_MINUTE)} min"


def top_n(values: Dict[str, int], n: int = 5) -> List[Tuple[str, int]]:
    """Largest entries first; ties keep name order."""
    return sorted(values.items(), key=lambda item: (-item[1], item[0]))[:n]


def entropy(values: Dict[str, int]) -> float:
    """Shannon entropy in bits of a time distribution; 0 for an empty one."""
    counts = np.array([v for v in values.values() if v > 0], dtype=np.float64)
    total = counts.sum()
    if total == 0:
        return 0.0
    p = counts / total
    return float(-(p * np.log2(p)).sum())


def concentration(values: Dict[str, int], total_ms: int, n: int = 3) -> int:
    """Percent of total time spent in the top n entries."""
    if total_ms <= 0:
        return 0
    top = sum(v for _, v in top_n(values, n))
    return round(top / total_ms * 100)
