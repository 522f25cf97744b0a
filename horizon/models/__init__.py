# horizon/models/__init__.py
"""Data models for Horizon."""

from .topic import TopicModel, Classification, DEFAULT_CATEGORIES, MODEL_VERSION
from .engagement import (
    ContentType,
    EngagementEvent,
    EmbeddingSample,
    DailyAggregate,
    InferenceResult,
    EngagementResponse,
    TrackingSettings,
)
from .result import Ok, Err, Result, ClassifyError, EmbedError

__all__ = [
    "TopicModel",
    "Classification",
    "DEFAULT_CATEGORIES",
    "MODEL_VERSION",
    "ContentType",
    "EngagementEvent",
    "EmbeddingSample",
    "DailyAggregate",
    "InferenceResult",
    "EngagementResponse",
    "TrackingSettings",
    "Ok",
    "Err",
    "Result",
    "ClassifyError",
    "EmbedError",
]
