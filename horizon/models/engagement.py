# horizon/models/engagement.py
"""Engagement events, daily aggregates and responses."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any


class ContentType(str, Enum):
    """Page content kinds reported by the page scraper."""

    VIDEO = "video"
    GALLERY = "gallery"
    ARTICLE = "article"
    LONG_READ = "long_read"
    SHORT_TEXT = "short_text"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> 'ContentType':
        """Map any reported value onto the closed set, defaulting to UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass
class EngagementEvent:
    """
    Inbound engagement event.

    The page scraper reports time spent on one page; title is the raw
    text sample fed to the inference pipeline.
    """

    domain: str
    delta_ms: int
    content_type: ContentType
    captured_at: int  # epoch milliseconds
    title: Optional[str] = None

    def __post_init__(self):
        """Validate fields."""
        if isinstance(self.delta_ms, bool) or not isinstance(self.delta_ms, int):
            raise ValueError(f"deltaMs must be an integer, got {self.delta_ms!r}")
        if self.delta_ms <= 0:
            raise ValueError(f"deltaMs must be positive, got {self.delta_ms}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngagementEvent':
        """Create from the wire payload. Raises ValueError on a malformed payload."""
        if not isinstance(data, dict):
            raise ValueError("event payload must be a mapping")

        title = data.get('title')
        if title is not None and not isinstance(title, str):
            title = None

        captured_at = data.get('capturedAt')
        if isinstance(captured_at, bool) or not isinstance(captured_at, (int, float)):
            captured_at = 0

        return cls(
            domain=str(data.get('domain') or 'unknown'),
            delta_ms=data.get('deltaMs'),
            content_type=ContentType.parse(data.get('contentType') or 'unknown'),
            captured_at=int(captured_at),
            title=title,
        )


@dataclass
class EmbeddingSample:
    """One retained embedding in a day's aggregate."""

    domain: str
    content_type: str
    topic: Optional[str]
    hash: str
    embedding: List[float]
    captured_at: int

    def to_dict(self) -> dict:
        return {
            'domain': self.domain,
            'contentType': self.content_type,
            'topic': self.topic,
            'hash': self.hash,
            'embedding': list(self.embedding),
            'capturedAt': self.captured_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'EmbeddingSample':
        return cls(
            domain=data.get('domain', 'unknown'),
            content_type=data.get('contentType', 'unknown'),
            topic=data.get('topic'),
            hash=data.get('hash', ''),
            embedding=list(data.get('embedding') or []),
            captured_at=int(data.get('capturedAt') or 0),
        )


@dataclass
class DailyAggregate:
    """
    Accumulated engagement for one calendar day.

    total_ms always equals the sum of by_domain; both are updated together
    by add_time().
    """

    day: str
    by_domain: Dict[str, int] = field(default_factory=dict)
    by_content_type: Dict[str, int] = field(default_factory=dict)
    by_topic: Dict[str, int] = field(default_factory=dict)
    by_topic_counts: Dict[str, int] = field(default_factory=dict)
    total_ms: int = 0
    embedding_samples: List[EmbeddingSample] = field(default_factory=list)

    def add_time(self, domain: str, content_type: str, delta_ms: int) -> None:
        self.by_domain[domain] = self.by_domain.get(domain, 0) + delta_ms
        self.by_content_type[content_type] = self.by_content_type.get(content_type, 0) + delta_ms
        self.total_ms += delta_ms

    def add_topic(self, topic: str, delta_ms: int) -> None:
        self.by_topic[topic] = self.by_topic.get(topic, 0) + delta_ms
        self.by_topic_counts[topic] = self.by_topic_counts.get(topic, 0) + 1

    def add_sample(self, sample: EmbeddingSample, max_samples: int) -> None:
        """Append a sample, discarding the oldest ones past max_samples."""
        self.embedding_samples.append(sample)
        if len(self.embedding_samples) > max_samples:
            del self.embedding_samples[:len(self.embedding_samples) - max_samples]

    def to_dict(self) -> dict:
        return {
            'day': self.day,
            'byDomain': dict(self.by_domain),
            'byContentType': dict(self.by_content_type),
            'byTopic': dict(self.by_topic),
            'byTopicCounts': dict(self.by_topic_counts),
            'totalMs': self.total_ms,
            'embeddingSamples': [s.to_dict() for s in self.embedding_samples],
        }

    @classmethod
    def from_dict(cls, data: Optional[dict], day: str) -> 'DailyAggregate':
        """
        Restore a stored record.

        Records written before topics or samples were tracked lack those
        fields; they come back as empty maps/lists. A missing record yields
        a fresh, empty aggregate for the day.
        """
        if not isinstance(data, dict):
            return cls(day=day)

        return cls(
            day=data.get('day') or day,
            by_domain=dict(data.get('byDomain') or {}),
            by_content_type=dict(data.get('byContentType') or {}),
            by_topic=dict(data.get('byTopic') or {}),
            by_topic_counts=dict(data.get('byTopicCounts') or {}),
            total_ms=int(data.get('totalMs') or 0),
            embedding_samples=[
                EmbeddingSample.from_dict(s) for s in (data.get('embeddingSamples') or [])
                if isinstance(s, dict)
            ],
        )


@dataclass
class InferenceResult:
    """Merged output of the classification and embedding stages."""

    topic: Optional[str] = None
    embedding: Optional[List[float]] = None
    embedding_hash: Optional[str] = None
    confidence: Optional[float] = None
    errors: List[str] = field(default_factory=list)  # error kinds from failed stages

    def to_dict(self) -> dict:
        return {
            'topic': self.topic,
            'embedding': self.embedding,
            'embeddingHash': self.embedding_hash,
        }


@dataclass
class EngagementResponse:
    """Outbound response for one engagement event."""

    success: bool
    topic: Optional[str] = None
    embedding_hash: Optional[str] = None
    disabled: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {'success': self.success}
        if self.topic is not None:
            result['topic'] = self.topic
        if self.embedding_hash is not None:
            result['embeddingHash'] = self.embedding_hash
        if self.disabled:
            result['disabled'] = True
        if self.error is not None:
            result['error'] = self.error
        return result


@dataclass
class TrackingSettings:
    """User-controlled feature flags. Everything is off until opted in."""

    enable_tracking: bool = False
    include_titles: bool = False
    enable_ml: bool = False

    def to_dict(self) -> dict:
        return {
            'enableTracking': self.enable_tracking,
            'includeTitles': self.include_titles,
            'enableML': self.enable_ml,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'TrackingSettings':
        if not isinstance(data, dict):
            return cls()
        # Only a literal True enables a flag.
        return cls(
            enable_tracking=data.get('enableTracking') is True,
            include_titles=data.get('includeTitles') is True,
            enable_ml=data.get('enableML') is True,
        )
