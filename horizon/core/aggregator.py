# horizon/core/aggregator.py
"""Daily engagement aggregates with one writer per day-key."""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional, Any

from .errors import PersistenceError
from ..contracts.storage import IKeyValueStore
from ..models.engagement import DailyAggregate, EmbeddingSample


logger = logging.getLogger(__name__)

MAX_SAMPLES = 50


@dataclass
class EnrichedEvent:
    """An engagement event after inference, ready to be folded into a day."""

    domain: str
    content_type: str
    delta_ms: int
    captured_at: int = 0
    topic: Optional[str] = None
    embedding: Optional[List[float]] = None
    embedding_hash: Optional[str] = None


class EngagementAggregator:
    """
    Folds enriched events into per-day records in the durable store.

    Each record is read, mutated and written back whole. Store writes
    carry no compare-and-swap, so overlapping records for the same day
    would lose increments; record() therefore holds a per-day asyncio.Lock
    around the read-modify-write, making this instance the single writer
    of every day-key. Distinct days never wait on each other.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        config: Optional[Dict[str, Any]] = None,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.config = config or {}
        self.max_samples = int(self.config.get('max_samples', MAX_SAMPLES))
        self.key_prefix = self.config.get('key_prefix', 'day_')
        self.today = today

        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    def current_day(self) -> str:
        """ISO date of the process-local calendar day."""
        return self.today().isoformat()

    def storage_key(self, day: str) -> str:
        return f"{self.key_prefix}{day}"

    @asynccontextmanager
    async def _day_lock(self, day: str):
        lock = self._locks.setdefault(day, asyncio.Lock())
        self._waiters[day] = self._waiters.get(day, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[day] -= 1
            if self._waiters[day] == 0:
                del self._waiters[day]
                del self._locks[day]

    async def load(self, day: str) -> DailyAggregate:
        """
        Read a day's record with every field present.

        Raises:
            PersistenceError: If the store cannot be read or the record is corrupt
        """
        key = self.storage_key(day)
        try:
            result = await self.store.get([key])
        except Exception as e:
            raise PersistenceError(f"Could not read aggregate {key}: {e}") from e

        try:
            return DailyAggregate.from_dict(result.get(key), day)
        except (TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(f"Stored aggregate {key} is corrupt: {e}") from e

    async def record(self, day: str, event: EnrichedEvent) -> DailyAggregate:
        """
        Add one event to a day and persist the updated record.

        Raises:
            PersistenceError: If the record cannot be read or written
        """
        async with self._day_lock(day):
            aggregate = await self.load(day)

            aggregate.add_time(event.domain, event.content_type, event.delta_ms)

            if event.topic:
                aggregate.add_topic(event.topic, event.delta_ms)

            if event.embedding is not None and event.embedding_hash:
                aggregate.add_sample(
                    EmbeddingSample(
                        domain=event.domain,
                        content_type=event.content_type,
                        topic=event.topic,
                        hash=event.embedding_hash,
                        embedding=event.embedding,
                        captured_at=event.captured_at,
                    ),
                    self.max_samples,
                )

            key = self.storage_key(day)
            try:
                await self.store.set({key: aggregate.to_dict()})
            except Exception as e:
                raise PersistenceError(f"Could not write aggregate {key}: {e}") from e

        logger.debug(
            "Stored %dms for %s, total for %s: %dms",
            event.delta_ms, event.domain, day, aggregate.total_ms,
        )
        return aggregate

    async def summary(self, day: Optional[str] = None) -> DailyAggregate:
        """The structurally complete aggregate for a day (today by default)."""
        return await self.load(day or self.current_day())
