# horizon/core/service.py
"""Engagement service: settings gating, inference, aggregation and admin operations."""

import logging
from typing import Any, Dict, Optional

from .aggregator import EngagementAggregator, EnrichedEvent
from .errors import PersistenceError, InvalidEventError
from .pipeline import InferencePipeline
from .registry import ComponentRegistry
from .state import InferenceState
from ..classifiers.training import train_default_classifier, model_status, TrainingReport, ModelStatus
from ..contracts.embedder import ITextEmbedder
from ..contracts.storage import IKeyValueStore
from ..models.engagement import (
    DailyAggregate,
    EngagementEvent,
    EngagementResponse,
    TrackingSettings,
)


logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"


class EngagementService:
    """
    Entry point for inbound engagement events and summary queries.

    Settings are read from the store on every event, so flag changes apply
    to the next event without a restart. Event handling never raises: every
    outcome is an EngagementResponse.
    """

    def __init__(
        self,
        store: IKeyValueStore,
        state: InferenceState,
        pipeline: InferencePipeline,
        aggregator: EngagementAggregator,
    ):
        self.store = store
        self.state = state
        self.pipeline = pipeline
        self.aggregator = aggregator

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        registry: Optional[ComponentRegistry] = None,
    ) -> 'EngagementService':
        """Wire store, embedder, state, pipeline and aggregator from configuration."""
        registry = registry or ComponentRegistry()
        store = registry.create_store(config)

        embedder: Optional[ITextEmbedder] = None
        if config.get('components', {}).get('embedder'):
            try:
                embedder = registry.create_embedder(config)
            except ImportError as e:
                logger.warning("Embedder unavailable, embeddings disabled: %s", e)

        state = InferenceState(store, config.get('cache', {}))
        pipeline = InferencePipeline(state, embedder, config.get('inference', {}))
        aggregator = EngagementAggregator(store, config.get('aggregator', {}))
        return cls(store, state, pipeline, aggregator)

    async def start(self) -> None:
        await self.state.initialize()

    async def close(self) -> None:
        await self.state.shutdown()
        if self.pipeline.embedder is not None:
            self.pipeline.embedder.unload()
        self.store.close()

    # Settings

    async def read_settings(self) -> TrackingSettings:
        """
        Current tracking flags; a missing value means everything is off.

        Raises:
            PersistenceError: If the store cannot be read
        """
        try:
            result = await self.store.get([SETTINGS_KEY])
        except Exception as e:
            raise PersistenceError(f"Could not read settings: {e}") from e
        return TrackingSettings.from_dict(result.get(SETTINGS_KEY))

    async def update_settings(
        self,
        enable_tracking: Optional[bool] = None,
        include_titles: Optional[bool] = None,
        enable_ml: Optional[bool] = None,
    ) -> TrackingSettings:
        """Change the given flags and store the whole settings value."""
        settings = await self.read_settings()
        if enable_tracking is not None:
            settings.enable_tracking = enable_tracking
        if include_titles is not None:
            settings.include_titles = include_titles
        if enable_ml is not None:
            settings.enable_ml = enable_ml

        await self.store.set({SETTINGS_KEY: settings.to_dict()})
        return settings

    # Events

    @staticmethod
    def _parse_event(payload: Dict[str, Any]) -> EngagementEvent:
        try:
            return EngagementEvent.from_dict(payload)
        except ValueError as e:
            raise InvalidEventError(str(e)) from e

    async def handle_engagement(self, payload: Dict[str, Any]) -> EngagementResponse:
        """
        Record one engagement event.

        Steps:
        1. Read settings; tracking off -> disabled response
        2. Drop the title unless titles are allowed
        3. Validate the event
        4. Infer topic/embedding when ML is on (best effort)
        5. Fold into today's aggregate
        """
        try:
            settings = await self.read_settings()
        except PersistenceError as e:
            logger.error("%s", e)
            return EngagementResponse(success=False, error="settings_unavailable")

        if not settings.enable_tracking:
            logger.debug("Tracking disabled; engagement event ignored")
            return EngagementResponse(success=False, disabled=True)

        payload = dict(payload or {})
        if not settings.include_titles:
            payload.pop('title', None)

        try:
            event = self._parse_event(payload)
        except InvalidEventError as e:
            logger.warning("Rejected engagement event: %s", e)
            return EngagementResponse(success=False, error="invalid_event")

        inference = await self.pipeline.infer(event.title, enabled=settings.enable_ml)

        enriched = EnrichedEvent(
            domain=event.domain,
            content_type=event.content_type.value,
            delta_ms=event.delta_ms,
            captured_at=event.captured_at,
            topic=inference.topic,
            embedding=inference.embedding,
            embedding_hash=inference.embedding_hash,
        )

        try:
            await self.aggregator.record(self.aggregator.current_day(), enriched)
        except PersistenceError as e:
            logger.error("%s", e)
            return EngagementResponse(
                success=False,
                topic=inference.topic,
                embedding_hash=inference.embedding_hash,
                error="persistence_failed",
            )

        return EngagementResponse(
            success=True,
            topic=inference.topic,
            embedding_hash=inference.embedding_hash,
        )

    async def today_summary(self) -> DailyAggregate:
        """Today's aggregate; an unreadable store yields an empty one."""
        day = self.aggregator.current_day()
        try:
            return await self.aggregator.summary(day)
        except PersistenceError as e:
            logger.error("%s", e)
            return DailyAggregate(day=day)

    async def handle(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Dispatch a typed message and return its JSON-ready response."""
        message_type = (message or {}).get('type')
        try:
            if message_type == 'engagement_time':
                response = await self.handle_engagement(message)
                return response.to_dict()
            if message_type == 'get_today_summary':
                summary = await self.today_summary()
                return summary.to_dict()
        except Exception:
            logger.exception("Unhandled error for %s message", message_type)
            return EngagementResponse(success=False, error="internal_error").to_dict()

        return EngagementResponse(success=False, error="unknown_message_type").to_dict()

    # Administration

    async def train(self) -> TrainingReport:
        """Train on the built-in corpus and switch the pipeline to the new model."""
        classifier, report = await train_default_classifier(self.store)
        self.state.classifiers.install(classifier)
        return report

    async def model_status(self) -> ModelStatus:
        return await model_status(self.store)

    async def export(self) -> Dict[str, Any]:
        """Every stored key/value pair."""
        await self.state.cache.flush()
        return await self.store.get_all()

    async def clear(self) -> None:
        """Delete all stored data and forget in-memory state."""
        await self.store.clear()
        self.state.reset()
        logger.info("All stored data cleared")
