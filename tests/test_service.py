# tests/test_service.py
"""Tests for settings gating, event handling and admin operations."""

import asyncio
import hashlib

import pytest

from horizon.core.service import EngagementService, SETTINGS_KEY
from horizon.core.embedding_cache import SNAPSHOT_KEY
from horizon.classifiers.naive_bayes import MODEL_KEY
from horizon.models.engagement import TrackingSettings

from conftest import FIXED_DAY, HashEmbedder, build_service, enable


DAY_KEY = f"day_{FIXED_DAY.isoformat()}"
TITLE = "Senator proposes new legislation"


def engagement(title=TITLE, **overrides):
    payload = {
        'type': 'engagement_time',
        'domain': 'example.com',
        'deltaMs': 5000,
        'contentType': 'article',
        'capturedAt': 1_741_950_000_000,
        'title': title,
    }
    payload.update(overrides)
    return payload


async def stored_day(store):
    return (await store.get([DAY_KEY])).get(DAY_KEY)


class TestSettings:

    async def test_defaults_are_all_off(self, store):
        service = build_service(store)

        assert await service.read_settings() == TrackingSettings()

    async def test_update_changes_only_given_flags(self, store):
        service = build_service(store)

        await service.update_settings(enable_tracking=True)
        settings = await service.update_settings(enable_ml=True)

        assert settings == TrackingSettings(enable_tracking=True, include_titles=False, enable_ml=True)
        assert (await store.get([SETTINGS_KEY]))[SETTINGS_KEY] == {
            'enableTracking': True,
            'includeTitles': False,
            'enableML': True,
        }

    async def test_truthy_non_bool_is_off(self, store):
        await store.set({SETTINGS_KEY: {'enableTracking': "yes", 'enableML': 1}})

        settings = await build_service(store).read_settings()

        assert not settings.enable_tracking
        assert not settings.enable_ml


class TestEngagement:

    async def test_tracking_disabled_writes_nothing(self, trained_store, embedder):
        service = build_service(trained_store, embedder)

        response = await service.handle_engagement(engagement())

        assert response.to_dict() == {'success': False, 'disabled': True}
        assert await stored_day(trained_store) is None
        assert embedder.embed_calls == []

    async def test_example_com_five_seconds(self, store):
        await enable(store, titles=False, ml=False)
        service = build_service(store)

        response = await service.handle_engagement(engagement(title=None))

        assert response.to_dict() == {'success': True}
        record = await stored_day(store)
        assert record['byDomain'] == {'example.com': 5000}
        assert record['byContentType'] == {'article': 5000}
        assert record['totalMs'] == 5000

    async def test_full_enrichment(self, trained_store, embedder):
        await enable(trained_store)
        service = build_service(trained_store, embedder)

        response = await service.handle_engagement(engagement())

        expected_hash = hashlib.sha256(TITLE.encode()).hexdigest()
        assert response.to_dict() == {'success': True, 'topic': 'politics', 'embeddingHash': expected_hash}
        record = await stored_day(trained_store)
        assert record['byTopic'] == {'politics': 5000}
        assert record['byTopicCounts'] == {'politics': 1}
        assert len(record['embeddingSamples']) == 1
        assert record['embeddingSamples'][0]['hash'] == expected_hash
        assert record['embeddingSamples'][0]['capturedAt'] == 1_741_950_000_000

    async def test_titles_disallowed_means_no_inference(self, trained_store, embedder):
        await enable(trained_store, titles=False)
        service = build_service(trained_store, embedder)

        response = await service.handle_engagement(engagement())

        assert response.to_dict() == {'success': True}
        assert embedder.embed_calls == []
        assert (await stored_day(trained_store))['byTopic'] == {}

    async def test_ml_disabled_still_records_time(self, trained_store, embedder):
        await enable(trained_store, ml=False)
        service = build_service(trained_store, embedder)

        response = await service.handle_engagement(engagement())

        assert response.topic is None
        assert (await stored_day(trained_store))['totalMs'] == 5000

    async def test_settings_apply_to_next_event(self, store):
        service = build_service(store)
        assert (await service.handle_engagement(engagement())).disabled

        await service.update_settings(enable_tracking=True)

        assert (await service.handle_engagement(engagement())).success

    async def test_embedder_failure_still_records_topic(self, trained_store):
        await enable(trained_store)
        service = build_service(trained_store, HashEmbedder(fail_embed=True))

        response = await service.handle_engagement(engagement())

        assert response.to_dict() == {'success': True, 'topic': 'politics'}
        record = await stored_day(trained_store)
        assert record['byTopic'] == {'politics': 5000}
        assert record['embeddingSamples'] == []

    async def test_missing_model_records_unknown_topic(self, store, embedder):
        await enable(store)
        service = build_service(store, embedder)

        response = await service.handle_engagement(engagement())

        assert response.topic == "unknown"
        assert response.embedding_hash is not None

    @pytest.mark.parametrize("delta", [0, -5, "5000", None, 2.5, True])
    async def test_invalid_delta_is_rejected(self, store, delta):
        await enable(store)
        service = build_service(store)

        response = await service.handle_engagement(engagement(deltaMs=delta))

        assert response.to_dict() == {'success': False, 'error': 'invalid_event'}
        assert await stored_day(store) is None

    async def test_unknown_content_type_and_domain(self, store):
        await enable(store, titles=False)
        service = build_service(store)

        await service.handle_engagement(engagement(domain=None, contentType="hologram"))

        record = await stored_day(store)
        assert record['byDomain'] == {'unknown': 5000}
        assert record['byContentType'] == {'unknown': 5000}

    async def test_persistence_failure_reports_inference(self, flaky_store, embedder):
        await train_and_enable(flaky_store)
        service = build_service(flaky_store, embedder)
        await service.state.cache.load_once()
        flaky_store.fail_set = True

        response = await service.handle_engagement(engagement())

        assert response.success is False
        assert response.error == "persistence_failed"
        assert response.topic == "politics"

    async def test_unreadable_cache_snapshot_still_records(self, trained_store, embedder):
        await enable(trained_store)
        await trained_store.set({SNAPSHOT_KEY: [{'hash': 'a' * 64, 'embedding': [None]}]})
        service = build_service(trained_store, embedder)

        response = await service.handle_engagement(engagement())

        assert response.success is True
        assert response.topic == "politics"
        assert response.embedding_hash is not None
        assert (await stored_day(trained_store))['totalMs'] == 5000

    async def test_title_with_lone_surrogate_still_records(self, trained_store, embedder):
        await enable(trained_store)
        service = build_service(trained_store, embedder)

        response = await service.handle_engagement(engagement(title="Senate debates new bill \ud83d"))

        assert response.success is True
        assert response.topic in ("politics", "sports", "tech", "entertainment")
        assert (await stored_day(trained_store))['totalMs'] == 5000

    async def test_corrupt_day_record_is_persistence_failure(self, store):
        await enable(store, titles=False)
        corrupt = {'day': FIXED_DAY.isoformat(), 'byDomain': {}, 'totalMs': "oops"}
        await store.set({DAY_KEY: corrupt})
        service = build_service(store)

        response = await service.handle_engagement(engagement())
        summary = await service.handle({'type': 'get_today_summary'})

        assert response.to_dict() == {'success': False, 'error': 'persistence_failed'}
        assert await stored_day(store) == corrupt
        assert summary['totalMs'] == 0

    async def test_settings_read_failure(self, flaky_store):
        flaky_store.fail_get = True
        service = build_service(flaky_store)

        response = await service.handle_engagement(engagement())

        assert response.to_dict() == {'success': False, 'error': 'settings_unavailable'}

    async def test_concurrent_events_are_all_counted(self, trained_store):
        await enable(trained_store)
        service = build_service(trained_store, HashEmbedder(delay=0.001))

        responses = await asyncio.gather(*(
            service.handle_engagement(engagement(title=f"Basketball championship game {i}", deltaMs=100))
            for i in range(12)
        ))

        assert all(r.success for r in responses)
        record = await stored_day(trained_store)
        assert record['totalMs'] == 1200
        assert sum(record['byTopicCounts'].values()) == 12
        assert len(record['embeddingSamples']) == 12

    async def test_sample_cap_applies_through_service(self, trained_store, embedder):
        await enable(trained_store)
        service = build_service(trained_store, embedder, max_samples=3)

        for i in range(5):
            await service.handle_engagement(engagement(title=f"Software update number {i}"))

        record = await stored_day(trained_store)
        assert len(record['embeddingSamples']) == 3


async def train_and_enable(store):
    from horizon.classifiers.training import train_default_classifier

    await train_default_classifier(store)
    await enable(store)


class TestMessages:

    async def test_summary_message(self, store):
        await enable(store, titles=False)
        service = build_service(store)
        await service.handle(engagement())

        summary = await service.handle({'type': 'get_today_summary'})

        assert summary['day'] == FIXED_DAY.isoformat()
        assert summary['totalMs'] == 5000
        assert summary['byTopic'] == {}

    async def test_summary_of_empty_day_is_complete(self, store):
        summary = await build_service(store).handle({'type': 'get_today_summary'})

        assert summary == {
            'day': FIXED_DAY.isoformat(),
            'byDomain': {},
            'byContentType': {},
            'byTopic': {},
            'byTopicCounts': {},
            'totalMs': 0,
            'embeddingSamples': [],
        }

    async def test_summary_survives_read_failure(self, flaky_store):
        flaky_store.fail_get = True

        summary = await build_service(flaky_store).handle({'type': 'get_today_summary'})

        assert summary['totalMs'] == 0

    async def test_unknown_message_type(self, store):
        response = await build_service(store).handle({'type': 'teleport'})

        assert response == {'success': False, 'error': 'unknown_message_type'}

    async def test_internal_error(self, store, monkeypatch):
        service = build_service(store)

        async def explode(payload):
            raise RuntimeError("boom")

        monkeypatch.setattr(service, "handle_engagement", explode)

        response = await service.handle(engagement())

        assert response == {'success': False, 'error': 'internal_error'}


class TestAdministration:

    async def test_train_installs_new_model(self, store, embedder):
        await enable(store)
        service = build_service(store, embedder)
        assert (await service.handle_engagement(engagement())).topic == "unknown"

        report = await service.train()

        assert report.accuracy == 1.0
        assert (await service.model_status()).is_ready
        assert (await service.handle_engagement(engagement())).topic == "politics"

    async def test_export_contains_everything(self, trained_store, embedder):
        await enable(trained_store)
        service = build_service(trained_store, embedder)
        await service.handle_engagement(engagement())

        data = await service.export()

        assert {SETTINGS_KEY, MODEL_KEY, SNAPSHOT_KEY, DAY_KEY} <= set(data)

    async def test_clear_removes_everything(self, trained_store, embedder):
        await enable(trained_store)
        service = build_service(trained_store, embedder)
        await service.handle_engagement(engagement())

        await service.clear()

        assert await trained_store.get_all() == {}
        assert len(service.state.cache) == 0
        assert not service.state.classifiers.loaded
        assert (await service.handle_engagement(engagement())).disabled

    async def test_start_and_close(self, trained_store, embedder):
        service = build_service(trained_store, embedder)

        await service.start()
        assert service.state.classifiers.loaded
        assert service.state.cache.is_loaded

        await service.close()


class TestFromConfig:

    def test_memory_store_without_embedder(self):
        config = {
            'components': {
                'storage': {'class': 'horizon.storage.memory_kv.MemoryKeyValueStore'},
                'embedder': None,
            },
            'aggregator': {'max_samples': 7},
            'cache': {'max_entries': 4},
        }

        service = EngagementService.from_config(config)

        assert service.pipeline.embedder is None
        assert service.aggregator.max_samples == 7
        assert service.state.cache.max_entries == 4

    def test_custom_embedder_class(self):
        config = {
            'components': {
                'storage': {'class': 'horizon.storage.memory_kv.MemoryKeyValueStore'},
                'embedder': {'class': 'conftest.HashEmbedder'},
            },
        }

        service = EngagementService.from_config(config)

        assert isinstance(service.pipeline.embedder, HashEmbedder)
