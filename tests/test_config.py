# tests/test_config.py
"""Tests for configuration loading, component wiring and logging setup."""

import logging

import pytest
import yaml
from rich.console import Console
from rich.logging import RichHandler

from horizon.core.config import ConfigLoader, DEFAULTS
from horizon.core.logging_config import setup_logging
from horizon.core.registry import ComponentRegistry
from horizon.storage import MemoryKeyValueStore, SQLiteKeyValueStore


class TestConfigLoader:

    def test_partial_file_is_merged_over_defaults(self, tmp_path):
        path = tmp_path / "horizon.yaml"
        path.write_text(yaml.safe_dump({'aggregator': {'max_samples': 10}, 'components': {'embedder': None}}))

        config = ConfigLoader.load(path)

        assert config['aggregator'] == {'max_samples': 10, 'key_prefix': 'day_'}
        assert config['components']['embedder'] is None
        assert config['components']['storage'] == DEFAULTS['components']['storage']
        assert config['cache']['max_entries'] == 20

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert ConfigLoader.load(path) == DEFAULTS

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader.load(tmp_path / "absent.yaml")

    def test_packaged_default_matches_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert ConfigLoader.load() == DEFAULTS

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "nested" / "out.yaml"
        config = ConfigLoader.load(None)
        config['inference']['quantize_digits'] = 4

        ConfigLoader.save(config, path)

        assert ConfigLoader.load(path)['inference']['quantize_digits'] == 4

    def test_defaults_are_not_mutated(self, tmp_path):
        path = tmp_path / "horizon.yaml"
        path.write_text(yaml.safe_dump({'cache': {'max_entries': 3}}))

        ConfigLoader.load(path)

        assert DEFAULTS['cache']['max_entries'] == 20


class TestRegistry:

    def test_create_store_passes_config(self, tmp_path):
        registry = ComponentRegistry()
        config = {'components': {'storage': {
            'class': 'horizon.storage.sqlite_kv.SQLiteKeyValueStore',
            'config': {'database': str(tmp_path / "x.db")},
        }}}

        store = registry.create_store(config)

        assert isinstance(store, SQLiteKeyValueStore)
        assert str(store.database_path) == str(tmp_path / "x.db")
        assert registry.create_store(config) is store

    def test_unknown_class(self):
        with pytest.raises(ImportError):
            ComponentRegistry().load_class('horizon.storage.nowhere.Store')

    def test_wrong_component_type(self):
        config = {'components': {'storage': {'class': 'horizon.core.registry.ComponentRegistry'}}}

        with pytest.raises(TypeError):
            ComponentRegistry().create_store(config)

    def test_registered_class_skips_import(self):
        registry = ComponentRegistry()
        registry.register_class('custom.Store', MemoryKeyValueStore)

        config = {'components': {'storage': {'class': 'custom.Store'}}}

        assert isinstance(registry.create_store(config), MemoryKeyValueStore)

    def test_clear_instances(self):
        registry = ComponentRegistry()
        config = {'components': {'storage': {'class': 'horizon.storage.memory_kv.MemoryKeyValueStore'}}}
        first = registry.create_store(config)

        registry.clear_instances()

        assert registry.get_instance('storage') is None
        assert registry.create_store(config) is not first


class TestLogging:

    def test_single_rich_handler(self):
        console = Console(file=None, record=True)

        setup_logging("DEBUG", console)
        logger = setup_logging("WARNING", console)

        rich_handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
        assert len(rich_handlers) == 1
        assert logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logging("chatty")

        assert logger.level == logging.INFO
