# horizon/core/config.py
"""Configuration loader."""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional


DEFAULTS: Dict[str, Any] = {
    'components': {
        'storage': {
            'class': 'horizon.storage.sqlite_kv.SQLiteKeyValueStore',
            'config': {'database': 'data/horizon.db'},
        },
        'embedder': {
            'class': 'horizon.embedders.sentence_transformer.SentenceTransformerEmbedder',
            'config': {'model': 'sentence-transformers/all-MiniLM-L6-v2'},
        },
    },
    'cache': {
        'max_entries': 20,
        'flush_on_write': True,
    },
    'inference': {
        'min_text_length': 5,
        'quantize_digits': 6,
        'pooling': 'mean',
        'normalize': True,
        'fallback_topic': 'unknown',
    },
    'aggregator': {
        'max_samples': 50,
        'key_prefix': 'day_',
    },
    'channel': {
        'request_timeout_s': 30.0,
    },
    'logging': {
        'level': 'INFO',
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlay override onto a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigLoader:
    """Loads configuration from YAML files and fills in defaults."""

    @staticmethod
    def load(config_path: Optional[Path] = None) -> Dict[str, Any]:
        """
        Load configuration from file.

        Args:
            config_path: Path to config file. If None, loads default.yaml

        Returns:
            Configuration dictionary with every default key present
        """
        if config_path is None:
            possible_paths = [
                Path("config/default.yaml"),
                Path(__file__).parent.parent / "config" / "default.yaml",
            ]

            for path in possible_paths:
                if path.exists():
                    config_path = path
                    break

            if config_path is None:
                return copy.deepcopy(DEFAULTS)

        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        return _merge(DEFAULTS, config)

    @staticmethod
    def save(config: Dict[str, Any], config_path: Path):
        """Save configuration to file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False, indent=2)
