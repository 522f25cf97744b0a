# horizon/core/registry.py
"""Component registry for swappable stores and embedders."""

from typing import Dict, Type, Any, Optional
import importlib
import inspect

from ..contracts.embedder import ITextEmbedder
from ..contracts.storage import IKeyValueStore


class ComponentRegistry:
    """
    Builds components named in configuration by their dotted class path.

    Example: 'horizon.storage.sqlite_kv.SQLiteKeyValueStore'

    Instances are cached by name, so every caller sharing a registry shares
    one store and one embedder.
    """

    def __init__(self):
        self._instances: Dict[str, Any] = {}
        self._classes: Dict[str, Type] = {}

    def register_class(self, class_path: str, cls: Type) -> None:
        """Register a class under a path without importing it."""
        self._classes[class_path] = cls

    def load_class(self, class_path: str) -> Type:
        """
        Load a class from its full Python path.

        Raises:
            ImportError: If module/class cannot be loaded
        """
        if class_path in self._classes:
            return self._classes[class_path]

        try:
            module_path, class_name = class_path.rsplit('.', 1)
            module = importlib.import_module(module_path)
            cls = getattr(module, class_name)
        except (ValueError, ImportError, AttributeError) as e:
            raise ImportError(f"Cannot load class '{class_path}': {e}")

        self._classes[class_path] = cls
        return cls

    def create_instance(
        self,
        name: str,
        class_path: str,
        config: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Create and cache a component instance."""
        if name in self._instances:
            return self._instances[name]

        cls = self.load_class(class_path)
        config = config or {}

        sig = inspect.signature(cls.__init__)
        if 'config' in sig.parameters:
            instance = cls(config=config)
        elif len(sig.parameters) > 1:
            instance = cls(**config)
        else:
            instance = cls()

        self._instances[name] = instance
        return instance

    def create_store(self, config: Dict[str, Any]) -> IKeyValueStore:
        """Build the configured durable store."""
        component = config['components']['storage']
        store = self.create_instance('storage', component['class'], component.get('config', {}))
        if not isinstance(store, IKeyValueStore):
            raise TypeError(f"{component['class']} is not a key-value store")
        return store

    def create_embedder(self, config: Dict[str, Any]) -> ITextEmbedder:
        """Build the configured text embedder (the model itself loads lazily)."""
        component = config['components']['embedder']
        embedder = self.create_instance('embedder', component['class'], component.get('config', {}))
        if not isinstance(embedder, ITextEmbedder):
            raise TypeError(f"{component['class']} is not a text embedder")
        return embedder

    def get_instance(self, name: str) -> Optional[Any]:
        """Get cached instance by name, or None."""
        return self._instances.get(name)

    def clear_instances(self) -> None:
        """Clear all cached instances."""
        self._instances.clear()
