"""Registry of named plugin factories and loaded plugins."""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from loguru import logger

from .base import Plugin, PluginFactory


@dataclass
class LoadedPlugin:
    """A plugin that finished both registration calls."""

    descriptor: str
    name: str
    instance: Plugin


class PluginRegistry:
    """Named factories resolved during initialization, plus what got loaded.

    Module-style plugin descriptors are looked up here first, so plugins can
    be provided programmatically without touching the filesystem.
    """

    def __init__(self):
        self._factories: Dict[str, PluginFactory] = {}
        self._loaded: Dict[str, LoadedPlugin] = {}

    def register_factory(self, name: str, factory: PluginFactory, override: bool = False) -> None:
        """Register a factory under a module-style name."""
        if name in self._factories and not override:
            raise ValueError(f"Plugin factory '{name}' already registered. Use override=True to replace.")
        self._factories[name] = factory
        logger.debug(f"Registered plugin factory: {name}")

    def factory(self, name: str) -> Callable[[PluginFactory], PluginFactory]:
        """Decorator form of ``register_factory``."""
        def decorator(func: PluginFactory) -> PluginFactory:
            self.register_factory(name, func)
            return func
        return decorator

    def get_factory(self, name: str) -> Optional[PluginFactory]:
        return self._factories.get(name)

    def mark_loaded(self, descriptor: str, instance: Plugin) -> LoadedPlugin:
        entry = LoadedPlugin(descriptor=descriptor, name=instance.get_name(), instance=instance)
        self._loaded[entry.name] = entry
        return entry

    def is_loaded(self, name: str) -> bool:
        return name in self._loaded

    def get(self, name: str) -> Optional[Plugin]:
        entry = self._loaded.get(name)
        return entry.instance if entry else None

    def loaded(self) -> List[LoadedPlugin]:
        """Loaded plugins in load order."""
        return list(self._loaded.values())

    def __len__(self) -> int:
        return len(self._loaded)
