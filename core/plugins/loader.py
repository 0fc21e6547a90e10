"""Plugin loader for resolving and registering stratus plugins.

This module handles:
- Path-qualified descriptors resolved relative to a base directory
- Module-style descriptors resolved from the named factory registry, the
  base directory's ``plugins/`` dependency directory, then entry points
- Strictly ordered instantiation and registration
"""

import hashlib
import importlib.metadata
import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Union

from loguru import logger

from core.errors import PluginResolutionError

from .base import Plugin, PluginFactory
from .registry import LoadedPlugin, PluginRegistry

if TYPE_CHECKING:
    from core.framework import Framework


class PluginLoader:
    """Resolves plugin descriptors and registers the resulting plugins."""

    # Entry point group for stratus plugins
    ENTRY_POINT_GROUP = "stratus.plugins"

    # Directory under a base dir holding installed plugin packages
    DEPENDENCY_DIR = "plugins"

    # Attribute a plugin module exposes
    FACTORY_ATTR = "create_plugin"

    def __init__(self, framework: "Framework", registry: Optional[PluginRegistry] = None):
        """Initialize plugin loader.

        Args:
            framework: Framework instance handed to every plugin
            registry: Factory/loaded-plugin registry (creates one if not provided)
        """
        self.framework = framework
        self.registry = registry if registry is not None else PluginRegistry()
        self._modules: Dict[Path, ModuleType] = {}

    @staticmethod
    def is_path_descriptor(descriptor: str) -> bool:
        """Whether ``descriptor`` names a file rather than a module."""
        return (
            descriptor.startswith(".")
            or "/" in descriptor
            or "\\" in descriptor
            or descriptor.endswith(".py")
        )

    async def load_plugins(
        self,
        base_dir: Union[str, Path],
        descriptors: Sequence[str],
    ) -> List[LoadedPlugin]:
        """Load every descriptor in order.

        Each plugin finishes ``register_actions()`` and ``register_hooks()``
        before the next descriptor is resolved.

        Args:
            base_dir: Directory path descriptors are relative to
            descriptors: Plugin descriptors, in load order

        Returns:
            Plugins loaded by this call

        Raises:
            PluginResolutionError: If a path-qualified descriptor does not resolve
        """
        base_dir = Path(base_dir)
        loaded = []

        for descriptor in descriptors or []:
            if self.is_path_descriptor(descriptor):
                factory = self.resolve_path(base_dir, descriptor)
            else:
                factory = self.resolve_module(base_dir, descriptor)
                if factory is None:
                    logger.debug(f"Plugin {descriptor} not found under {base_dir}, skipping")
                    continue

            plugin_class = factory(Plugin, self.framework.framework_path)
            name = plugin_class.get_name()
            if self.registry.is_loaded(name):
                logger.debug(f"Plugin {name} already loaded, skipping {descriptor}")
                continue

            loaded.append(await self.register(plugin_class(self.framework), descriptor))

        return loaded

    async def register(self, plugin: Plugin, descriptor: str) -> LoadedPlugin:
        """Run a plugin's registration calls, actions first, then hooks."""
        await plugin.register_actions()
        await plugin.register_hooks()
        logger.debug(f"Loaded plugin {plugin.get_name()} from {descriptor}")
        return self.registry.mark_loaded(descriptor, plugin)

    def resolve_path(self, base_dir: Path, descriptor: str) -> PluginFactory:
        """Resolve a path-qualified descriptor to its factory.

        Raises:
            PluginResolutionError: If nothing loadable lives at the path
        """
        path = self._locate(base_dir / descriptor)
        if path is None:
            raise PluginResolutionError(descriptor, plugin_path=base_dir / descriptor, reason="file not found")

        factory = getattr(self._import_file(descriptor, path), self.FACTORY_ATTR, None)
        if factory is None:
            raise PluginResolutionError(
                descriptor,
                plugin_path=path,
                reason=f"module defines no {self.FACTORY_ATTR}()",
            )
        return factory

    def resolve_module(self, base_dir: Path, name: str) -> Optional[PluginFactory]:
        """Resolve a module-style descriptor, or return None if absent."""
        factory = self.registry.get_factory(name)
        if factory is not None:
            return factory

        path = self._locate(base_dir / self.DEPENDENCY_DIR / name)
        if path is not None:
            return getattr(self._import_file(name, path), self.FACTORY_ATTR, None)

        return self._from_entry_points(name)

    def _locate(self, candidate: Path) -> Optional[Path]:
        """Find the file a plugin path refers to."""
        candidate = candidate.resolve()
        if candidate.is_dir():
            init = candidate / "__init__.py"
            return init if init.is_file() else None
        if candidate.is_file():
            return candidate
        with_suffix = candidate.with_name(candidate.name + ".py")
        if with_suffix.is_file():
            return with_suffix
        return None

    def _import_file(self, descriptor: str, path: Path) -> ModuleType:
        if path in self._modules:
            return self._modules[path]

        digest = hashlib.sha1(str(path).encode()).hexdigest()[:10]
        module_name = f"stratus_plugin_{path.parent.name if path.name == '__init__.py' else path.stem}_{digest}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise PluginResolutionError(descriptor, plugin_path=path, reason="not an importable module")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise PluginResolutionError(descriptor, plugin_path=path, reason=str(e), cause=e) from e

        self._modules[path] = module
        return module

    def _from_entry_points(self, name: str) -> Optional[PluginFactory]:
        for entry_point in importlib.metadata.entry_points(group=self.ENTRY_POINT_GROUP):
            if entry_point.name != name:
                continue
            target = entry_point.load()
            if isinstance(target, ModuleType):
                target = getattr(target, self.FACTORY_ATTR, None)
            logger.debug(f"Resolved plugin {name} from entry point {entry_point.value}")
            return target
        return None
