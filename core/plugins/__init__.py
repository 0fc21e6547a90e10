"""Plugin system for stratus.

Plugins are resolved from descriptors, instantiated with the framework and
asked to register their actions and hooks.
"""

from .base import Plugin, PluginFactory
from .loader import PluginLoader
from .registry import LoadedPlugin, PluginRegistry

__all__ = [
    "Plugin",
    "PluginFactory",
    "PluginLoader",
    "LoadedPlugin",
    "PluginRegistry",
]
