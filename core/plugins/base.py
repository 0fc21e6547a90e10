"""Base contract for stratus plugins.

A plugin module exposes a factory::

    def create_plugin(Plugin, framework_path):
        class EnvList(Plugin):
            async def register_actions(self):
                self.framework.add_action(self.env_list, {...})

        return EnvList

The loader calls the factory with this base class and the framework's
installation directory, instantiates the returned class with the framework
and awaits ``register_actions()`` then ``register_hooks()``.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Type

if TYPE_CHECKING:
    from core.framework import Framework


class Plugin:
    """Base class every plugin derives from."""

    NAMESPACE = "stratus.plugin"

    def __init__(self, framework: "Framework", config: Optional[Dict[str, Any]] = None):
        self.framework = framework
        self.config = config or {}

    @classmethod
    def get_name(cls) -> str:
        """Return the plugin's ``namespace.ClassName`` identifier."""
        return f"{cls.NAMESPACE}.{cls.__name__}"

    async def register_actions(self) -> None:
        """Register this plugin's actions with the framework."""

    async def register_hooks(self) -> None:
        """Register this plugin's hooks with the framework."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.get_name()})"


PluginFactory = Callable[[Type[Plugin], Path], Type[Plugin]]
