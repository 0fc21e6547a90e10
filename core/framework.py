"""The framework instance plugins and commands run against.

``Framework`` owns the registries, the execution engine, the providers and
the loaded project. Plugins receive it on construction and use it to add
actions and hooks; actions use it to reach the project, the provider and
other actions (``framework.actions.codeDeployLambda(evt)``).
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union

import yaml
from loguru import logger

from cli._version import __version__
from core.config import ConfigurationLoader, Project, StratusSettings
from core.errors import ConfigurationError
from core.pipeline import (
    ActionConfig,
    ActionRegistry,
    CommandTable,
    Event,
    ExecutionEngine,
    Handler,
    HookPhase,
    HookRegistry,
)
from core.plugins import Plugin, PluginLoader, PluginRegistry
from infrastructure.providers import AwsProvider

if TYPE_CHECKING:
    from cli.resolver import CliInvocation, RawArgs

DEFAULT_ACTIONS_FILE = "actions.yaml"


class ActionProxy:
    """Attribute and item access to registered actions.

    ``framework.actions.functionDeploy`` and
    ``framework.actions["functionDeploy"]`` both return the awaitable closure
    that runs the action's full queue.
    """

    def __init__(self, registry: ActionRegistry):
        self._registry = registry

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        return self._registry.resolve(name)

    def __getitem__(self, name: str):
        return self._registry.resolve(name)

    def __contains__(self, name: object) -> bool:
        return name in self._registry

    def __iter__(self) -> Iterator[str]:
        return iter(self._registry.names())


class Framework:
    """Stratus framework instance."""

    def __init__(
        self,
        config: Optional[StratusSettings] = None,
        provider: Optional[Any] = None,
        plugin_registry: Optional[PluginRegistry] = None,
    ):
        """Initialize the framework.

        Args:
            config: Framework settings (loaded from the environment if not provided)
            provider: AWS provider; any object with an async ``request`` works
            plugin_registry: Registry of named plugin factories
        """
        self.version = __version__
        self.config = config or ConfigurationLoader.load_settings()

        self.hooks = HookRegistry()
        self.commands = CommandTable()
        self.registry = ActionRegistry(self.hooks, self.commands)
        self.engine = ExecutionEngine()
        self.registry.bind_runner(self._execute)
        self.actions = ActionProxy(self.registry)

        self.plugins = plugin_registry if plugin_registry is not None else PluginRegistry()
        self.loader = PluginLoader(self, self.plugins)

        self.providers: Dict[str, Any] = {
            "aws": provider or AwsProvider(profile=self.config.aws_profile, profile_resolver=self._stage_profile),
        }
        self.cli: Optional["CliInvocation"] = None
        self._project: Optional[Project] = None

    @property
    def framework_path(self) -> Path:
        return self.config.framework_path

    async def init(self) -> "Framework":
        """Load the project, then framework-default plugins, then project plugins."""
        if self.has_project():
            self._project = ConfigurationLoader.load_project(self.config.project_path)

        actions_dir = self.framework_path / "actions"
        await self.loader.load_plugins(actions_dir, self._default_plugins(actions_dir))

        if self.config.plugins:
            await self.loader.load_plugins(Path.cwd(), self.config.plugins)

        if self._project is not None:
            await self.loader.load_plugins(self._project.root, self._project.get_all_plugins())

        logger.debug(f"Framework initialized with {len(self.plugins)} plugins")
        return self

    def _default_plugins(self, actions_dir: Path) -> List[str]:
        path = actions_dir / DEFAULT_ACTIONS_FILE
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load default plugins from {path}: {e}", config_path=path, cause=e) from e
        return list(data.get("plugins", []))

    def add_action(self, action: Handler, config: Union[ActionConfig, Mapping[str, Any]]) -> ActionConfig:
        """Register an action under ``config.handler``.

        Raises:
            DuplicateRegistrationError: If the handler name is taken
        """
        if not isinstance(config, ActionConfig):
            config = ActionConfig.model_validate(dict(config))
        self.registry.register(config.handler, config, action)
        return config

    def add_hook(self, hook: Handler, action: str, event: Union[HookPhase, str] = HookPhase.PRE) -> bool:
        """Attach ``hook`` before (``pre``) or after (``post``) an action.

        Returns:
            False if the same hook was already attached to that slot

        Raises:
            UnknownActionError: If the action is not registered
        """
        return self.hooks.add_hook(action, event, hook)

    async def add_plugin(self, plugin: Plugin, descriptor: Optional[str] = None) -> None:
        """Register an already constructed plugin."""
        await self.loader.register(plugin, descriptor or plugin.get_name())

    def has_project(self) -> bool:
        return self.config.project_path is not None

    def get_project(self) -> Optional[Project]:
        return self._project

    def set_project(self, project: Optional[Project]) -> None:
        self._project = project
        self.config.project_path = project.root if project is not None else None

    def get_provider(self, name: str = "aws") -> Any:
        return self.providers[name.lower()]

    def has_provider(self, name: str) -> bool:
        return name.lower() in self.providers

    def get_action_config(self, name: str) -> ActionConfig:
        return self.registry.config(name)

    async def command(self, raw: Union["RawArgs", Sequence[str]]) -> Optional[Event]:
        """Resolve and run a CLI command.

        Returns:
            The final Event, or None when only help or the version was shown
        """
        from cli.resolver import CommandResolver

        return await CommandResolver(self).resolve(raw)

    async def _execute(self, queue: List[Handler], evt: Any, config: ActionConfig) -> Event:
        return await self.engine.run(queue, evt, config, cli=self.cli)

    def _stage_profile(self, stage: Optional[str], region: Optional[str]) -> Optional[str]:
        if self._project is None or not stage:
            return None
        return self._project.get_variables(stage, region).get("profile")

    def __repr__(self) -> str:
        return f"Framework(version={self.version!r}, project={self._project!r})"
