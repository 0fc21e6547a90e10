"""Action, hook and command registries.

All three are written while plugins load (a single, strictly ordered phase
that precedes any command) and only read afterwards.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.errors import DuplicateRegistrationError, UnknownActionError
from core.pipeline.event import Event

Handler = Callable[[Event], Union[Awaitable[Optional[Event]], Optional[Event]]]
EventLike = Union[Event, Dict[str, Any], None]


class HookPhase(str, Enum):
    """Hook slots around an action."""

    PRE = "Pre"
    POST = "Post"

    @classmethod
    def parse(cls, value: Union["HookPhase", str]) -> "HookPhase":
        if isinstance(value, HookPhase):
            return value
        return cls(value.strip().capitalize())


class OptionSpec(BaseModel):
    """A named CLI option bound to ``Event.options``."""

    model_config = ConfigDict(frozen=True)

    option: str
    shortcut: Optional[str] = None
    description: str = ""


class ParameterSpec(BaseModel):
    """A positional CLI parameter.

    ``position`` is either a single index (``"0"``) or a range
    ``"start->end"`` whose end defaults to the rest of the tokens.
    """

    model_config = ConfigDict(frozen=True)

    parameter: str
    position: str
    description: str = ""

    @field_validator("position", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> str:
        return str(v)

    @property
    def is_range(self) -> bool:
        return "->" in self.position

    def bounds(self) -> Tuple[int, Optional[int]]:
        """Return ``(start, end)``; ``end`` is None for open ranges and single slots."""
        if not self.is_range:
            return int(self.position), None
        start, _, end = self.position.partition("->")
        return int(start or 0), (int(end) if end.strip() else None)


class ActionConfig(BaseModel):
    """Immutable description of a registered action."""

    model_config = ConfigDict(frozen=True)

    handler: str
    description: str = ""
    context: Optional[str] = None
    context_action: Optional[str] = None
    options: Tuple[OptionSpec, ...] = Field(default_factory=tuple)
    parameters: Tuple[ParameterSpec, ...] = Field(default_factory=tuple)
    requires_project: bool = True

    @property
    def command(self) -> Optional[str]:
        if self.context and self.context_action:
            return f"{self.context} {self.context_action}"
        return None


class CommandTable:
    """Two-level ``context -> context_action -> ActionConfig`` mapping."""

    def __init__(self):
        self._table: Dict[str, Dict[str, ActionConfig]] = {}

    def add(self, config: ActionConfig) -> None:
        self._table.setdefault(config.context, {})[config.context_action] = config

    def has_context(self, context: Optional[str]) -> bool:
        return context in self._table

    def get(self, context: Optional[str], action: Optional[str]) -> Optional[ActionConfig]:
        return self._table.get(context, {}).get(action)

    def contexts(self) -> List[str]:
        return sorted(self._table)

    def actions(self, context: str) -> Dict[str, ActionConfig]:
        return dict(self._table.get(context, {}))

    def __contains__(self, context: object) -> bool:
        return context in self._table

    def __len__(self) -> int:
        return len(self._table)


class HookRegistry:
    """Ordered hook lists keyed by ``<handler><Pre|Post>``."""

    def __init__(self):
        self._hooks: Dict[str, List[Handler]] = {}

    @staticmethod
    def slot(action_name: str, phase: Union[HookPhase, str]) -> str:
        return f"{action_name}{HookPhase.parse(phase).value}"

    def create_slots(self, action_name: str) -> None:
        """Create empty Pre/Post lists for a freshly registered action."""
        for phase in HookPhase:
            self._hooks.setdefault(self.slot(action_name, phase), [])

    def add_hook(self, action_name: str, phase: Union[HookPhase, str], hook: Handler) -> bool:
        """Append ``hook`` to the slot; returns False if it was already there.

        Raises:
            UnknownActionError: If ``action_name`` has no slots yet
        """
        key = self.slot(action_name, phase)
        if key not in self._hooks:
            raise UnknownActionError(action_name).with_context(hook_slot=key)

        hooks = self._hooks[key]
        if hook in hooks:
            logger.debug(f"Hook {getattr(hook, '__qualname__', hook)!r} already registered on {key}")
            return False
        hooks.append(hook)
        logger.debug(f"Added hook {getattr(hook, '__qualname__', hook)!r} to {key}")
        return True

    def get(self, action_name: str, phase: Union[HookPhase, str]) -> List[Handler]:
        """Return a copy of the hooks in one slot."""
        return list(self._hooks.get(self.slot(action_name, phase), []))


class ActionRegistry:
    """Maps handler names to action functions and their configuration."""

    def __init__(self, hooks: HookRegistry, commands: Optional[CommandTable] = None):
        self.hooks = hooks
        self.commands = commands if commands is not None else CommandTable()
        self._handlers: Dict[str, Handler] = {}
        self._configs: Dict[str, ActionConfig] = {}
        self._runner: Optional[Callable[[List[Handler], EventLike, ActionConfig], Awaitable[Event]]] = None

    def bind_runner(
        self,
        runner: Callable[[List[Handler], EventLike, ActionConfig], Awaitable[Event]],
    ) -> None:
        """Attach the function that executes a built queue (the engine)."""
        self._runner = runner

    def register(self, name: str, config: ActionConfig, handler: Handler) -> None:
        """Register an action.

        Raises:
            DuplicateRegistrationError: If ``name`` is already registered
        """
        if name in self._handlers:
            raise DuplicateRegistrationError(name)

        self._handlers[name] = handler
        self._configs[name] = config
        self.hooks.create_slots(name)
        if config.context and config.context_action:
            self.commands.add(config)
        logger.debug(f"Registered action {name}")

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def names(self) -> List[str]:
        return sorted(self._handlers)

    def config(self, name: str) -> ActionConfig:
        if name not in self._configs:
            raise UnknownActionError(name)
        return self._configs[name]

    def build_queue(self, name: str) -> List[Handler]:
        """Pre hooks, then the action, then post hooks."""
        if name not in self._handlers:
            raise UnknownActionError(name)
        handler = self._handlers[name]
        pre = [hook for hook in self.hooks.get(name, HookPhase.PRE) if hook != handler]
        return pre + [handler] + self.hooks.get(name, HookPhase.POST)

    def resolve(self, name: str) -> Callable[[EventLike], Awaitable[Event]]:
        """Return a closure that runs the full queue for ``name``.

        Raises:
            UnknownActionError: If ``name`` is not registered
        """
        if name not in self._handlers:
            raise UnknownActionError(name)
        config = self._configs[name]

        async def run_action(evt: EventLike = None) -> Event:
            if self._runner is None:
                raise RuntimeError("ActionRegistry has no runner bound")
            return await self._runner(self.build_queue(name), evt, config)

        run_action.__name__ = name
        run_action.__qualname__ = f"actions.{name}"
        return run_action
