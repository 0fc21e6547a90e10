"""Command resolver: maps a lexed command line onto a registered action.

``stratus <context> <action> [params...] [--option value]``
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from loguru import logger
from rich.console import Console

from cli.argv import RawArgs, parse_argv
from cli.help import render_action_help, render_context_help, render_main_help
from cli.utils.console import get_console
from core.errors import NoProjectContextError, UnknownActionError, UnknownContextError
from core.pipeline import ActionConfig, Event

if TYPE_CHECKING:
    from core.framework import Framework

VERSION_TOKENS = ("version", "v")
HELP_TOKENS = ("help", "h")


@dataclass
class CliInvocation:
    """A resolved command line, kept on the framework while its action runs."""

    raw: RawArgs
    context: Optional[str] = None
    action: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)


def bind_options(config: ActionConfig, flags: Dict[str, Any]) -> Dict[str, Any]:
    """Long flag, else shortcut, else None, for every declared option."""
    options = {}
    for spec in config.options:
        if spec.option in flags:
            options[spec.option] = flags[spec.option]
        elif spec.shortcut and spec.shortcut in flags:
            options[spec.option] = flags[spec.shortcut]
        else:
            options[spec.option] = None
    return options


def bind_params(config: ActionConfig, tokens: Sequence[str]) -> Dict[str, Any]:
    """Bind positional tokens to parameters in declaration order.

    A single position takes one token; a ``start->end`` range takes the slice
    ``[start:end]`` (to the end when ``end`` is omitted). Each parameter
    consumes its tokens, so later positions index what is left.
    """
    remaining: List[str] = list(tokens)
    params: Dict[str, Any] = {}
    for spec in config.parameters:
        start, end = spec.bounds()
        if not spec.is_range:
            params[spec.parameter] = remaining.pop(start) if start < len(remaining) else None
            continue
        stop = len(remaining) if end is None else end
        params[spec.parameter] = remaining[start:stop]
        del remaining[start:stop]
    return params


class CommandResolver:
    """Resolves a command line against the framework's command table and runs it."""

    def __init__(self, framework: "Framework", console: Optional[Console] = None):
        self.framework = framework
        self.console = console or get_console()

    async def resolve(self, raw: Union[RawArgs, Sequence[str]]) -> Optional[Event]:
        """Show help or the version, or run the bound action.

        Returns:
            The action's final Event, or None when help or the version was shown

        Raises:
            UnknownContextError: If the context is not registered
            UnknownActionError: If the context has no such action
            NoProjectContextError: If the action needs a project and there is none
        """
        if not isinstance(raw, RawArgs):
            raw = parse_argv(raw)
        logger.debug(f"CLI raw input: {raw}")

        positionals = raw.positionals
        invocation = CliInvocation(
            raw=raw,
            context=positionals[0] if positionals else None,
            action=positionals[1] if len(positionals) > 1 else None,
        )
        self.framework.cli = invocation

        if (positionals and positionals[0] in VERSION_TOKENS) or raw.flag("version", "v") is True:
            self.console.print(self.framework.version)
            return None

        if self._wants_help(raw):
            self._render_help(raw)
            return None

        commands = self.framework.commands
        if not commands.has_context(invocation.context):
            raise UnknownContextError(invocation.context, available=commands.contexts())

        config = commands.get(invocation.context, invocation.action)
        if config is None:
            raise UnknownActionError(invocation.action, context=invocation.context)

        if config.requires_project and not self.framework.has_project():
            raise NoProjectContextError(config.command)

        invocation.options = bind_options(config, raw.flags)
        invocation.params = bind_params(config, positionals[2:])
        logger.debug(f"CLI processed input: {invocation}")

        return await self.framework.actions[config.handler]({})

    @staticmethod
    def _wants_help(raw: RawArgs) -> bool:
        positionals = raw.positionals
        return (
            not positionals
            or positionals[0] in HELP_TOKENS
            or (len(positionals) > 1 and positionals[1] in HELP_TOKENS)
            or raw.flag("help", "h") is not None
        )

    def _render_help(self, raw: RawArgs) -> None:
        tokens = [token for token in raw.positionals if token not in HELP_TOKENS]
        context = tokens[0] if tokens else None
        action = tokens[1] if len(tokens) > 1 else None
        commands = self.framework.commands

        if not commands.has_context(context):
            render_main_help(commands, self.framework.version, self.console)
        elif commands.get(context, action) is None:
            render_context_help(context, commands, self.console)
        else:
            render_action_help(commands.get(context, action), self.console)
