"""Help views: all commands, one context, one action."""

from rich.console import Console

from cli.utils.console import create_table
from core.pipeline import ActionConfig, CommandTable


def render_main_help(commands: CommandTable, version: str, console: Console) -> None:
    console.print(f"[bold cyan]stratus[/bold cyan] version [green]{version}[/green]")
    console.print("Usage: stratus <context> <action> [params...] [--option value]\n")

    table = create_table("Commands", ["Context", "Action", "Description"])
    for context in commands.contexts():
        for name, config in sorted(commands.actions(context).items()):
            table.add_row(context, name, _summary(config))
    console.print(table)
    console.print('\nEnter "stratus <context> help" for the actions of a context.')


def render_context_help(context: str, commands: CommandTable, console: Console) -> None:
    table = create_table(f"Actions for '{context}'", ["Action", "Description"])
    for name, config in sorted(commands.actions(context).items()):
        table.add_row(name, _summary(config))
    console.print(table)
    console.print(f'\nEnter "stratus {context} <action> --help" for the options of an action.')


def render_action_help(config: ActionConfig, console: Console) -> None:
    """Print an action's description, options and parameters."""
    console.print(f"[bold]stratus {config.command}[/bold]")
    if config.description:
        console.print(config.description)

    if config.options:
        table = create_table("Options", ["Option", "Shortcut", "Description"])
        for spec in config.options:
            table.add_row(f"--{spec.option}", f"-{spec.shortcut}" if spec.shortcut else "", spec.description)
        console.print(table)

    if config.parameters:
        table = create_table("Parameters", ["Parameter", "Position", "Description"])
        for spec in config.parameters:
            table.add_row(spec.parameter, spec.position, spec.description)
        console.print(table)


def _summary(config: ActionConfig) -> str:
    return config.description.splitlines()[0] if config.description else ""
