"""Rich console shared by the resolver, the help views and the built-in actions."""

import os
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Global console instance
_console: Optional[Console] = None


def get_console() -> Console:
    """Get or create the global console (silenced by ``STRATUS_QUIET=1``)."""
    global _console
    if _console is None:
        _console = Console(quiet=os.environ.get("STRATUS_QUIET", "0") == "1")
    return _console


def set_console(console: Optional[Console]) -> None:
    """Replace the global console (None resets it)."""
    global _console
    _console = console


def _status_panel(message: str, title: str, color: str) -> None:
    get_console().print(
        Panel(
            f"[bold {color}]{message}[/bold {color}]",
            title=f"[bold {color}]{title}[/bold {color}]",
            border_style=color,
        )
    )


def print_success(message: str, title: str = "Success") -> None:
    """Report a finished action."""
    _status_panel(message, title, "green")


def print_info(message: str, title: str = "Info") -> None:
    _status_panel(message, title, "blue")


def create_table(title: str, columns: List[str]) -> Table:
    """Table with the stratus header style."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    for column in columns:
        table.add_column(column)
    return table
