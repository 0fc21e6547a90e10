"""Error reporting for the command line."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.traceback import Traceback

from .base import StratusError, UnexpectedFaultError


class ErrorHandler(ABC):
    """Abstract base class for error handlers."""

    @abstractmethod
    def can_handle(self, error: BaseException) -> bool:
        """Check if this handler can handle the given error."""

    @abstractmethod
    def handle(self, error: BaseException) -> int:
        """Report the error and return the process exit code."""


class TypedErrorHandler(ErrorHandler):
    """Single human-readable panel for the typed taxonomy."""

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console(stderr=True)
        self.verbose = verbose

    def can_handle(self, error: BaseException) -> bool:
        return isinstance(error, StratusError) and not isinstance(error, UnexpectedFaultError)

    def handle(self, error: BaseException) -> int:
        assert isinstance(error, StratusError)
        panel = Panel(
            Text.from_markup(error.format_for_cli(verbose=self.verbose)),
            title=f"[red]Error: {error.error_code}[/red]",
            border_style="red",
            expand=False,
        )
        self.console.print(panel)
        return error.exit_code


class UnexpectedFaultHandler(ErrorHandler):
    """Full diagnostic dump for anything outside the typed taxonomy."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def can_handle(self, error: BaseException) -> bool:
        return True

    def handle(self, error: BaseException) -> int:
        original = error
        if isinstance(error, UnexpectedFaultError) and error.cause is not None:
            original = error.cause

        logger.opt(exception=original).error(f"Unexpected fault: {error}")
        self.console.print(f"[bold red]Unexpected fault:[/bold red] {error}")
        if original.__traceback__ is not None:
            self.console.print(
                Traceback.from_exception(type(original), original, original.__traceback__, show_locals=False)
            )
        self.console.print("[dim]Please report this issue with the output above.[/dim]")
        return 1


class ErrorHandlerRegistry:
    """Registry for error handlers with priority support."""

    def __init__(self):
        self.handlers: List[Tuple[int, ErrorHandler]] = []

    def register_handler(self, handler: ErrorHandler, priority: int = 0) -> None:
        """Register an error handler with priority."""
        self.handlers.append((priority, handler))
        self.handlers.sort(key=lambda x: x[0], reverse=True)

    def handle_error(self, error: BaseException) -> int:
        """Report ``error`` with the first matching handler."""
        for _, handler in self.handlers:
            if handler.can_handle(error):
                return handler.handle(error)
        raise error


def default_registry(console: Optional[Console] = None, verbose: bool = False) -> ErrorHandlerRegistry:
    """Build the registry the CLI uses."""
    registry = ErrorHandlerRegistry()
    registry.register_handler(TypedErrorHandler(console, verbose=verbose), priority=100)
    registry.register_handler(UnexpectedFaultHandler(console), priority=0)
    return registry


def report_error(error: BaseException, console: Optional[Console] = None, verbose: bool = False) -> int:
    """Report an error to the user and return a non-zero exit code."""
    return default_registry(console, verbose).handle_error(error)
