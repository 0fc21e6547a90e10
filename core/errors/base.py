"""Base error classes with rich context for stratus."""

from __future__ import annotations

import traceback
from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar

from loguru import logger
from pydantic import BaseModel, Field


class ErrorContext(BaseModel):
    """Rich context information for errors."""

    timestamp: datetime = Field(default_factory=datetime.now)
    function: Optional[str] = None
    line_number: Optional[int] = None
    file_path: Optional[str] = None
    user_message: Optional[str] = None
    technical_details: Dict[str, Any] = Field(default_factory=dict)
    stack_trace: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    related_errors: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorContext":
        """Create context from an exception."""
        tb = traceback.extract_tb(exc.__traceback__)
        if tb:
            last_frame = tb[-1]
            return cls(
                function=last_frame.name,
                line_number=last_frame.lineno,
                file_path=str(last_frame.filename),
                stack_trace=traceback.format_tb(exc.__traceback__),
            )
        return cls()

    def add_suggestion(self, suggestion: str) -> None:
        """Add a helpful suggestion for resolving the error."""
        self.suggestions.append(suggestion)

    def add_technical_detail(self, key: str, value: Any) -> None:
        """Add technical debugging information."""
        self.technical_details[key] = value

    def add_related_error(self, error: BaseException) -> None:
        """Add a related error for context."""
        self.related_errors.append({
            "type": type(error).__name__,
            "message": str(error),
            "traceback": traceback.format_exception_only(type(error), error),
        })


T = TypeVar("T", bound="StratusError")


class StratusError(Exception):
    """Base exception class for stratus with rich context support.

    Every error the framework raises on purpose derives from this class. The
    execution engine propagates these verbatim; anything else reaching the
    engine is treated as an unexpected fault.
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        *,
        context: Optional[ErrorContext] = None,
        cause: Optional[BaseException] = None,
        error_code: Optional[str] = None,
        recoverable: bool = True,
    ):
        """Initialize stratus error with context.

        Args:
            message: Human-readable error message
            context: Rich error context
            cause: Original exception that caused this error
            error_code: Unique error code for programmatic handling
            recoverable: Whether the process may keep running after this error
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.cause = cause
        self.error_code = error_code or self._generate_error_code()
        self.recoverable = recoverable

        self.context.user_message = message
        if cause is not None:
            self.context.add_related_error(cause)

        self._log_error()

    def _generate_error_code(self) -> str:
        """Generate an error code from the class name."""
        class_name = self.__class__.__name__
        # CamelCase -> UPPER_SNAKE_CASE
        code = ""
        for i, char in enumerate(class_name):
            if i > 0 and char.isupper() and class_name[i - 1].islower():
                code += "_"
            code += char.upper()
        return code.replace("_ERROR", "")

    def _log_error(self) -> None:
        log_data = {"error_code": self.error_code, "recoverable": self.recoverable}
        if self.context.technical_details:
            log_data["details"] = self.context.technical_details

        if self.recoverable:
            logger.debug(f"{self.message}", **log_data)
        else:
            logger.critical(f"{self.message}", **log_data)

    @classmethod
    def from_exception(
        cls: Type[T],
        exc: BaseException,
        message: Optional[str] = None,
        **kwargs: Any,
    ) -> T:
        """Create error from another exception."""
        error_message = message or str(exc)
        context = ErrorContext.from_exception(exc)
        return cls(error_message, context=context, cause=exc, **kwargs)

    def with_context(self: T, **kwargs: Any) -> T:
        """Add technical details to the error."""
        for key, value in kwargs.items():
            self.context.add_technical_detail(key, value)
        return self

    def with_suggestion(self: T, suggestion: str) -> T:
        """Add a suggestion for resolving the error."""
        self.context.add_suggestion(suggestion)
        return self

    def format_for_cli(self, verbose: bool = False) -> str:
        """Format error for CLI output."""
        lines = [
            f"[red]Error[/red]: {self.message}",
            f"[dim]Code: {self.error_code}[/dim]",
        ]

        if self.context.suggestions:
            lines.append("\n[yellow]Suggestions:[/yellow]")
            for suggestion in self.context.suggestions:
                lines.append(f"  • {suggestion}")

        if verbose and self.context.technical_details:
            lines.append("\n[dim]Technical Details:[/dim]")
            for key, value in self.context.technical_details.items():
                lines.append(f"  {key}: {value}")

        return "\n".join(lines)


class UnexpectedFaultError(StratusError):
    """An untyped exception escaped an action or hook.

    Kept apart from the typed taxonomy: the CLI reports it with a full
    diagnostic dump instead of a one-line message.
    """

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("recoverable", False)
        kwargs.setdefault("error_code", "UNEXPECTED_FAULT")
        super().__init__(message, **kwargs)

    @classmethod
    def wrap(cls, exc: BaseException, where: str) -> "UnexpectedFaultError":
        """Wrap an arbitrary exception raised while running ``where``."""
        return cls.from_exception(
            exc,
            message=f"Unexpected {type(exc).__name__} in {where}: {exc}",
        )
