"""Specific error types for stratus modules."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

from .base import StratusError


class UnknownContextError(StratusError):
    """The first CLI token does not name a registered command context."""

    def __init__(self, context: Optional[str], *, available: Optional[List[str]] = None, **kwargs: Any):
        super().__init__(
            f'Command context "{context}" not found.',
            error_code="CLI_UNKNOWN_CONTEXT",
            **kwargs,
        )
        self.context_name = context
        if available:
            self.with_suggestion(f"Available contexts: {', '.join(sorted(available))}")
        self.with_suggestion('Enter "stratus help" to see all available commands')


class UnknownActionError(StratusError):
    """An action name (or CLI sub-action) that was never registered."""

    def __init__(
        self,
        action: Optional[str],
        *,
        context: Optional[str] = None,
        **kwargs: Any,
    ):
        if context:
            message = f'"{context}" is a valid context but "{action}" is not one of its actions.'
        else:
            message = f'Action "{action}" is not registered.'
        super().__init__(message, error_code="UNKNOWN_ACTION", **kwargs)
        self.action_name = action
        if context:
            self.with_suggestion(f'Enter "stratus {context} help" to see the actions for this context')


class NoProjectContextError(StratusError):
    """A project-scoped command ran outside of a project."""

    def __init__(self, command: Optional[str] = None, **kwargs: Any):
        super().__init__(
            "This command can only be run inside a stratus project.",
            error_code="NO_PROJECT",
            **kwargs,
        )
        if command:
            self.context.add_technical_detail("command", command)
        self.with_suggestion('Run "stratus project create" or change into a directory containing s-project.json')


class DuplicateRegistrationError(StratusError):
    """An action handler name was registered twice."""

    def __init__(self, name: str, **kwargs: Any):
        super().__init__(
            f'Action "{name}" is already registered.',
            error_code="DUPLICATE_REGISTRATION",
            **kwargs,
        )
        self.name = name


DuplicateActionError = DuplicateRegistrationError


class PluginResolutionError(StratusError):
    """A path-qualified plugin descriptor points at nothing loadable."""

    def __init__(
        self,
        descriptor: str,
        *,
        plugin_path: Optional[Path] = None,
        reason: Optional[str] = None,
        **kwargs: Any,
    ):
        message = f'Could not resolve plugin "{descriptor}"'
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, error_code="PLUGIN_RESOLUTION", **kwargs)
        self.descriptor = descriptor
        if plugin_path is not None:
            self.context.add_technical_detail("plugin_path", str(plugin_path))
        self.with_suggestion("Check the plugins list in s-project.json")


class ArtifactTooLargeError(StratusError):
    """The compressed deployment package exceeds the platform ceiling."""

    def __init__(self, size: int, limit: int, **kwargs: Any):
        super().__init__(
            f"Zip file is larger than the {limit // (1024 * 1024)}MB Lambda limit ({size} bytes)",
            error_code="ZIP_TOO_BIG",
            **kwargs,
        )
        self.size = size
        self.limit = limit
        self.context.add_technical_detail("size", size)
        self.context.add_technical_detail("limit", limit)


class ProviderRequestError(StratusError):
    """A remote provider call failed."""

    def __init__(
        self,
        message: str,
        *,
        service: Optional[str] = None,
        operation: Optional[str] = None,
        provider_code: Optional[str] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("error_code", "PROVIDER_REQUEST")
        super().__init__(message, **kwargs)
        self.service = service
        self.operation = operation
        self.provider_code = provider_code
        if service:
            self.context.add_technical_detail("service", service)
        if operation:
            self.context.add_technical_detail("operation", operation)
        if provider_code:
            self.context.add_technical_detail("provider_code", provider_code)


class ProviderNotFoundError(ProviderRequestError):
    """The provider answered that the requested resource does not exist."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("error_code", "PROVIDER_NOT_FOUND")
        super().__init__(message, **kwargs)


class ValidationError(StratusError):
    """Action options are missing or invalid."""

    def __init__(self, message: str, *, field_name: Optional[str] = None, **kwargs: Any):
        kwargs.setdefault("error_code", "VALIDATION")
        super().__init__(message, **kwargs)
        if field_name:
            self.context.add_technical_detail("field", field_name)

    @classmethod
    def missing_options(cls, *names: str) -> "ValidationError":
        """Create error for required options that were not supplied."""
        error = cls(
            f"Missing {' and/or '.join(names)}",
            error_code="VALIDATION_MISSING_OPTIONS",
        )
        for name in names:
            error.with_suggestion(f"Pass --{name}")
        return error


class ConfigurationError(StratusError):
    """Project or settings files cannot be read."""

    def __init__(self, message: str, *, config_path: Optional[Path] = None, **kwargs: Any):
        kwargs.setdefault("error_code", "CONFIG")
        super().__init__(message, **kwargs)
        if config_path is not None:
            self.context.add_technical_detail("config_path", str(config_path))


class DeploymentFailedError(StratusError):
    """One or more units of a fan-out deployment failed."""

    def __init__(self, failures: List[Any], **kwargs: Any):
        super().__init__(
            f"{len(failures)} deployment unit(s) failed",
            error_code="DEPLOYMENT_FAILED",
            **kwargs,
        )
        self.failures = failures
        for failure in failures:
            self.with_suggestion(str(failure))
