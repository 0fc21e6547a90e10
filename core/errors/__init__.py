"""Error taxonomy for stratus."""

from .base import ErrorContext, StratusError, UnexpectedFaultError
from .handlers import (
    ErrorHandler,
    ErrorHandlerRegistry,
    TypedErrorHandler,
    UnexpectedFaultHandler,
    report_error,
)
from .types import (
    ArtifactTooLargeError,
    ConfigurationError,
    DeploymentFailedError,
    DuplicateActionError,
    DuplicateRegistrationError,
    NoProjectContextError,
    PluginResolutionError,
    ProviderNotFoundError,
    ProviderRequestError,
    UnknownActionError,
    UnknownContextError,
    ValidationError,
)

__all__ = [
    "ErrorContext",
    "StratusError",
    "UnexpectedFaultError",
    "ErrorHandler",
    "ErrorHandlerRegistry",
    "TypedErrorHandler",
    "UnexpectedFaultHandler",
    "report_error",
    "ArtifactTooLargeError",
    "ConfigurationError",
    "DeploymentFailedError",
    "DuplicateActionError",
    "DuplicateRegistrationError",
    "NoProjectContextError",
    "PluginResolutionError",
    "ProviderNotFoundError",
    "ProviderRequestError",
    "UnknownActionError",
    "UnknownContextError",
    "ValidationError",
]
