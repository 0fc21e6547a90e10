"""Infrastructure package for stratus.

Adapters to the outside world the framework's actions talk through.
"""

from .providers import AwsProvider

__all__ = ["AwsProvider"]
