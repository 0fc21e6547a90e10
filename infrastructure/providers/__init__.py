"""Remote provider adapters."""

from .aws import AwsProvider, to_snake_case

__all__ = ["AwsProvider", "to_snake_case"]
