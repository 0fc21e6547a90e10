"""AWS provider: the single seam through which actions reach AWS.

Actions call ``request(service, operation, params, stage, region)`` with
service names such as ``"Lambda"`` or ``"S3"`` and camelCase operation names
such as ``"getFunction"``. Calls run on a worker thread so the event loop keeps
scheduling other deployment units while boto3 blocks.
"""

import asyncio
import re
import threading
from typing import Any, Callable, Dict, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from core.errors import ProviderNotFoundError, ProviderRequestError

# Error codes meaning "the resource you asked about does not exist"
NOT_FOUND_CODES = frozenset(
    {
        "ResourceNotFoundException",
        "NoSuchKey",
        "NoSuchBucket",
        "NotFound",
        "404",
    }
)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def to_snake_case(operation: str) -> str:
    """``getFunction`` -> ``get_function``."""
    return _CAMEL_BOUNDARY.sub("_", operation).lower()


class AwsProvider:
    """Thin boto3 adapter with per-profile sessions and cached clients."""

    def __init__(
        self,
        profile: Optional[str] = None,
        profile_resolver: Optional[Callable[[Optional[str], Optional[str]], Optional[str]]] = None,
        session_factory: Callable[..., Any] = boto3.Session,
    ):
        """Initialize the provider.

        Args:
            profile: Default AWS profile name
            profile_resolver: Maps ``(stage, region)`` to a profile, used before
                the default
            session_factory: Builds boto3 sessions; replaced in tests
        """
        self.profile = profile
        self.profile_resolver = profile_resolver
        self._session_factory = session_factory
        self._sessions: Dict[Optional[str], Any] = {}
        self._clients: Dict[Tuple[Optional[str], str, Optional[str]], Any] = {}
        self._lock = threading.Lock()

    def resolve_profile(self, stage: Optional[str], region: Optional[str]) -> Optional[str]:
        if self.profile_resolver is not None:
            profile = self.profile_resolver(stage, region)
            if profile:
                return profile
        return self.profile

    def get_client(self, service: str, stage: Optional[str] = None, region: Optional[str] = None) -> Any:
        """Return a cached boto3 client for ``service`` in ``region``."""
        profile = self.resolve_profile(stage, region)
        key = (profile, service.lower(), region)
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                session = self._sessions.get(profile)
                if session is None:
                    session = self._session_factory(profile_name=profile) if profile else self._session_factory()
                    self._sessions[profile] = session
                client = session.client(service.lower(), region_name=region)
                self._clients[key] = client
        return client

    async def request(
        self,
        service: str,
        operation: str,
        params: Optional[Dict[str, Any]] = None,
        stage: Optional[str] = None,
        region: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Perform one AWS API call.

        Args:
            service: AWS service name (``"Lambda"``, ``"S3"``)
            operation: camelCase operation name (``"getFunction"``)
            params: Request parameters
            stage: Stage the call is made for, used to pick credentials
            region: Target region

        Returns:
            Response mapping; streaming ``Body`` values are read into bytes

        Raises:
            ProviderNotFoundError: If the resource does not exist
            ProviderRequestError: For every other failure
        """
        logger.debug(f'"{stage} - {region}": {service}.{operation}')
        return await asyncio.to_thread(self._call, service, operation, dict(params or {}), stage, region)

    def _call(
        self,
        service: str,
        operation: str,
        params: Dict[str, Any],
        stage: Optional[str],
        region: Optional[str],
    ) -> Dict[str, Any]:
        try:
            client = self.get_client(service, stage, region)
            method = getattr(client, to_snake_case(operation), None)
            if method is None:
                raise ProviderRequestError(
                    f"{service} has no operation {operation}",
                    service=service,
                    operation=operation,
                )
            response = method(**params)
            body = response.get("Body")
            if body is not None and hasattr(body, "read"):
                response["Body"] = body.read()
            return response
        except ClientError as e:
            error = e.response.get("Error", {})
            code = str(error.get("Code", ""))
            message = error.get("Message") or str(e)
            error_class = ProviderNotFoundError if code in NOT_FOUND_CODES else ProviderRequestError
            raise error_class(
                f"{service}.{operation} failed: {message}",
                service=service,
                operation=operation,
                provider_code=code,
                cause=e,
            ) from e
        except BotoCoreError as e:
            raise ProviderRequestError(
                f"{service}.{operation} failed: {e}",
                service=service,
                operation=operation,
                cause=e,
            ) from e
