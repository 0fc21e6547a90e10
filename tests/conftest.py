"""Pytest configuration and shared fixtures for all tests."""

# Add project root to path
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import StratusSettings
from core.errors import ProviderNotFoundError, ProviderRequestError
from core.framework import Framework
from infrastructure.providers import to_snake_case

ROLE_ARN = "arn:aws:iam::123456789012:role/demo-lambda"

PROJECT_DATA: Dict[str, Any] = {
    "name": "demo",
    "plugins": [],
    "variables": {"project_bucket": "demo-bucket", "project_bucket_region": "us-east-1"},
    "stages": {
        "dev": {
            "variables": {"iam_role_arn_lambda": ROLE_ARN},
            "regions": {"us-east-1": {}, "eu-west-1": {}},
        },
        "prod": {
            "variables": {"iam_role_arn_lambda": ROLE_ARN},
            "regions": {"us-east-1": {}},
        },
    },
    "functions": {
        "hello": {"runtime": "python3.12", "handler": "handler.handler", "path": "functions/hello"},
        "world": {"custom_name": "world-custom", "path": "functions/world"},
    },
}


class FakeAwsProvider:
    """In-memory Lambda and S3 answering like the real provider."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.functions: Dict[tuple, Dict[str, Any]] = {}
        self.aliases: Dict[tuple, Dict[str, Any]] = {}
        self.in_flight = 0
        self.max_in_flight = 0
        self.objects: Dict[tuple, bytes] = {}
        self.failing_functions: Set[str] = set()
        self.gate: Optional[asyncio.Event] = None

    def seed_function(self, name: str, version: int = 1, alias: Optional[str] = None, region: str = "us-east-1"):
        self.functions[(region, name)] = {"version": version, "config": {"FunctionName": name}}
        if alias:
            self._store_alias(name, alias, str(version), region)

    def operations(self, service: Optional[str] = None) -> List[str]:
        return [call["operation"] for call in self.calls if service is None or call["service"] == service]

    async def request(self, service, operation, params=None, stage=None, region=None):
        params = dict(params or {})
        self.calls.append(
            {"service": service, "operation": operation, "params": params, "stage": stage, "region": region}
        )
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            await asyncio.sleep(0)
        finally:
            self.in_flight -= 1
        return getattr(self, f"_{service.lower()}_{to_snake_case(operation)}")(params, region)

    def _missing(self, service: str, operation: str, what: str):
        return ProviderNotFoundError(
            f"{service}.{operation} failed: {what} not found",
            service=service,
            operation=operation,
            provider_code="ResourceNotFoundException",
        )

    def _check_failing(self, name: str, operation: str):
        if name in self.failing_functions:
            raise ProviderRequestError(
                f"Lambda.{operation} failed: throttled",
                service="Lambda",
                operation=operation,
                provider_code="TooManyRequestsException",
            )

    def _store_alias(self, name, alias, version, region):
        self.aliases[(region, name, alias)] = {
            "AliasArn": f"arn:aws:lambda:{region}:123456789012:function:{name}:{alias}",
            "Name": alias,
            "FunctionVersion": version,
        }
        return self.aliases[(region, name, alias)]

    def _lambda_get_function(self, params, region):
        name = params["FunctionName"]
        if (region, name) not in self.functions:
            raise self._missing("Lambda", "getFunction", f"Function {name}")
        return {"Configuration": {"FunctionName": name, "Version": "$LATEST"}}

    def _lambda_create_function(self, params, region):
        name = params["FunctionName"]
        self._check_failing(name, "createFunction")
        self.functions[(region, name)] = {"version": 1, "config": params}
        return {"FunctionName": name, "Version": "1"}

    def _lambda_update_function_configuration(self, params, region):
        name = params["FunctionName"]
        self._check_failing(name, "updateFunctionConfiguration")
        self.functions[(region, name)]["config"].update(params)
        return {"FunctionName": name}

    def _lambda_update_function_code(self, params, region):
        name = params["FunctionName"]
        function = self.functions[(region, name)]
        function["version"] += 1
        return {"FunctionName": name, "Version": str(function["version"])}

    def _lambda_get_alias(self, params, region):
        key = (region, params["FunctionName"], params["Name"])
        if key not in self.aliases:
            raise self._missing("Lambda", "getAlias", f"Alias {params['Name']}")
        return self.aliases[key]

    def _lambda_create_alias(self, params, region):
        return self._store_alias(params["FunctionName"], params["Name"], params["FunctionVersion"], region)

    def _lambda_update_alias(self, params, region):
        alias = self.aliases[(region, params["FunctionName"], params["Name"])]
        alias["FunctionVersion"] = params["FunctionVersion"]
        return alias

    def _s3_get_object(self, params, region):
        key = (params["Bucket"], params["Key"])
        if key not in self.objects:
            raise ProviderNotFoundError(
                "S3.getObject failed: The specified key does not exist.",
                service="S3",
                operation="getObject",
                provider_code="NoSuchKey",
            )
        return {"Body": self.objects[key]}

    def _s3_put_object(self, params, region):
        body = params["Body"]
        self.objects[(params["Bucket"], params["Key"])] = body.encode() if isinstance(body, str) else body
        return {"ETag": '"etag"'}


def write_project(root: Path, data: Optional[Dict[str, Any]] = None) -> Path:
    """Write a project with two small functions under ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    (root / "s-project.json").write_text(json.dumps(data or PROJECT_DATA, indent=2))
    for name in ("hello", "world"):
        function_dir = root / "functions" / name
        function_dir.mkdir(parents=True, exist_ok=True)
        (function_dir / "handler.py").write_text(f"def handler(event, context):\n    return '{name}'\n")
    return root


@pytest.fixture
def provider() -> FakeAwsProvider:
    return FakeAwsProvider()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    return write_project(tmp_path / "demo")


@pytest.fixture
def build_framework(provider: FakeAwsProvider, project_dir: Path):
    """Return an async builder for initialized frameworks.

    Pass ``project=False`` for a framework outside of any project.
    """

    async def _build(project: bool = True, **settings: Any) -> Framework:
        config = StratusSettings(project_path=project_dir if project else None, **settings)
        return await Framework(config, provider=provider).init()

    return _build
