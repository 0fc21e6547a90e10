"""Action: codeDeployLambda.

Packages one function's code, creates or updates the Lambda function, then
points the stage alias at the version that was just published.

Runs concurrently when called from ``functionDeploy``: each invocation gets
its own ``Deployer``, so nothing is shared between units.

Options:
    name: Function key in the project
    stage: Stage to deploy to (the alias is the lower-cased stage)
    region: Region to deploy to
    paths_packaged: List of ``{"name": <entry name>, "path": <file>}``
    artifact: Mapping of entry name to bytes, used instead of ``paths_packaged``
    path_dist: Optional directory where ``package.zip`` is written
"""

import asyncio
import io
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

from loguru import logger

from core.errors import (
    ArtifactTooLargeError,
    NoProjectContextError,
    ProviderNotFoundError,
    ValidationError,
)
from core.pipeline import Event

# Largest package Lambda accepts for a direct upload
MAX_ARTIFACT_BYTES = 52428800

# Fixed entry timestamp so identical inputs zip to identical bytes
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def build_archive(entries: Iterable[Tuple[str, bytes]]) -> bytes:
    """Zip ``(name, content)`` pairs with DEFLATE and fixed timestamps."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in entries:
            info = zipfile.ZipInfo(name, date_time=ZIP_EPOCH)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            archive.writestr(info, content)
    return buffer.getvalue()


class Deployer:
    """Reconciles one function in one stage and region."""

    def __init__(self, framework, max_artifact_bytes: int = MAX_ARTIFACT_BYTES):
        self.framework = framework
        self.max_artifact_bytes = max_artifact_bytes
        self.evt: Optional[Event] = None
        self.zip_buffer = b""
        self.path_compressed: Optional[str] = None
        self.lambda_: Optional[Dict[str, Any]] = None
        self.lambda_version: Optional[str] = None
        self.lambda_alias: Optional[str] = None
        self.lambda_alias_arn: Optional[str] = None

    async def deploy(self, evt: Event) -> Event:
        self.evt = evt

        self._validate_and_prepare()
        await self._compress()
        await self._provision()
        await self._alias()

        evt.data.update(
            function_name=self.function_name,
            path_compressed=self.path_compressed,
            lambda_version=self.lambda_version,
            lambda_alias=self.lambda_alias,
            lambda_alias_arn=self.lambda_alias_arn,
        )
        return evt

    def _validate_and_prepare(self) -> None:
        options = self.evt.options
        missing = [key for key in ("name", "stage", "region") if not options.get(key)]
        if missing:
            raise ValidationError.missing_options(*missing)

        self.aws = self.framework.get_provider()
        self.project = self.framework.get_project()
        if self.project is None:
            raise NoProjectContextError("codeDeployLambda")

        self.stage = options["stage"]
        self.region = options["region"]
        self.function = self.project.get_function(options["name"])
        self.function_name = self.function.get_deployed_name(self.project.name)

    def _debug(self, message: str) -> None:
        logger.debug(f'"{self.stage} - {self.region} - {self.function_name}": {message}')

    async def _compress(self) -> None:
        entries = await asyncio.to_thread(self._collect_entries)
        self.zip_buffer = build_archive(entries)

        size = len(self.zip_buffer)
        if size > self.max_artifact_bytes:
            raise ArtifactTooLargeError(size, self.max_artifact_bytes)

        path_dist = self.evt.options.get("path_dist")
        if path_dist:
            target = Path(path_dist) / "package.zip"
            await asyncio.to_thread(self._write_package, target)
            self.path_compressed = str(target)
            self._debug(f"Compressed file created - {self.path_compressed}")

    def _collect_entries(self):
        artifact = self.evt.options.get("artifact")
        if artifact:
            return [(name, content) for name, content in artifact.items()]

        packaged = self.evt.options.get("paths_packaged")
        if not packaged:
            raise ValidationError.missing_options("paths_packaged")
        return [(entry["name"], Path(entry["path"]).read_bytes()) for entry in packaged]

    def _write_package(self, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.zip_buffer)

    def _role(self) -> Optional[str]:
        if self.function.custom_role:
            return self.function.custom_role
        return self.project.get_variables(self.stage, self.region).get("iam_role_arn_lambda")

    async def _request(self, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self.aws.request("Lambda", operation, params, self.stage, self.region)

    async def _provision(self) -> None:
        try:
            self.lambda_ = await self._request(
                "getFunction",
                {"FunctionName": self.function_name, "Qualifier": "$LATEST"},
            )
        except ProviderNotFoundError:
            self.lambda_ = None

        description = f"Stratus Lambda function for project: {self.project.name}"
        role = self._role()

        if self.lambda_ is None:
            self._debug("Creating Lambda function...")
            if not role:
                raise ValidationError(
                    f'No IAM role for function "{self.function.name}"; set custom_role '
                    f'or the stage variable "iam_role_arn_lambda"',
                    field_name="iam_role_arn_lambda",
                )
            data = await self._request(
                "createFunction",
                {
                    "Code": {"ZipFile": self.zip_buffer},
                    "FunctionName": self.function_name,
                    "Handler": self.function.handler,
                    "Role": role,
                    "Runtime": self.function.runtime,
                    "Description": description,
                    "MemorySize": self.function.memory_size,
                    "Publish": True,
                    "Timeout": self.function.timeout,
                    "VpcConfig": self.function.vpc.to_request(),
                },
            )
        else:
            self._debug("Updating Lambda configuration...")
            deployed_name = self.lambda_["Configuration"]["FunctionName"]
            params = {
                "FunctionName": deployed_name,
                "Description": description,
                "Handler": self.function.handler,
                "MemorySize": self.function.memory_size,
                "Timeout": self.function.timeout,
                "VpcConfig": self.function.vpc.to_request(),
            }
            if role:
                params["Role"] = role
            await self._request("updateFunctionConfiguration", params)

            self._debug("Updating Lambda function...")
            data = await self._request(
                "updateFunctionCode",
                {"FunctionName": deployed_name, "Publish": True, "ZipFile": self.zip_buffer},
            )

        self.lambda_version = data["Version"]
        self.lambda_ = data

    async def _alias(self) -> None:
        self.lambda_alias = self.stage.lower()
        deployed_name = self.lambda_.get("FunctionName", self.function_name)

        try:
            await self._request("getAlias", {"FunctionName": deployed_name, "Name": self.lambda_alias})
            aliased = True
        except ProviderNotFoundError:
            aliased = False

        params = {
            "FunctionName": deployed_name,
            "FunctionVersion": self.lambda_version,
            "Name": self.lambda_alias,
            "Description": f"Project: {self.project.name} Stage: {self.stage}",
        }
        if aliased:
            self._debug(f"Updating Lambda Alias for version - {self.lambda_version}")
            data = await self._request("updateAlias", params)
        else:
            self._debug(f"Creating New Lambda Alias for version - {self.lambda_version}")
            data = await self._request("createAlias", params)

        self.lambda_alias_arn = data["AliasArn"]


def create_plugin(Plugin, framework_path):
    class CodeDeployLambda(Plugin):
        NAMESPACE = "stratus.core"

        async def register_actions(self) -> None:
            self.framework.add_action(
                self.code_deploy_lambda,
                {
                    "handler": "codeDeployLambda",
                    "description": "Uploads Lambda code and provisions it on AWS",
                },
            )

        async def code_deploy_lambda(self, evt: Event) -> Event:
            return await Deployer(self.framework).deploy(evt)

    return CodeDeployLambda
