"""Action: envUnset.

Removes an environment variable for a stage and region. Stage ``local``
edits the project's ``.env`` file; any other stage rewrites the ``.env``
object kept in the project bucket for each region (``all`` selects every
region of the stage).
"""

import asyncio
import io
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

from cli.utils.console import print_success
from core.config import PROJECT_FILE, Project
from core.errors import ConfigurationError, NoProjectContextError, ProviderNotFoundError, ValidationError
from core.pipeline import Event

LOCAL_STAGE = "local"
ALL_REGIONS = "all"


def render_env(values: Dict[str, Optional[str]]) -> str:
    """Serialize variables as ``KEY=value`` lines."""
    return "".join(f"{key}={'' if value is None else value}\n" for key, value in values.items())


def env_object_key(project: str, stage: str, region: str) -> str:
    return "/".join(["stratus", project, stage, region, "envVars", ".env"])


def create_plugin(Plugin, framework_path):
    class EnvUnset(Plugin):
        NAMESPACE = "stratus.core"

        async def register_actions(self) -> None:
            self.framework.add_action(
                self.env_unset,
                {
                    "handler": "envUnset",
                    "description": "unset var value for stage and region. Region can be 'all'\nusage: stratus env unset",
                    "context": "env",
                    "context_action": "unset",
                    "options": [
                        {"option": "region", "shortcut": "r", "description": "region you want to unset env var from"},
                        {"option": "stage", "shortcut": "s", "description": "stage you want to unset env var from"},
                        {"option": "key", "shortcut": "k", "description": "the key of the env var you want to unset"},
                    ],
                },
            )

        async def env_unset(self, evt: Event) -> Event:
            project = self._validate(evt)
            stage, region, key = evt.options["stage"], evt.options["region"], evt.options["key"]

            if stage == LOCAL_STAGE:
                await asyncio.to_thread(self._unset_local, project, key)
                regions = [LOCAL_STAGE]
            else:
                regions = project.get_all_regions(stage) if region == ALL_REGIONS else [region]
                await asyncio.gather(*(self._unset_remote(project, key, stage, name) for name in regions))

            evt.data.update(key=key, regions=regions)
            print_success(f"Successfully unset env var: {key}")
            return evt

        def _validate(self, evt: Event) -> Project:
            project = self.framework.get_project()
            if project is None:
                raise NoProjectContextError("env unset")

            stage = evt.options.get("stage")
            region = evt.options.get("region")
            if not stage or not region or not evt.options.get("key"):
                raise ValidationError.missing_options("stage", "region", "key")

            if stage == LOCAL_STAGE:
                return project
            if not project.validate_stage_exists(stage):
                raise ValidationError(f"Stage {stage} does not exist in your project", field_name="stage")
            if region != ALL_REGIONS and not project.validate_region_exists(stage, region):
                raise ValidationError(f'Region "{region}" does not exist in stage "{stage}"', field_name="region")
            return project

        def _unset_local(self, project: Project, key: str) -> None:
            path: Path = project.get_root_path(".env")
            values = dict(dotenv_values(path)) if path.exists() else {}
            values.pop(key, None)
            path.write_text(render_env(values))

        async def _unset_remote(self, project: Project, key: str, stage: str, region: str) -> None:
            variables = project.get_variables(stage, region)
            bucket = variables.get("project_bucket")
            if not bucket:
                raise ConfigurationError(
                    'Project variable "project_bucket" is not set',
                    config_path=project.get_root_path(PROJECT_FILE),
                )
            bucket_region = variables.get("project_bucket_region", region)
            object_key = env_object_key(project.name, stage, region)
            aws = self.framework.get_provider()

            try:
                response = await aws.request("S3", "getObject", {"Bucket": bucket, "Key": object_key}, stage, bucket_region)
                body = response.get("Body") or b""
                text = body.decode("utf-8") if isinstance(body, bytes) else str(body)
                values = dict(dotenv_values(stream=io.StringIO(text)))
            except ProviderNotFoundError:
                values = {}

            values.pop(key, None)
            await aws.request(
                "S3",
                "putObject",
                {
                    "Bucket": bucket,
                    "Key": object_key,
                    "ACL": "private",
                    "ContentType": "text/plain",
                    "Body": render_env(values),
                },
                stage,
                bucket_region,
            )

    return EnvUnset
