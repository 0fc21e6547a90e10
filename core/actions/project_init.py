"""Action: projectInit.

Scaffolds a new project: its directory, ``s-project.json`` with one stage
and region, an ``admin.env`` for credentials and an empty ``.env`` for the
local stage.

Options:
    name: Project name (also the directory name)
    path: Parent directory (default: working directory)
    bucket: Project bucket holding per-stage environment files
    stage: Initial stage (default: dev)
    region: Initial region (default: us-east-1)
    profile: AWS profile written to admin.env and the stage variables
    no_exe_cf: Accepted for compatibility; CloudFormation is never run
"""

from pathlib import Path

from loguru import logger

from cli.utils.console import print_success
from core.config import PROJECT_FILE, Project, ProjectConfig, RegionConfig, StageConfig
from core.errors import ValidationError
from core.pipeline import Event

DEFAULT_STAGE = "dev"
DEFAULT_REGION = "us-east-1"


def create_plugin(Plugin, framework_path):
    class ProjectInit(Plugin):
        NAMESPACE = "stratus.core"

        async def register_actions(self) -> None:
            self.framework.add_action(
                self.project_init,
                {
                    "handler": "projectInit",
                    "description": "Initializes a new project in a new directory",
                    "requires_project": False,
                },
            )

        async def project_init(self, evt: Event) -> Event:
            name = evt.options.get("name")
            if not name:
                raise ValidationError.missing_options("name")

            stage = evt.options.get("stage") or DEFAULT_STAGE
            region = evt.options.get("region") or DEFAULT_REGION
            profile = evt.options.get("profile")
            root = Path(evt.options.get("path") or Path.cwd()) / name

            if (root / PROJECT_FILE).exists():
                raise ValidationError(f"A project already exists in {root}", field_name="name")

            variables = {"project": name, "project_bucket_region": region}
            if evt.options.get("bucket"):
                variables["project_bucket"] = evt.options["bucket"]

            stage_variables = {"profile": profile} if profile else {}
            config = ProjectConfig(
                name=name,
                variables=variables,
                stages={stage: StageConfig(variables=stage_variables, regions={region: RegionConfig()})},
            )

            root.mkdir(parents=True, exist_ok=True)
            (root / "functions").mkdir(exist_ok=True)
            project = Project(root, config)
            project.save()
            (root / "admin.env").write_text(f"AWS_PROFILE={profile}\n" if profile else "")
            (root / ".env").touch()

            if evt.options.get("no_exe_cf"):
                logger.debug(f"Project {name}: no_exe_cf set, nothing to provision")

            self.framework.set_project(project)
            evt.data.update(project=name, project_path=str(root), stage=stage, region=region)
            print_success(f'Successfully created project "{name}" in {root}')
            return evt

    return ProjectInit
