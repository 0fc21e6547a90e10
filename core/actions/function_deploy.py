"""Action: functionDeploy.

Deploys one or more functions to every requested region of a stage. Each
function x region pair is a unit that runs ``codeDeployLambda`` with its own
Event; at most ``concurrency`` units run at once and a failing unit never
affects the others.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List

from loguru import logger

from cli.utils.console import create_table, get_console, print_success
from core.errors import (
    DeploymentFailedError,
    NoProjectContextError,
    StratusError,
    UnexpectedFaultError,
    ValidationError,
)
from core.pipeline import Event

DEFAULT_CONCURRENCY = 5

# Skipped when collecting a function directory
IGNORED_PARTS = {"__pycache__", ".git", ".pytest_cache"}


def collect_function_files(directory: Path) -> List[Dict[str, str]]:
    """List every file under ``directory`` as ``{"name", "path"}`` archive entries."""
    if not directory.is_dir():
        raise ValidationError(f"Function directory {directory} does not exist", field_name="path")
    return [
        {"name": path.relative_to(directory).as_posix(), "path": str(path)}
        for path in sorted(directory.rglob("*"))
        if path.is_file() and not IGNORED_PARTS.intersection(path.relative_to(directory).parts)
    ]


def create_plugin(Plugin, framework_path):
    class FunctionDeploy(Plugin):
        NAMESPACE = "stratus.core"

        async def register_actions(self) -> None:
            self.framework.add_action(
                self.function_deploy,
                {
                    "handler": "functionDeploy",
                    "description": "Deploys functions to a stage\nusage: stratus function deploy <function>... -s <stage>",
                    "context": "function",
                    "context_action": "deploy",
                    "options": [
                        {"option": "stage", "shortcut": "s", "description": "Stage to deploy to"},
                        {"option": "region", "shortcut": "r", "description": "Region to deploy to (default: every region of the stage)"},
                        {"option": "all", "shortcut": "a", "description": "Deploy every function of the project"},
                        {"option": "concurrency", "shortcut": "c", "description": f"Units deployed at once (default: {DEFAULT_CONCURRENCY})"},
                    ],
                    "parameters": [
                        {"parameter": "names", "position": "0->", "description": "Functions to deploy"},
                    ],
                },
            )

        async def function_deploy(self, evt: Event) -> Event:
            project = self.framework.get_project()
            if project is None:
                raise NoProjectContextError("function deploy")

            stage = evt.options.get("stage")
            region = evt.options.get("region")
            if not stage:
                raise ValidationError.missing_options("stage")
            if not project.validate_stage_exists(stage):
                raise ValidationError(f"Stage {stage} does not exist in your project", field_name="stage")
            if region and not project.validate_region_exists(stage, region):
                raise ValidationError(f'Region "{region}" does not exist in stage "{stage}"', field_name="region")

            if evt.options.get("all"):
                names = [func.name for func in project.get_all_functions()]
            else:
                names = list(evt.options.get("names") or [])
            if not names:
                raise ValidationError.missing_options("names")

            regions = [region] if region else project.get_all_regions(stage)
            concurrency = evt.options.get("concurrency")
            try:
                concurrency = DEFAULT_CONCURRENCY if concurrency is None or concurrency is True else int(concurrency)
            except (TypeError, ValueError) as e:
                raise ValidationError(f"concurrency must be a number, got {concurrency!r}", field_name="concurrency") from e
            if concurrency < 1:
                raise ValidationError("concurrency must be at least 1", field_name="concurrency")

            semaphore = asyncio.Semaphore(concurrency)
            results = await asyncio.gather(
                *(self._deploy_unit(semaphore, project, name, stage, unit_region) for name in names for unit_region in regions)
            )

            # Untyped faults propagate with their traceback once every unit settled
            faults = [unit.pop("fault") for unit in results if "fault" in unit]
            deployed = [result for result in results if "error" not in result]
            failed = [result for result in results if "error" in result]
            evt.data["deployed"] = deployed
            evt.data["failed"] = failed

            if deployed:
                self._report(deployed)
            if faults:
                for fault in faults[1:]:
                    logger.error(f"Another deployment unit failed unexpectedly: {fault.message}")
                raise faults[0]
            if failed:
                raise DeploymentFailedError(
                    [f'{unit["function"]} ({unit["stage"]} - {unit["region"]}): {unit["error"]}' for unit in failed]
                )
            return evt

        async def _deploy_unit(self, semaphore: asyncio.Semaphore, project, name: str, stage: str, region: str) -> Dict[str, Any]:
            unit: Dict[str, Any] = {"function": name, "stage": stage, "region": region}
            async with semaphore:
                try:
                    function = project.get_function(name)
                    directory = project.get_root_path(function.path or f"functions/{name}")
                    paths = await asyncio.to_thread(collect_function_files, directory)
                    result = await self.framework.actions.codeDeployLambda(
                        {"options": {"name": name, "stage": stage, "region": region, "paths_packaged": paths}}
                    )
                except StratusError as e:
                    logger.debug(f'"{stage} - {region} - {name}": deployment failed: {e.message}')
                    unit.update(error=e.message, error_code=e.error_code)
                    if isinstance(e, UnexpectedFaultError):
                        unit["fault"] = e
                    return unit

            unit.update(
                function_name=result.data["function_name"],
                lambda_version=result.data["lambda_version"],
                lambda_alias=result.data["lambda_alias"],
                lambda_alias_arn=result.data["lambda_alias_arn"],
            )
            return unit

        def _report(self, deployed: List[Dict[str, Any]]) -> None:
            table = create_table("Deployed functions", ["Function", "Stage", "Region", "Version", "Alias ARN"])
            for unit in deployed:
                table.add_row(unit["function"], unit["stage"], unit["region"], str(unit["lambda_version"]), unit["lambda_alias_arn"])
            get_console().print(table)
            print_success(f"Deployed {len(deployed)} function unit(s)")

    return FunctionDeploy
