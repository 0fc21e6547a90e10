"""Loaded project: its configuration plus where it lives on disk."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from core.errors import ConfigurationError, ValidationError

from .schemas import FunctionConfig, ProjectConfig, StageConfig

PROJECT_FILE = "s-project.json"


class Project:
    """A stratus project rooted at a directory containing ``s-project.json``."""

    def __init__(self, root: Path, config: ProjectConfig):
        self.root = Path(root)
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    def get_root_path(self, *parts: str) -> Path:
        return self.root.joinpath(*parts)

    def get_function(self, name: str) -> FunctionConfig:
        """Return a function by key.

        Raises:
            ValidationError: If the project has no such function
        """
        if name not in self.config.functions:
            raise ValidationError(
                f'Function "{name}" does not exist in your project',
                field_name="name",
            )
        return self.config.functions[name]

    def get_all_functions(self) -> List[FunctionConfig]:
        return list(self.config.functions.values())

    def get_all_stages(self) -> List[str]:
        return list(self.config.stages)

    def get_all_regions(self, stage: str) -> List[str]:
        stage_config = self.config.stages.get(stage)
        return list(stage_config.regions) if stage_config else []

    def get_all_plugins(self) -> List[str]:
        return list(self.config.plugins)

    def validate_stage_exists(self, stage: Optional[str]) -> bool:
        return stage in self.config.stages

    def validate_region_exists(self, stage: Optional[str], region: Optional[str]) -> bool:
        return region in self.get_all_regions(stage) if stage else False

    def get_variables(self, stage: Optional[str] = None, region: Optional[str] = None) -> Dict[str, Any]:
        """Project variables overlaid by stage and then region variables."""
        variables = {"project": self.name, **self.config.variables}
        stage_config = self.config.stages.get(stage) if stage else None
        if stage_config is not None:
            variables.update(stage_config.variables)
            region_config = stage_config.regions.get(region) if region else None
            if region_config is not None:
                variables.update(region_config.variables)
        return variables

    def add_stage(self, stage: str, config: Optional[StageConfig] = None) -> None:
        self.config.stages[stage] = config or StageConfig()

    def remove_stage(self, stage: str) -> StageConfig:
        """Remove a stage and return its configuration.

        Raises:
            ValidationError: If the stage does not exist
        """
        if stage not in self.config.stages:
            raise ValidationError(f"Stage {stage} does not exist in your project", field_name="stage")
        return self.config.stages.pop(stage)

    @classmethod
    def load(cls, root: Path) -> "Project":
        """Load the project file under ``root``.

        Raises:
            ConfigurationError: If the file is missing or invalid
        """
        path = Path(root) / PROJECT_FILE
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to load project from {path}: {e}", config_path=path, cause=e) from e

        try:
            config = ProjectConfig.model_validate(data)
        except ValueError as e:
            raise ConfigurationError(f"Invalid project file {path}: {e}", config_path=path, cause=e) from e

        logger.debug(f"Loaded project {config.name} from {path}")
        return cls(Path(root), config)

    def save(self) -> Path:
        """Write the configuration back to ``s-project.json``."""
        path = self.get_root_path(PROJECT_FILE)
        data = self.config.model_dump(mode="json", exclude_none=True)
        for func in data.get("functions", {}).values():
            func.pop("name", None)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        logger.debug(f"Saved project {self.name} to {path}")
        return path

    def __repr__(self) -> str:
        return f"Project(name={self.name!r}, root={str(self.root)!r})"
