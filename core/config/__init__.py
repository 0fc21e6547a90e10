"""Configuration for stratus projects and the framework itself."""

from .loader import ConfigurationLoader
from .project import PROJECT_FILE, Project
from .schemas import (
    FunctionConfig,
    ProjectConfig,
    RegionConfig,
    StageConfig,
    StratusSettings,
    VpcConfig,
)

__all__ = [
    "ConfigurationLoader",
    "PROJECT_FILE",
    "Project",
    "FunctionConfig",
    "ProjectConfig",
    "RegionConfig",
    "StageConfig",
    "StratusSettings",
    "VpcConfig",
]
