"""Configuration schemas for stratus.

This module defines the project file structure (``s-project.json``) and the
framework settings, validated with Pydantic.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class VpcConfig(BaseModel):
    """VPC attachment of a Lambda function."""

    security_group_ids: List[str] = Field(default_factory=list, description="Security group ids")
    subnet_ids: List[str] = Field(default_factory=list, description="Subnet ids")

    def to_request(self) -> Dict[str, List[str]]:
        return {"SecurityGroupIds": list(self.security_group_ids), "SubnetIds": list(self.subnet_ids)}


class FunctionConfig(BaseModel):
    """A deployable function of the project."""

    name: Optional[str] = Field(None, description="Function key, filled from the project mapping")
    runtime: str = Field("python3.12", description="Lambda runtime identifier")
    handler: str = Field("handler.handler", description="Entry point inside the package")
    memory_size: int = Field(1024, description="Memory in MB", ge=128, le=10240)
    timeout: int = Field(6, description="Timeout in seconds", ge=1, le=900)
    custom_role: Optional[str] = Field(None, description="Role ARN overriding the stage role")
    custom_name: Optional[str] = Field(None, description="Deployed name overriding <project>-<function>")
    path: Optional[str] = Field(None, description="Function directory relative to the project root")
    vpc: VpcConfig = Field(default_factory=VpcConfig)

    def get_deployed_name(self, project: str) -> str:
        """Name of the function on the provider side."""
        return self.custom_name or f"{project}-{self.name}"


class RegionConfig(BaseModel):
    """Per-region settings of a stage."""

    variables: Dict[str, Any] = Field(default_factory=dict)


class StageConfig(BaseModel):
    """A deployment stage and the regions it spans."""

    variables: Dict[str, Any] = Field(default_factory=dict)
    regions: Dict[str, RegionConfig] = Field(default_factory=dict)


class ProjectConfig(BaseModel):
    """Contents of ``s-project.json``."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Project name")
    description: Optional[str] = Field(None, description="Project description")
    version: str = Field("0.0.1", description="Project version")
    plugins: List[str] = Field(default_factory=list, description="Project plugin descriptors")
    variables: Dict[str, Any] = Field(default_factory=dict, description="Project-wide variables")
    stages: Dict[str, StageConfig] = Field(default_factory=dict)
    functions: Dict[str, FunctionConfig] = Field(default_factory=dict)

    @field_validator("functions")
    @classmethod
    def name_functions(cls, v: Dict[str, FunctionConfig]) -> Dict[str, FunctionConfig]:
        """Give every function its mapping key as name."""
        return {
            key: func if func.name == key else func.model_copy(update={"name": key})
            for key, func in v.items()
        }


class StratusSettings(BaseSettings):
    """Framework settings.

    Values come from keyword arguments, then ``STRATUS_*`` environment
    variables, then field defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="STRATUS_",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = Field(False, description="Enable debug logging")
    interactive: bool = Field(False, description="Prompt for missing options")
    log_file: Optional[Path] = Field(None, description="Also log to this file")
    aws_profile: Optional[str] = Field(None, description="Default AWS profile")
    plugins: List[str] = Field(default_factory=list, description="Extra plugin descriptors")
    project_path: Optional[Path] = Field(None, description="Root of the current project")
    framework_path: Path = Field(
        default_factory=lambda: Path(__file__).resolve().parents[1],
        description="Directory of the framework package",
    )
