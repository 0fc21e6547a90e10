"""Configuration loader for stratus.

This module provides utilities for finding the current project, loading the
user settings file and merging configuration from various sources.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from loguru import logger

from core.errors import ConfigurationError

from .project import PROJECT_FILE, Project
from .schemas import StratusSettings


class ConfigurationLoader:
    """Loads and merges configuration from multiple sources."""

    USER_CONFIG_DIR = ".stratus"
    USER_CONFIG_NAME = "config.yaml"
    ADMIN_ENV = "admin.env"

    @staticmethod
    def find_project_root(start: Optional[Path] = None) -> Optional[Path]:
        """Find the closest directory containing the project file.

        Args:
            start: Directory to start from (defaults to the working directory)

        Returns:
            Project root if found, None otherwise
        """
        current = Path(start or Path.cwd()).resolve()
        for candidate in (current, *current.parents):
            if (candidate / PROJECT_FILE).is_file():
                logger.debug(f"Found project root: {candidate}")
                return candidate
        return None

    @classmethod
    def find_user_config(cls) -> Optional[Path]:
        """Find user configuration file.

        Returns:
            Path to user config file if found, None otherwise
        """
        user_config = Path.home() / cls.USER_CONFIG_DIR / cls.USER_CONFIG_NAME
        if user_config.exists():
            logger.debug(f"Found user config: {user_config}")
            return user_config
        return None

    @staticmethod
    def load_yaml_config(path: Path) -> Dict[str, Any]:
        """Load configuration from YAML file.

        Raises:
            ConfigurationError: If file cannot be loaded
        """
        try:
            with open(path, "r") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config from {path}: {e}", config_path=path, cause=e) from e

        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping", config_path=path)
        logger.debug(f"Loaded config from {path}")
        return config

    @staticmethod
    def merge_configs(configs: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Merge multiple configuration dictionaries.

        Later configs override earlier ones.
        """
        result: Dict[str, Any] = {}
        for config in configs:
            result = ConfigurationLoader._deep_merge(result, config)
        return result

    @staticmethod
    def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = ConfigurationLoader._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    @classmethod
    def load_settings(cls, **overrides: Any) -> StratusSettings:
        """Build settings from the user config file, environment and overrides.

        Precedence: explicit overrides, then ``STRATUS_*`` variables, then the
        user config file, then defaults.
        """
        file_config: Dict[str, Any] = {}
        user_config = cls.find_user_config()
        if user_config is not None:
            file_config = {
                key: value
                for key, value in cls.load_yaml_config(user_config).items()
                if f"STRATUS_{key.upper()}" not in os.environ
            }

        explicit = {key: value for key, value in overrides.items() if value is not None}
        settings = StratusSettings(**cls.merge_configs([file_config, explicit]))

        if settings.project_path is None:
            settings.project_path = cls.find_project_root()
        return settings

    @classmethod
    def load_project(cls, root: Path) -> Project:
        """Load the project under ``root`` and its admin environment file."""
        project = Project.load(root)
        cls.load_admin_env(project.root)
        return project

    @classmethod
    def load_admin_env(cls, root: Path) -> bool:
        """Load ``admin.env`` without overriding variables already set."""
        env_path = Path(root) / cls.ADMIN_ENV
        if not env_path.is_file():
            logger.debug(f"No {cls.ADMIN_ENV} in {root}")
            return False
        return load_dotenv(env_path, override=False)
