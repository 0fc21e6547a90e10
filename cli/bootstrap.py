"""CLI Bootstrap - logging setup and framework construction for the CLI."""

import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from core.config import ConfigurationLoader
from core.framework import Framework

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(debug: bool = False, log_file: Optional[Path] = None) -> None:
    """Configure logging for the application."""
    # Remove default logger
    logger.remove()

    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level="DEBUG" if debug else "WARNING",
    )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation="10 MB",
            retention="1 week",
            level="DEBUG",
        )


async def create_framework(debug: bool = False, provider: Optional[Any] = None, **overrides: Any) -> Framework:
    """Load settings, configure logging and return an initialized framework."""
    if debug:
        overrides["debug"] = True

    settings = ConfigurationLoader.load_settings(**overrides)
    setup_logging(settings.debug, settings.log_file)

    framework = Framework(settings, provider=provider)
    return await framework.init()
