"""Operator configuration loading."""

import sys
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic_core import ValidationError

from src.app.runtime.config.config_data import OperatorSettings
from src.app.runtime.config.config_utils import substitute_env_vars

CONFIG_PATH = Path("config.yaml")


def load_config(file_path: Path | None = None) -> OperatorSettings:
    """
    Load operator settings from a YAML file with environment variable substitution.

    Args:
        file_path: Path to the YAML file. When omitted, ``config.yaml`` in the
                   working directory is used if it exists, otherwise defaults.

    Returns:
        Validated OperatorSettings

    Raises:
        ValueError: If required environment variables are missing, validation fails,
                   or YAML structure is invalid (missing 'config' key)
        FileNotFoundError: If an explicitly given file doesn't exist

    YAML Structure Requirements:
        The YAML file must have a top-level 'config:' key containing configuration data.
    """
    if file_path is None:
        if not CONFIG_PATH.exists():
            logger.debug("No config.yaml found, using default operator settings")
            return OperatorSettings()
        file_path = CONFIG_PATH

    with open(file_path) as f:
        content = f.read()

    logger.info(f"Loading operator configuration from {file_path}")
    content = substitute_env_vars(content)

    # Parse YAML
    try:
        loaded: dict[str, Any] | None = yaml.safe_load(content)
        if not loaded:
            raise ValueError("Failed to parse YAML")
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML: {e}") from e

    # Extract the 'config' section from the YAML structure
    if "config" not in loaded:
        raise ValueError("Invalid YAML structure: missing 'config' key")

    try:
        return OperatorSettings(**(loaded["config"] or {}))
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def configure_logging(settings: OperatorSettings) -> None:
    """Route loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.logging.level,
        serialize=settings.logging.serialize,
    )
