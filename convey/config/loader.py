"""
Configuration file loading.

Reads the JSON configuration file and validates it into a Configuration.
"""

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from convey.exceptions import ConfigurationError
from convey.models.resources import Configuration

logger = structlog.get_logger(__name__)


def parse_configuration(data: Any, source: str = "<memory>") -> Configuration:
    """
    Validate raw configuration data.

    Args:
        data: Decoded JSON object
        source: Where the data came from, for error messages

    Returns:
        Validated Configuration

    Raises:
        ConfigurationError: If the data does not describe a configuration
    """
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration {source} must be a JSON object")
    try:
        return Configuration.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration {source}: {e}") from e


def load_configuration(path: str | Path) -> Configuration:
    """
    Load and validate a JSON configuration file.

    Args:
        path: Configuration file location

    Returns:
        Validated Configuration

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Configuration file could not be loaded: {path} ({e.strerror or e})"
        ) from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Configuration file could not be parsed: {path} (line {e.lineno}: {e.msg})"
        ) from e

    configuration = parse_configuration(data, source=str(path))
    logger.debug("Configuration loaded", path=str(path), databases=configuration.databases)
    return configuration
