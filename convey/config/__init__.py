"""Configuration module for convey."""

from convey.config.loader import load_configuration, parse_configuration
from convey.config.settings import ConveySettings, MongoSettings, Settings, get_settings

__all__ = [
    "ConveySettings",
    "MongoSettings",
    "Settings",
    "get_settings",
    "load_configuration",
    "parse_configuration",
]
