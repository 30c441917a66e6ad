"""Configuration management for galerio."""

from galerio.config.manager import ConfigError, ConfigManager
from galerio.config.defaults import DEFAULT_CONFIG

__all__ = ["ConfigManager", "ConfigError", "DEFAULT_CONFIG"]
