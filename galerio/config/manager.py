"""Configuration manager for galerio."""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from galerio.config.defaults import DEFAULT_CONFIG
from galerio.exceptions import GalerioError
from galerio.processing.options import ProcessingOptions

logger = logging.getLogger(__name__)


class ConfigError(GalerioError):
    """Exception raised for configuration errors."""
    pass


class ConfigManager:
    """Manages configuration loading, validation and access.

    This class loads configuration from a YAML file, merges it with the
    defaults, and provides access to values with dot notation. A missing
    configuration file is not an error: the defaults apply.

    Attributes:
        config: Dictionary containing all configuration values
        config_path: Path to the loaded configuration file

    Examples:
        >>> config = ConfigManager.load("galerio.yaml")
        >>> config.get("processing.thumbnail_height")
        300
        >>> config.get("gallery.title")
        'Gallery'
    """

    def __init__(self, config: Dict[str, Any], config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config: Configuration dictionary
            config_path: Path to the configuration file (optional)
        """
        self.config = config
        self.config_path = config_path

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        create_if_missing: bool = False
    ) -> "ConfigManager":
        """Load configuration from file, falling back to defaults.

        Args:
            config_path: Path to configuration file (optional). When omitted,
                standard locations are searched.
            create_if_missing: Write the defaults to ``config_path`` (or
                ~/.galerio/config.yaml) when no file exists

        Returns:
            ConfigManager instance with loaded configuration

        Raises:
            ConfigError: If an explicitly given file is missing, or a file
                cannot be parsed
        """
        if config_path:
            path = Path(config_path).expanduser()
            if not path.exists() and not create_if_missing:
                raise ConfigError(f"Configuration file not found: {path}")
        else:
            path = cls._find_config_file()

        if path and path.exists():
            logger.info(f"Loading configuration from: {path}")
            config = cls._merge_with_defaults(cls._load_yaml(path))
            return cls(config, path)

        config = copy.deepcopy(DEFAULT_CONFIG)
        if create_if_missing:
            path = path or Path.home() / ".galerio" / "config.yaml"
            cls._save_yaml(config, path)
            logger.info(f"Configuration saved to: {path}")
            return cls(config, path)

        logger.debug("No configuration file found, using defaults")
        return cls(config, None)

    @staticmethod
    def _find_config_file() -> Optional[Path]:
        """Search for a configuration file in standard locations.

        Search order:
        1. ~/.galerio/config.yaml (user home directory)
        2. ./galerio.yaml (current directory)

        Returns:
            Path to config file if found, None otherwise
        """
        search_paths = [
            Path.home() / ".galerio" / "config.yaml",
            Path.cwd() / "galerio.yaml",
        ]

        for path in search_paths:
            if path.exists():
                logger.debug(f"Found config file: {path}")
                return path

        logger.debug("No config file found in standard locations")
        return None

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        """Load configuration from YAML file.

        Args:
            path: Path to YAML file

        Returns:
            Configuration dictionary

        Raises:
            ConfigError: If file cannot be loaded or parsed
        """
        try:
            with open(path, 'r') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Failed to parse YAML configuration: {path}\n"
                f"Error: {e}"
            ) from e
        except OSError as e:
            raise ConfigError(
                f"Failed to load configuration file: {path}\n"
                f"Error: {e}"
            ) from e

        if config is None:
            return {}

        if not isinstance(config, dict):
            raise ConfigError(
                f"Invalid configuration file: {path}\n"
                "Configuration must be a YAML dictionary."
            )

        return config

    @staticmethod
    def _save_yaml(config: Dict[str, Any], path: Path) -> None:
        """Save configuration to YAML file.

        Args:
            config: Configuration dictionary
            path: Path to save YAML file

        Raises:
            ConfigError: If file cannot be saved
        """
        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            with open(path, 'w') as f:
                yaml.safe_dump(
                    config,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True
                )
        except OSError as e:
            raise ConfigError(
                f"Failed to save configuration to: {path}\n"
                f"Error: {e}"
            ) from e

    @staticmethod
    def _merge_with_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
        """Merge loaded config with defaults to add any missing fields.

        User config values take precedence over defaults.

        Args:
            config: Loaded configuration dictionary

        Returns:
            Merged configuration with defaults
        """
        def deep_merge(base: dict, updates: dict) -> dict:
            """Recursively merge two dictionaries, with updates taking precedence."""
            result = copy.deepcopy(base)
            for key, value in updates.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value
            return result

        return deep_merge(DEFAULT_CONFIG, config)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., "processing.thumbnail_height")
            default: Default value to return if key not found or unset

        Returns:
            Configuration value or default

        Examples:
            >>> config.get("processing.jpeg_quality")
            90
            >>> config.get("nonexistent.key", "default_value")
            'default_value'
        """
        value = self._get_nested_value(self.config, key)
        return value if value is not None else default

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key: Configuration key (e.g., "gallery.title")
            value: Value to set
        """
        self._set_nested_value(self.config, key, value)

    def processing_options(self) -> ProcessingOptions:
        """Build validated processing options from the ``processing`` section.

        Returns:
            ProcessingOptions instance

        Raises:
            ConfigError: If a value has the wrong type or is out of range
        """
        max_large_size = self.get("processing.max_large_size")
        workers = self.get("processing.workers")
        try:
            return ProcessingOptions(
                thumbnail_height=int(self.get("processing.thumbnail_height", 300)),
                max_large_size=int(max_large_size) if max_large_size is not None else None,
                resize_include_panorama=bool(self.get("processing.resize_include_panorama", False)),
                skip_processing=bool(self.get("processing.skip_processing", False)),
                panorama_threshold=float(self.get("processing.panorama_threshold", 2.0)),
                jpeg_quality=int(self.get("processing.jpeg_quality", 90)),
                workers=int(workers) if workers is not None else None,
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid processing configuration: {e}") from e

    @staticmethod
    def _get_nested_value(config: Dict[str, Any], key: str) -> Any:
        """Get value from nested dictionary using dot notation.

        Args:
            config: Configuration dictionary
            key: Dot-separated key path

        Returns:
            Value at key path, or None if not found
        """
        keys = key.split(".")
        value = config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return None

        return value

    @staticmethod
    def _set_nested_value(config: Dict[str, Any], key: str, value: Any) -> None:
        """Set value in nested dictionary using dot notation.

        Args:
            config: Configuration dictionary
            key: Dot-separated key path
            value: Value to set
        """
        keys = key.split(".")
        current = config

        for k in keys[:-1]:
            if k not in current or not isinstance(current[k], dict):
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

    def save(self, path: Optional[str] = None) -> None:
        """Save current configuration to file.

        Args:
            path: Path to save configuration (uses loaded path if not specified)

        Raises:
            ConfigError: If path is not specified and no config was loaded
        """
        save_path = Path(path) if path else self.config_path

        if not save_path:
            raise ConfigError(
                "No configuration path specified. "
                "Provide a path or load config from a file first."
            )

        self._save_yaml(self.config, save_path)
        logger.info(f"Configuration saved to: {save_path}")

    def to_dict(self) -> Dict[str, Any]:
        """Return a copy of the configuration as dictionary."""
        return copy.deepcopy(self.config)

    def __repr__(self) -> str:
        """Return string representation of configuration."""
        path_str = f" from {self.config_path}" if self.config_path else ""
        return f"<ConfigManager{path_str}>"
