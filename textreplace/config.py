"""
Configuration for textreplace runs.

Settings come from built-in defaults, an optional YAML or JSON file,
environment variables and finally command-line flags, each layer
overriding the one before it.
"""

import codecs
import copy
import os
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union, Any

import yaml

from .core.errors import ConfigError


CONFIG_ENV_VAR = "TEXTREPLACE_CONFIG"

CONFIG_FILE_NAMES = [
    ".textreplace.yml",
    ".textreplace.yaml",
    "textreplace.yml",
    "textreplace.yaml",
]


@dataclass(frozen=True)
class ProcessingOptions:
    """Flags shared by the line processor and the file handling."""

    silent: bool = False  # Suppress non-error status messages
    verbose: bool = False  # Report replaced lines and converted files


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ["1", "true", "yes", "on"]


class Config:
    """Configuration manager for textreplace."""

    DEFAULT_CONFIG = {
        "options": {
            "silent": False,
            "verbose": False
        },
        "io": {
            "encoding": "utf-8",
            "errors": "surrogateescape"
        },
        "files": {
            "backup_suffix": None,
            "jobs": 1
        },
        "logging": {
            "level": "WARNING",
            "file": False,
            "json": True,
            "log_dir": None
        }
    }

    # Environment variable -> (config key, converter)
    ENV_OVERRIDES = {
        "TEXTREPLACE_SILENT": ("options.silent", _parse_bool),
        "TEXTREPLACE_VERBOSE": ("options.verbose", _parse_bool),
        "TEXTREPLACE_ENCODING": ("io.encoding", str),
        "TEXTREPLACE_JOBS": ("files.jobs", int),
        "TEXTREPLACE_LOG_LEVEL": ("logging.level", str),
    }

    def __init__(self, config_dict: Optional[Dict] = None, source: Optional[Path] = None):
        """Initialize with optional config dictionary."""
        self.config = self._merge_configs(copy.deepcopy(self.DEFAULT_CONFIG), config_dict or {})
        self.source = source

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Config":
        """Load configuration from a file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}", {"path": str(path)})

        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix in [".yaml", ".yml"]:
                    data = yaml.safe_load(f) or {}
                elif path.suffix == ".json":
                    data = json.load(f)
                else:
                    raise ConfigError(f"Unsupported config format: {path.suffix}", {"path": str(path)})
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Invalid configuration file {path}: {e}", {"path": str(path)}) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping", {"path": str(path)})

        return cls(data, source=path)

    @classmethod
    def find_and_load(cls, start_path: Path) -> "Config":
        """Find and load configuration from standard locations."""
        env_path = os.getenv(CONFIG_ENV_VAR)
        if env_path:
            return cls.from_file(env_path)

        # Look for .textreplace.yml in current and parent directories
        current = Path(start_path).resolve()

        while True:
            for name in CONFIG_FILE_NAMES:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        # Return default config if no file found
        return cls()

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None,
             start_path: Optional[Path] = None) -> "Config":
        """
        Load an explicit file or search for one, then apply environment overrides.

        Values are not validated here; call ``validate`` once every override
        has been applied.
        """
        if config_path:
            config = cls.from_file(config_path)
        else:
            config = cls.find_and_load(start_path or Path.cwd())
        config.apply_environment_overrides()
        return config

    def get(self, key: str, default=None):
        """Get configuration value by dot-separated key."""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value):
        """Set configuration value by dot-separated key."""
        keys = key.split(".")
        config = self.config

        # Navigate to the parent of the target key
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        # Set the final key
        config[keys[-1]] = value

    def get_environment_overrides(self) -> Dict[str, Any]:
        """Get configuration overrides from environment variables."""
        overrides = {}

        for env_var, (config_key, config_type) in self.ENV_OVERRIDES.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                try:
                    overrides[config_key] = config_type(env_value)
                except ValueError as e:
                    raise ConfigError(
                        f"Invalid environment variable {env_var}={env_value}: {e}"
                    ) from e

        return overrides

    def apply_environment_overrides(self) -> None:
        """Apply environment variable overrides in place."""
        for key, value in self.get_environment_overrides().items():
            self.set(key, value)

    def validate(self) -> None:
        """
        Check option values.

        Raises:
            ConfigError: If any value is out of range or of the wrong type
        """
        jobs = self.get("files.jobs", 1)
        if not isinstance(jobs, int) or isinstance(jobs, bool) or jobs < 1:
            raise ConfigError(f"files.jobs must be a positive integer, got {jobs!r}")

        level = self.get("logging.level", "WARNING")
        if not isinstance(level, str) or not isinstance(logging.getLevelName(level.upper()), int):
            raise ConfigError(f"Unknown logging level: {level!r}")

        suffix = self.get("files.backup_suffix")
        if suffix is not None and (not isinstance(suffix, str) or not suffix):
            raise ConfigError(f"files.backup_suffix must be a non-empty string, got {suffix!r}")

        encoding = self.get("io.encoding")
        if not isinstance(encoding, str) or not encoding:
            raise ConfigError(f"io.encoding must be a non-empty string, got {encoding!r}")
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise ConfigError(f"Unknown encoding: {encoding}") from e

        errors = self.get("io.errors", "strict")
        if not isinstance(errors, str):
            raise ConfigError(f"io.errors must be a string, got {errors!r}")
        try:
            codecs.lookup_error(errors)
        except LookupError as e:
            raise ConfigError(f"Unknown encoding error handler: {errors}") from e

    def processing_options(self) -> ProcessingOptions:
        """Build the options value handed to the processors."""
        return ProcessingOptions(
            silent=bool(self.get("options.silent", False)),
            verbose=bool(self.get("options.verbose", False)),
        )

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return self.config.copy()

    def _merge_configs(self, base: Dict, override: Dict) -> Dict:
        """Recursively merge configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result
