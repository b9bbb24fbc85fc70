"""
Configuration primitives for the AC baseline library.

Every config section is a dataclass that validates itself and round-trips
through a plain dictionary. BaseConfig adds YAML and JSON files, picking the
format from the file suffix, and reports every file problem as a
ConfigurationError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union
import json
import logging

import yaml

from ..exceptions import ConfigurationError

logger = logging.getLogger("acbaseline.config")


class ConfigFormat(Enum):
    """Supported configuration file formats."""
    YAML = "yaml"
    JSON = "json"

    @classmethod
    def from_path(cls, file_path: Union[str, Path]) -> "ConfigFormat":
        """Format implied by a file suffix (.yaml, .yml or .json)."""
        suffix = Path(file_path).suffix.lower()
        if suffix in (".yaml", ".yml"):
            return cls.YAML
        if suffix == ".json":
            return cls.JSON
        raise ConfigurationError(
            f"Unsupported configuration file type '{suffix or '(none)'}' for {file_path}; "
            f"use .yaml, .yml or .json"
        )


class ValidationLevel(Enum):
    """How the engine treats an invalid configuration."""
    STRICT = "strict"      # raise ConfigurationError
    WARN = "warn"          # log and continue
    PERMISSIVE = "permissive"  # skip validation

    @classmethod
    def parse(cls, value: Union[str, "ValidationLevel"]) -> "ValidationLevel":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(level.value for level in cls)
            raise ConfigurationError(f"Unknown validation level '{value}'. Must be one of: {valid}")


@dataclass
class ConfigValidationResult:
    """Errors and warnings collected while validating a configuration."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def extend(self, other: 'ConfigValidationResult', prefix: str = "") -> None:
        """Fold another result into this one, prefixing its messages."""
        label = f"{prefix}: " if prefix else ""
        for error in other.errors:
            self.add_error(f"{label}{error}")
        for warning in other.warnings:
            self.add_warning(f"{label}{warning}")


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``overrides`` into ``base`` section by section."""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(merged.get(key), Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class BaseConfig(ABC):
    """Base class for file-backed configuration objects."""

    @abstractmethod
    def validate(self) -> ConfigValidationResult:
        """Validate the configuration."""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        pass

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaseConfig':
        """Create configuration from dictionary."""
        pass

    @staticmethod
    def section(data: Mapping[str, Any], name: str) -> Dict[str, Any]:
        """A nested section of ``data``; missing or empty sections read as ``{}``."""
        value = data.get(name)
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ConfigurationError(
                f"Configuration section '{name}' must be a mapping, got {type(value).__name__}"
            )
        return dict(value)

    def save_to_file(
        self,
        file_path: Union[str, Path],
        format: Optional[ConfigFormat] = None
    ) -> Path:
        """Write the configuration; the format defaults to the one the suffix implies."""
        file_path = Path(file_path)
        format = format or ConfigFormat.from_path(file_path)
        data = self.to_dict()

        if format is ConfigFormat.YAML:
            text = yaml.safe_dump(data, default_flow_style=False, indent=2, sort_keys=False)
        else:
            text = json.dumps(data, indent=2)

        try:
            file_path.write_text(text)
        except OSError as e:
            raise ConfigurationError(f"Could not write configuration to {file_path}: {e}")

        logger.debug(f"Saved {format.value} configuration to {file_path}")
        return file_path

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> 'BaseConfig':
        """Read a YAML or JSON configuration file.

        Raises:
            ConfigurationError: unknown suffix, unreadable or unparseable
                file, or a document that is not a mapping
        """
        file_path = Path(file_path)
        format = ConfigFormat.from_path(file_path)

        try:
            text = file_path.read_text()
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {file_path}")
        except OSError as e:
            raise ConfigurationError(f"Could not read configuration {file_path}: {e}")

        try:
            data = yaml.safe_load(text) if format is ConfigFormat.YAML else json.loads(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not parse {format.value} configuration {file_path}: {e}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration {file_path} must contain a mapping, got {type(data).__name__}"
            )

        logger.debug(f"Loaded configuration from {file_path}")
        return cls.from_dict(data)

    def merge(self, overrides: Union['BaseConfig', Mapping[str, Any]]) -> 'BaseConfig':
        """Copy of this configuration with ``overrides`` applied.

        A mapping overrides only the keys it names; another config overrides
        every key.
        """
        if isinstance(overrides, BaseConfig):
            overrides = overrides.to_dict()
        return self.__class__.from_dict(deep_merge(self.to_dict(), overrides))
