"""
Configuration loader for vcf_client.

This module handles loading configuration from YAML or JSON files, expanding
``${VAR}`` references against the environment, and applying ``VCF_CLIENT_*``
environment variable overrides.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigurationError
from .models import GlobalConfig

logger = logging.getLogger(__name__)

_ENV_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def describe_validation_error(error: PydanticValidationError) -> str:
    """
    Summarize a pydantic validation error without echoing input values.

    Pydantic's default message includes the offending input, which may be a
    password, so only locations and messages are kept.
    """
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)


class ConfigLoader:
    """Configuration loader with support for files and environment overrides."""

    def __init__(self) -> None:
        """Initialize configuration loader."""
        self.config_paths = [
            Path("vcf_client.yaml"),
            Path("vcf_client.yml"),
            Path("vcf_client.json"),
            Path("config/vcf_client.yaml"),
            Path("config/vcf_client.yml"),
            Path("config/vcf_client.json"),
            Path.home() / ".vcf_client" / "config.yaml",
        ]

        # Environment variable prefix
        self.env_prefix = "VCF_CLIENT_"

    def load_config(
        self, config_file: Optional[Union[str, Path]] = None
    ) -> GlobalConfig:
        """
        Load configuration from all available sources.

        Args:
            config_file: Specific config file to load

        Returns:
            GlobalConfig instance with merged configuration

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        config_data: Dict[str, Any] = {}

        file_config = self._load_from_file(config_file)
        if file_config:
            config_data.update(file_config)

        config_data = self._expand_env_references(config_data)

        env_config = self._load_from_environment()
        if env_config:
            config_data = self._deep_merge(config_data, env_config)

        return self.load_from_dict(config_data)

    def load_from_dict(self, config_data: Dict[str, Any]) -> GlobalConfig:
        """Validate a configuration dictionary into a GlobalConfig."""
        try:
            return GlobalConfig(**config_data)
        except PydanticValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration: {describe_validation_error(e)}"
            ) from None

    def _load_from_file(
        self, config_file: Optional[Union[str, Path]] = None
    ) -> Optional[Dict[str, Any]]:
        """Load configuration from file."""
        if config_file:
            config_path = Path(config_file)
            if not config_path.exists():
                raise ConfigurationError(f"Config file not found: {config_path}")
            return self._parse_config_file(config_path)

        for config_path in self.config_paths:
            if config_path.exists():
                logger.debug(f"Using configuration file {config_path}")
                return self._parse_config_file(config_path)

        return None

    def _parse_config_file(self, config_path: Path) -> Dict[str, Any]:
        """Parse configuration file based on extension."""
        suffix = config_path.suffix.lower()
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                if suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f) or {}
                elif suffix == ".json":
                    data = json.load(f) or {}
                else:
                    raise ConfigurationError(
                        f"Unsupported config file format: {config_path.suffix}"
                    )
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to parse config file {config_path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file {config_path} must contain a mapping at the top level"
            )
        return data

    def _expand_env_references(self, value: Any) -> Any:
        """Replace ``${VAR}`` in string values with environment values."""
        if isinstance(value, dict):
            return {k: self._expand_env_references(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._expand_env_references(v) for v in value]
        if isinstance(value, str):
            return _ENV_REFERENCE.sub(self._substitute, value)
        return value

    @staticmethod
    def _substitute(match: "re.Match[str]") -> str:
        name = match.group(1)
        resolved = os.getenv(name)
        if resolved is None:
            raise ConfigurationError(f"Environment variable {name} is not set")
        return resolved

    def _load_from_environment(self) -> Dict[str, Any]:
        """Load configuration overrides from environment variables."""
        config: Dict[str, Any] = {}

        env_mappings = {
            # Logging
            f"{self.env_prefix}LOG_LEVEL": ("logging", "level"),
            f"{self.env_prefix}LOG_FILE": ("logging", "file_path"),
            f"{self.env_prefix}LOG_STRUCTURED": ("logging", "enable_structured"),
            # HTTP
            f"{self.env_prefix}TIMEOUT": ("http", "total_timeout"),
            f"{self.env_prefix}CONNECT_TIMEOUT": ("http", "connect_timeout"),
            f"{self.env_prefix}VERIFY_SSL": ("http", "verify_ssl"),
            # Retry
            f"{self.env_prefix}AUTH_MAX_ATTEMPTS": ("retry", "max_attempts"),
            # Registry
            f"{self.env_prefix}UNKNOWN_INSTANCE_POLICY": ("unknown_instance_policy",),
        }

        for env_var, config_path in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                converted_value = self._convert_env_value(value)

                current = config
                for key in config_path[:-1]:
                    current = current.setdefault(key, {})
                current[config_path[-1]] = converted_value

        return config

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to appropriate type."""
        lower = value.lower()
        if lower in ("true", "yes", "on"):
            return True
        if lower in ("false", "no", "off"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value

    def _deep_merge(
        self, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
