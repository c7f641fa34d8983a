# Copyright 2025 Amazon.com, Inc. or its affiliates.
# SPDX-License-Identifier: Apache-2.0

"""
Layered configuration for the conformance engine.

Each component reads one section (analysis, applicability, versioning,
database). A section resolves as defaults, then persistent user config, then
ACR_<SECTION>_<KEY> environment variables, then per-call options.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from copy import deepcopy

import yaml

from accessibility_conformance.utils.logging_helper import (
    setup_logger,
    ConfigurationError,
)

# Configure module-level logger
logger = setup_logger(__name__)


DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    # Conformance analysis defaults
    "analysis": {
        "default_edition": "VPAT2.5-WCAG",
        "create_version_snapshot": True,
        "max_findings": 5,
        "remediation_bonus_cap": 15,
    },
    # Applicability (N/A) detection defaults
    "applicability": {
        "enabled": True,
        "max_fragments": 50,
    },
    # Report versioning defaults
    "versioning": {
        "max_attempts": 3,
        "retry_backoff_seconds": 0.1,
        "remarks_preview_length": 100,
    },
    # Persistence defaults
    "database": {
        "url": "sqlite:///acr_conformance.db",
        "echo": False,
    },
}


class ConfigManager:
    """Resolves configuration sections for the engine components."""

    def __init__(
        self, defaults: Optional[Dict[str, Any]] = None, env_prefix: str = "ACR_"
    ):
        """
        Initialize a configuration manager.

        Args:
            defaults: Dictionary of default options
            env_prefix: Prefix for environment variables
        """
        self.defaults = defaults or {}
        self.env_prefix = env_prefix
        self.user_config: Dict[str, Any] = {}

    def get_config(
        self, user_options: Optional[Dict[str, Any]] = None, section: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Resolve the configuration, or one section of it.

        Args:
            user_options: User-provided option overrides
            section: Optional section name to retrieve (e.g., 'analysis', 'versioning')

        Returns:
            Dict with the resolved configuration options
        """
        if section and section in self.defaults:
            config = deepcopy(self.defaults[section])
        else:
            config = deepcopy(self.defaults)

        if section and section in self.user_config:
            config.update(self.user_config[section])
        elif not section:
            for key, value in self.user_config.items():
                if isinstance(value, dict) and isinstance(config.get(key), dict):
                    config[key].update(value)
                else:
                    config[key] = value

        if section:
            self._apply_env_vars(config, section)

        # Runtime user options have the highest precedence
        if user_options:
            config.update(user_options)

        return config

    def update_defaults(
        self, new_defaults: Dict[str, Any], section: Optional[str] = None
    ) -> None:
        """
        Update default configuration values.

        Args:
            new_defaults: Dictionary of new default values
            section: Optional section to update
        """
        if section:
            self.defaults.setdefault(section, {}).update(new_defaults)
        else:
            self.defaults.update(new_defaults)

    def set_user_config(self, config: Dict[str, Any], section: Optional[str] = None) -> None:
        """
        Store user configuration that applies to every later lookup, e.g. from --config.

        Args:
            config: Dictionary of configuration options
            section: Optional section name
        """
        if section:
            self.user_config.setdefault(section, {}).update(config)
            return

        for key, value in config.items():
            if isinstance(value, dict):
                self.user_config.setdefault(key, {}).update(value)
            else:
                self.user_config[key] = value

    def reset(self) -> None:
        """Drop persistent user configuration."""
        self.user_config = {}

    def _apply_env_vars(self, config: Dict[str, Any], section: str) -> None:
        """
        Apply relevant environment variables to a configuration section.

        Args:
            config: Configuration dictionary to update
            section: Section name scoping the environment variables
        """
        prefix = f"{self.env_prefix}{section.upper()}_"

        for env_var, value in os.environ.items():
            if not env_var.startswith(prefix):
                continue

            option_name = env_var[len(prefix):].lower()
            converted: Any = value

            # Convert to the same type as the default where one exists
            if option_name in config and config[option_name] is not None:
                existing_type = type(config[option_name])
                try:
                    if existing_type is bool:
                        converted = value.lower() in ("true", "1", "yes", "y")
                    elif existing_type is int:
                        converted = int(value)
                    elif existing_type is float:
                        converted = float(value)
                    elif existing_type is list:
                        converted = [item.strip() for item in value.split(",")]
                except (ValueError, TypeError):
                    logger.warning(
                        "Could not convert environment variable %s to %s",
                        env_var,
                        existing_type.__name__,
                    )
                    continue

            config[option_name] = converted
            logger.debug("Applied environment variable %s", env_var)


def load_config_file(file_path: str) -> Dict[str, Any]:
    """
    Load configuration from a file.

    Supports YAML (.yaml, .yml) and JSON (.json) formats.

    Args:
        file_path: Path to the configuration file

    Returns:
        Dictionary with configuration options

    Raises:
        ConfigurationError: If file cannot be loaded or parsed
    """
    path = Path(file_path)

    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {file_path}")

    suffix = path.suffix.lower()
    if suffix not in (".yaml", ".yml", ".json"):
        raise ConfigurationError(
            f"Unsupported configuration file format: {path.suffix}. "
            "Supported formats: YAML (.yaml, .yml), JSON (.json)"
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            if suffix == ".json":
                loaded = json.load(f)
            else:
                loaded = yaml.safe_load(f) or {}
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Error parsing configuration file: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Error loading configuration file: {e}") from e

    if not isinstance(loaded, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping, got {type(loaded).__name__}"
        )
    return loaded


def save_config(config: Dict[str, Any], file_path: str, file_format: str = "yaml") -> None:
    """
    Save configuration to a file.

    Args:
        config: Configuration dictionary
        file_path: Path to save the configuration file
        file_format: File format ('yaml' or 'json')

    Raises:
        ConfigurationError: If file cannot be written
    """
    if file_format.lower() not in ("yaml", "json"):
        raise ConfigurationError(f"Unsupported format: {file_format}")

    try:
        with open(file_path, "w", encoding="utf-8") as f:
            if file_format.lower() == "yaml":
                yaml.safe_dump(config, f, default_flow_style=False)
            else:
                json.dump(config, f, indent=2)
    except OSError as e:
        raise ConfigurationError(f"Error saving configuration: {e}") from e

    logger.info("Configuration saved to %s", file_path)


# Global instance for shared configuration
config_manager = ConfigManager(deepcopy(DEFAULT_CONFIG))
