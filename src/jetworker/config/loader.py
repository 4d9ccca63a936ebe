# src/jetworker/config/loader.py
"""
Configuration loading logic for jetworker.

Loads configuration from multiple sources with proper priority ordering and
merging. Supports YAML files, environment variables and default values with
environment variable interpolation.
"""

import os
import re
from copy import deepcopy
from pathlib import Path
from typing import Optional, Dict, Any, List

import yaml
from loguru import logger

from .defaults import get_default_config, ENVIRONMENT_VARIABLE_MAPPINGS
from ..exceptions import ConfigurationError


def merge_configurations(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge two configuration dictionaries.

    The override configuration takes precedence. Lists are replaced entirely,
    not merged.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        return deepcopy(override)

    result = deepcopy(base)
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge_configurations(result[key], value)
        else:
            result[key] = deepcopy(value)
    return result


# ${VAR} or ${VAR:default}
_ENV_REFERENCE = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def parse_env_value(value: str) -> Any:
    """Read an environment string as a YAML scalar: "1" -> 1, "off" -> False."""
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError:
        return value
    if parsed is None or isinstance(parsed, (dict, list)):
        return value
    return parsed


def read_config_file(path: Path) -> Dict[str, Any]:
    """
    Parse a YAML config file after expanding ``${VAR}`` references.

    Raises:
        ConfigurationError: If the file is not valid YAML or not a mapping
    """
    def expand(match):
        return os.getenv(match.group(1).strip(), (match.group(2) or "").strip())

    try:
        config = yaml.safe_load(_ENV_REFERENCE.sub(expand, path.read_text(encoding="utf-8")))
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Top level of {path} must be a mapping")
    return config


class ConfigLoader:
    """
    Loads configuration from multiple sources with priority.

    Configuration sources in order of priority (highest to lowest):
    1. Explicit config file (via config_path parameter)
    2. Current directory: ./jetworker.yaml or ./jetworker.yml
    3. User config: ~/.jetworker/config.yaml
    4. System config: /etc/jetworker/config.yaml
    5. Environment variables: JETWORKER_* variables
    6. Built-in defaults
    """

    DEFAULT_CONFIG_PATHS = [
        Path.cwd() / "jetworker.yaml",
        Path.cwd() / "jetworker.yml",
        Path.home() / ".jetworker" / "config.yaml",
        Path("/etc/jetworker/config.yaml"),
    ]

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self._loaded_files: List[Path] = []

    def load_config(self) -> Dict[str, Any]:
        """
        Load configuration from all sources with proper priority.

        Returns:
            Merged configuration dictionary

        Raises:
            ConfigurationError: If configuration loading fails
        """
        logger.debug("Loading jetworker configuration from all sources")

        config = get_default_config()

        for file_config in self._load_file_configs():
            config = merge_configurations(config, file_config)

        env_config = self._load_env_variables()
        if env_config:
            logger.debug(f"Loading environment variable overrides: {list(env_config.keys())}")
            config = merge_configurations(config, env_config)

        logger.debug(
            f"Configuration loaded successfully (files: {[str(f) for f in self._loaded_files]})"
        )
        return config

    def _load_file_configs(self) -> List[Dict[str, Any]]:
        if self.config_path:
            if not self.config_path.exists():
                raise ConfigurationError(f"Specified config file not found: {self.config_path}")
            candidates = [self.config_path]
        else:
            candidates = [path for path in self.DEFAULT_CONFIG_PATHS if path.exists()][:1]

        configs = []
        for path in candidates:
            config = read_config_file(path)
            if config:
                configs.append(config)
                self._loaded_files.append(path)
                logger.info(f"Loaded config file: {path}")
        return configs

    def _load_env_variables(self) -> Dict[str, Any]:
        defaults = get_default_config()
        env_config: Dict[str, Any] = {}

        for env_var, config_path in ENVIRONMENT_VARIABLE_MAPPINGS.items():
            value = os.getenv(env_var)
            if value is None:
                continue
            section, key = config_path.split(".")
            parsed = parse_env_value(value)
            if isinstance(defaults[section][key], list):
                parsed = [parsed]
            env_config.setdefault(section, {})[key] = parsed
            logger.debug(f"Environment variable {env_var}={value} -> {config_path}")

        return env_config

    def get_loaded_files(self) -> List[Path]:
        return self._loaded_files.copy()
