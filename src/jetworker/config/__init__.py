# src/jetworker/config/__init__.py
"""
jetworker configuration system.

Hierarchical configuration loading (YAML files → environment variables →
defaults) with validation.

Usage:
    from jetworker.config import load_config, get_config, reload_config

    config = load_config()
    config = load_config("/path/to/config.yaml")
    config = get_config()
"""

from contextlib import contextmanager
from typing import Optional, Dict, Any

from .loader import ConfigLoader, merge_configurations
from .types import JetworkerConfig
from .defaults import get_default_config
from ..exceptions import ConfigurationError

# Global configuration instance
_config_instance: Optional[JetworkerConfig] = None
_config_path: Optional[str] = None


def load_config(config_path: Optional[str] = None, validate: bool = True) -> JetworkerConfig:
    """
    Load and return configuration from all sources.

    Args:
        config_path: Optional path to specific configuration file
        validate: Whether to validate the resulting configuration

    Returns:
        Loaded JetworkerConfig instance

    Raises:
        ConfigurationError: If configuration is invalid or cannot be loaded
    """
    global _config_instance, _config_path

    if _config_instance is None or _config_path != config_path:
        loader = ConfigLoader(config_path)
        config = JetworkerConfig.from_dict(loader.load_config())

        if validate:
            errors = config.validate()
            if errors:
                error_msg = "Configuration validation failed:\n" + "\n".join(f"- {error}" for error in errors)
                raise ConfigurationError(error_msg)

        _config_instance = config
        _config_path = config_path

    return _config_instance


def get_config() -> JetworkerConfig:
    """Get the current configuration, loading it from default sources if needed."""
    if _config_instance is None:
        return load_config()
    return _config_instance


def reload_config(config_path: Optional[str] = None) -> JetworkerConfig:
    """Drop the cached configuration and load it again."""
    global _config_instance, _config_path
    _config_instance = None
    _config_path = None
    return load_config(config_path)


@contextmanager
def temp_config(config_dict: Dict[str, Any]):
    """
    Temporarily override configuration for testing.

    Usage:
        with temp_config({"nats": {"servers": ["nats://test:4222"]}}):
            config = get_config()
            assert config.nats.servers[0] == "nats://test:4222"
    """
    global _config_instance
    original = _config_instance
    _config_instance = JetworkerConfig.from_dict(merge_configurations(get_default_config(), config_dict))
    try:
        yield _config_instance
    finally:
        _config_instance = original


__all__ = [
    "load_config",
    "get_config",
    "reload_config",
    "temp_config",
    "JetworkerConfig",
    "ConfigLoader",
    "get_default_config",
]
