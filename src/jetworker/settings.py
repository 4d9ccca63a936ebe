# src/jetworker/settings.py
"""
Module-level settings for jetworker.

Each value is resolved once, at import, through the chain: loaded
configuration (YAML / environment via jetworker.config) → environment variable
→ built-in default. Queue defaults are read from the live configuration
instead (see jetworker.job and jetworker.requirements).
"""

import os
from typing import Optional

from loguru import logger

from .config import get_config, JetworkerConfig


def _get_config() -> Optional[JetworkerConfig]:
    try:
        return get_config()
    except Exception as e:
        logger.warning(f"Failed to load configuration: {e}")
        return None


_config = _get_config()


def _get_config_value(config_path: str, default_value, env_var: str = None):
    """
    Get a configuration value with fallback chain:
    1. Configuration system
    2. Environment variable (if specified)
    3. Default value
    """
    if _config:
        value = _config.get_nested(config_path)
        if value is not None:
            return value

    if env_var:
        env_value = os.getenv(env_var)
        if env_value is not None:
            return env_value

    return default_value


# Default NATS server URL
DEFAULT_NATS_URL = _get_config_value("nats.servers[0]", "nats://localhost:4222", "JETWORKER_NATS_URL")

# Client name reported to the NATS server
DEFAULT_CLIENT_NAME = _get_config_value("nats.client_name", "jetworker", "JETWORKER_CLIENT_NAME")

# How message payloads are decoded: 'json' (default) or 'pickle'
PAYLOAD_SERIALIZER = _get_config_value(
    "serialization.payload_serializer", "json", "JETWORKER_PAYLOAD_SERIALIZER"
)

# Seconds to wait for the NATS client to drain subscriptions on close
DRAIN_TIMEOUT_SECONDS = float(_get_config_value("nats.drain_timeout", 30.0, "JETWORKER_DRAIN_TIMEOUT"))

# Default log level for the CLI
DEFAULT_LOG_LEVEL = _get_config_value("logging.level", "INFO", "JETWORKER_LOG_LEVEL")

# --- Lifecycle events published on the event bus ---
CONSUMER_ERROR_EVENT = "consumer_error"
CONSUMING_DONE_EVENT = "consuming_done"
