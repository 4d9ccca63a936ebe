# src/jetworker/config/defaults.py
"""
Default configuration values for jetworker.

These values are used when no other configuration source (YAML files,
environment variables) provides a value for a specific setting.
"""

from typing import Dict, Any


def get_default_config() -> Dict[str, Any]:
    """
    Get the complete default configuration dictionary.

    Returns:
        Complete default configuration dictionary
    """
    return {
        "nats": {
            "servers": ["nats://localhost:4222"],
            "client_name": "jetworker",
            "max_reconnect_attempts": 5,
            "reconnect_time_wait": 2.0,
            "connection_timeout": 10.0,
            "drain_timeout": 30.0,
        },

        "queues": {
            "prefix": "jetworker",
            "ack_wait": 60,
            "prefetch": 10,
            "deliver_policy": "all",
        },

        "worker": {
            "jobs": [],
            "pidfile": None,
        },

        "serialization": {
            "payload_serializer": "json",
        },

        "logging": {
            "level": "INFO",
            "file": None,  # stderr only
        },
    }


# Maps environment variables onto dotted configuration paths
ENVIRONMENT_VARIABLE_MAPPINGS = {
    # NATS configuration
    "JETWORKER_NATS_URL": "nats.servers",
    "JETWORKER_CLIENT_NAME": "nats.client_name",
    "JETWORKER_MAX_RECONNECT_ATTEMPTS": "nats.max_reconnect_attempts",
    "JETWORKER_RECONNECT_TIME_WAIT": "nats.reconnect_time_wait",
    "JETWORKER_CONNECTION_TIMEOUT": "nats.connection_timeout",
    "JETWORKER_DRAIN_TIMEOUT": "nats.drain_timeout",

    # Queue configuration
    "JETWORKER_QUEUE_PREFIX": "queues.prefix",
    "JETWORKER_ACK_WAIT": "queues.ack_wait",
    "JETWORKER_PREFETCH": "queues.prefetch",
    "JETWORKER_DELIVER_POLICY": "queues.deliver_policy",

    # Worker configuration
    "JETWORKER_PIDFILE": "worker.pidfile",

    # Serialization
    "JETWORKER_PAYLOAD_SERIALIZER": "serialization.payload_serializer",

    # Logging
    "JETWORKER_LOG_LEVEL": "logging.level",
    "JETWORKER_LOG_FILE": "logging.file",
}
