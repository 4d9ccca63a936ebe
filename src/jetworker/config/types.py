# src/jetworker/config/types.py
"""
Configuration type definitions for jetworker.

Typed dataclasses for all configuration sections.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Union


@dataclass
class NatsConfig:
    """NATS server connection configuration."""
    servers: List[str] = field(default_factory=lambda: ["nats://localhost:4222"])
    client_name: str = "jetworker"
    max_reconnect_attempts: int = 5
    reconnect_time_wait: float = 2.0
    connection_timeout: float = 10.0
    drain_timeout: float = 30.0

    def get_primary_server(self) -> str:
        """Get the primary NATS server URL."""
        return self.servers[0] if self.servers else "nats://localhost:4222"


@dataclass
class QueuesConfig:
    """Defaults applied when a job does not declare its own queue settings."""
    prefix: str = "jetworker"
    ack_wait: int = 60
    prefetch: int = 10
    deliver_policy: str = "all"


@dataclass
class WorkerConfig:
    """Worker process configuration."""
    jobs: List[str] = field(default_factory=list)
    pidfile: Optional[str] = None


@dataclass
class SerializationConfig:
    """Serialization configuration."""
    payload_serializer: str = "json"  # or "pickle"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None  # None = stderr only

    def get_effective_level(self) -> str:
        return self.level.upper()


VALID_DELIVER_POLICIES = ("all", "new", "last")
VALID_SERIALIZERS = ("json", "pickle")


@dataclass
class JetworkerConfig:
    """
    Complete jetworker configuration.

    Root configuration object containing all sections.
    """
    nats: NatsConfig = field(default_factory=NatsConfig)
    queues: QueuesConfig = field(default_factory=QueuesConfig)
    worker: WorkerConfig = field(default_factory=WorkerConfig)
    serialization: SerializationConfig = field(default_factory=SerializationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JetworkerConfig":
        """
        Create JetworkerConfig from a dictionary.

        Unknown keys are ignored.
        """
        def create_dataclass(dataclass_type, data_dict):
            if not isinstance(data_dict, dict):
                return data_dict

            field_types = {f.name: f.type for f in dataclass_type.__dataclass_fields__.values()}
            kwargs = {}

            for key, value in data_dict.items():
                if key not in field_types:
                    continue
                field_type = field_types[key]

                # Unwrap Optional[T]
                if getattr(field_type, "__origin__", None) is Union:
                    args = [a for a in field_type.__args__ if a is not type(None)]
                    if len(args) == 1:
                        field_type = args[0]

                if hasattr(field_type, "__dataclass_fields__"):
                    kwargs[key] = create_dataclass(field_type, value)
                else:
                    kwargs[key] = value

            return dataclass_type(**kwargs)

        return create_dataclass(cls, data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a nested dictionary."""
        def convert_dataclass(obj):
            if hasattr(obj, "__dataclass_fields__"):
                return {name: convert_dataclass(getattr(obj, name)) for name in obj.__dataclass_fields__}
            if isinstance(obj, dict):
                return {k: convert_dataclass(v) for k, v in obj.items()}
            if isinstance(obj, list):
                return [convert_dataclass(item) for item in obj]
            return obj

        return convert_dataclass(self)

    def get_nested(self, path: str, default: Any = None) -> Any:
        """
        Get nested configuration value using dot notation.

        Examples:
            config.get_nested("nats.servers[0]")
            config.get_nested("queues.prefetch")
        """
        obj = self
        for part in path.split("."):
            try:
                if "[" in part and part.endswith("]"):
                    attr_name = part[: part.index("[")]
                    index = int(part[part.index("[") + 1 : -1])
                    obj = getattr(obj, attr_name)[index]
                else:
                    obj = getattr(obj, part)
            except (AttributeError, ValueError, IndexError, TypeError):
                return default
        return obj

    def validate(self) -> List[str]:
        """
        Validate configuration and return a list of issues.

        Returns:
            List of validation error messages (empty if valid)
        """
        issues = []

        if not self.nats.servers:
            issues.append("NATS servers list cannot be empty")
        for server in self.nats.servers:
            if not str(server).startswith(("nats://", "tls://", "ws://", "wss://")):
                issues.append(f"Invalid NATS server URL: {server}")

        if self.queues.prefetch < 1:
            issues.append("Queue prefetch must be at least 1")
        if self.queues.ack_wait < 1:
            issues.append("Queue ack_wait must be at least 1 second")
        if self.queues.deliver_policy not in VALID_DELIVER_POLICIES:
            issues.append(f"Invalid deliver policy: {self.queues.deliver_policy}")

        if self.serialization.payload_serializer not in VALID_SERIALIZERS:
            issues.append(f"Invalid payload serializer: {self.serialization.payload_serializer}")

        if self.logging.get_effective_level() not in (
            "TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"
        ):
            issues.append(f"Invalid log level: {self.logging.level}")

        return issues
