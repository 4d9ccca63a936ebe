import importlib.metadata

try:
    __version__ = importlib.metadata.version("jetworker")
except importlib.metadata.PackageNotFoundError:
    # Running from a source checkout without an installed distribution
    __version__ = "0.0.0"

from .connection import (
    Connection,
    MessageMetadata,
    NatsConnection,
    QueueBinding,
    begin_worker_loop,
    close_connection,
    get_connection,
)
from .events import EventBus, get_event_bus, on_event, trigger_event
from .exceptions import (
    ConfigurationError,
    JetworkerConnectionError,
    JetworkerException,
    JobNotFoundError,
    JobNotPresentError,
    SerializationError,
    WorkerError,
)
from .job import AbstractJob, JobSpec, JobStyle, ListeningOptions, register_job
from .requirements import follow_job_requirements
from .worker import Worker

# Import CLI app to make it available via jetworker.cli
from .cli import app

__all__ = [
    "__version__",
    "AbstractJob",
    "Connection",
    "ConfigurationError",
    "EventBus",
    "JetworkerConnectionError",
    "JetworkerException",
    "JobNotFoundError",
    "JobNotPresentError",
    "JobSpec",
    "JobStyle",
    "ListeningOptions",
    "MessageMetadata",
    "NatsConnection",
    "QueueBinding",
    "SerializationError",
    "Worker",
    "WorkerError",
    "app",
    "begin_worker_loop",
    "close_connection",
    "follow_job_requirements",
    "get_connection",
    "get_event_bus",
    "on_event",
    "register_job",
    "trigger_event",
]
