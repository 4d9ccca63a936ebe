# src/jetworker/job.py
"""
Job types and job resolution.

A job is any class that exposes ``perform`` in one of two styles:

* class style: ``perform(payload, metadata)`` is a classmethod or staticmethod
  and is called directly on the class;
* instance style: the class is built with ``(payload, metadata)`` and its
  ``perform()`` method is called with no arguments.

Subclassing ``AbstractJob`` is optional; it registers the job under its class
name so workers can be started with plain names.
"""

import inspect
import threading
from dataclasses import dataclass, field, fields
from enum import Enum
from importlib import import_module
from typing import Any, Dict, List, Optional, Sequence, Union

from .exceptions import ConfigurationError, JobNotFoundError
from .config import get_config

JobIdentifier = Union[str, type, Any]


class JobStyle(Enum):
    """How a job's ``perform`` is invoked."""

    CLASS = "class"
    INSTANCE = "instance"


@dataclass(frozen=True)
class ListeningOptions:
    """
    Consumer settings a job needs to bind its queue.

    Attributes:
        consumer_tag: Durable consumer name. Derived from the queue name when unset.
        ack: Acknowledge each message after the job callback returns.
        prefetch: Maximum number of unacknowledged messages in flight.
        ack_wait: Seconds the server waits for an ack before redelivering.
        deliver_policy: Where a new durable consumer starts ('all', 'new', 'last').
    """

    consumer_tag: Optional[str] = None
    ack: bool = True
    # Unset fields fall back to the `queues` section of the current configuration
    prefetch: int = field(default_factory=lambda: get_config().queues.prefetch)
    ack_wait: Optional[float] = field(default_factory=lambda: get_config().queues.ack_wait)
    deliver_policy: str = field(default_factory=lambda: get_config().queues.deliver_policy)

    @classmethod
    def from_value(cls, value: Union[None, Dict[str, Any], "ListeningOptions"]) -> "ListeningOptions":
        """Build options from a job's ``listening_options`` attribute."""
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            known = {f.name for f in fields(cls)}
            unknown = set(value) - known
            if unknown:
                raise ConfigurationError(f"Unknown listening options: {', '.join(sorted(unknown))}")
            return cls(**value)
        raise ConfigurationError(f"listening_options must be a dict, got {type(value).__name__}")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class JobSpec:
    """A resolved job type bound to a worker."""

    name: str
    job: Any
    style: JobStyle
    listening_options: ListeningOptions

    @property
    def queue_name(self) -> str:
        return getattr(self.job, "queue_name", None) or self.name

    @property
    def queue_options(self) -> Dict[str, Any]:
        return dict(getattr(self.job, "queue_options", None) or {})


# --- Registry ---

_registry: Dict[str, type] = {}
_registry_lock = threading.Lock()


def register_job(job: Optional[type] = None, *, name: Optional[str] = None):
    """
    Register a job type under a name. Usable as a decorator.

        @register_job(name="emails")
        class SendEmail:
            @classmethod
            def perform(cls, payload, metadata): ...
    """
    def decorator(cls: type) -> type:
        with _registry_lock:
            _registry[name or getattr(cls, "job_name", None) or cls.__name__] = cls
        return cls

    if job is not None:
        return decorator(job)
    return decorator


def unregister_job(name: str) -> None:
    with _registry_lock:
        _registry.pop(name, None)


def registered_jobs() -> Dict[str, type]:
    with _registry_lock:
        return dict(_registry)


class AbstractJob:
    """
    Optional base class for jobs.

    Subclasses are registered by class name (or ``job_name``) and default to
    instance style. Override ``perform`` as a classmethod for class style.

    Class attributes:
        job_name: Registry name. Defaults to the class name.
        queue_name: Queue to consume. Defaults to the job name.
        queue_options: Stream settings applied when the queue is created.
        listening_options: Dict of ``ListeningOptions`` fields.
    """

    job_name: Optional[str] = None
    queue_name: Optional[str] = None
    queue_options: Dict[str, Any] = {}
    listening_options: Dict[str, Any] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        register_job(cls)

    def __init__(self, payload: Any, metadata: Any):
        self.payload = payload
        self.metadata = metadata

    def perform(self) -> None:
        raise NotImplementedError(f"{type(self).__name__} must implement perform()")


# --- Resolution ---

def detect_style(job: Any) -> Optional[JobStyle]:
    """
    Work out how ``job`` is invoked, or ``None`` if it is not a job.
    """
    if inspect.isclass(job):
        perform = inspect.getattr_static(job, "perform", None)
        if isinstance(perform, (classmethod, staticmethod)):
            return JobStyle.CLASS
        if perform is not None and callable(perform):
            return JobStyle.INSTANCE
        return None

    # Modules, instances and other objects exposing a callable perform
    if callable(getattr(job, "perform", None)):
        return JobStyle.CLASS
    return None


def _import_object(path: str) -> Any:
    if ":" in path:
        module_path, _, attr_path = path.partition(":")
    else:
        module_path, _, attr_path = path.rpartition(".")
    if not module_path or not attr_path:
        raise ImportError(f"'{path}' is not a dotted path")

    obj = import_module(module_path)
    for attr in attr_path.split("."):
        obj = getattr(obj, attr)
    return obj


def load_job(identifier: JobIdentifier) -> Any:
    """
    Look up the object an identifier refers to.

    Strings are looked up in the registry first, then imported as
    ``"package.module.Class"`` or ``"package.module:Class"``.

    Raises:
        JobNotFoundError: If the identifier cannot be resolved.
    """
    if not isinstance(identifier, str):
        return identifier

    job = registered_jobs().get(identifier)
    if job is not None:
        return job

    try:
        return _import_object(identifier)
    except (ImportError, AttributeError) as e:
        raise JobNotFoundError(f"Job '{identifier}' could not be found: {e}") from e
    except Exception as e:
        # Relative paths (TypeError) or a job module failing at import time
        raise JobNotFoundError(f"Job '{identifier}' could not be imported: {type(e).__name__}: {e}") from e


def resolve_job(identifier: JobIdentifier) -> JobSpec:
    """
    Resolve a single identifier into a JobSpec.

    Raises:
        JobNotFoundError: If the identifier does not refer to a job type.
    """
    job = load_job(identifier)
    style = detect_style(job)
    if style is None:
        raise JobNotFoundError(f"Job '{identifier}' does not define perform()")

    name = getattr(job, "job_name", None) or getattr(job, "__name__", None) or str(identifier)
    return JobSpec(
        name=name,
        job=job,
        style=style,
        listening_options=ListeningOptions.from_value(getattr(job, "listening_options", None)),
    )


def resolve_jobs(identifiers: Sequence[JobIdentifier]) -> List[JobSpec]:
    """Resolve identifiers in order. Duplicates are kept."""
    return [resolve_job(identifier) for identifier in identifiers]