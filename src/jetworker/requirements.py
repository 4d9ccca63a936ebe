# src/jetworker/requirements.py
"""
Maps job types onto the queues they consume.
"""

import re
from typing import Any, Dict, NamedTuple, Optional, Union

from .connection.base import QueueBinding
from .job import JobSpec, resolve_job
from .config import get_config

# Characters NATS does not allow in stream or consumer names
_INVALID_NAME_CHARS = re.compile(r"[.\s*>/\\]")


class QueueRequirements(NamedTuple):
    queue_name: str
    queue_config: Dict[str, Any]
    queue: QueueBinding


def _prefix(prefix: Optional[str]) -> str:
    return prefix or get_config().queues.prefix


def queue_subject(queue_name: str, prefix: Optional[str] = None) -> str:
    """Subject that messages for ``queue_name`` are published on."""
    prefix = _prefix(prefix)
    return f"{prefix}.queue.{queue_name}"


def stream_name(queue_name: str, prefix: Optional[str] = None) -> str:
    prefix = _prefix(prefix)
    return _INVALID_NAME_CHARS.sub("_", f"{prefix}_{queue_name}")


def follow_job_requirements(job: Union[JobSpec, Any], prefix: Optional[str] = None) -> QueueRequirements:
    """
    Work out the queue a job listens on.

    Each queue gets its own stream and a durable consumer named after it.
    Jobs may set ``queue_name`` and ``queue_options`` (extra stream settings).

    Args:
        job: A JobSpec or anything ``resolve_job`` accepts.
        prefix: Subject/stream prefix. Defaults to ``queues.prefix`` from the configuration.
    """
    spec = job if isinstance(job, JobSpec) else resolve_job(job)
    prefix = _prefix(prefix)
    name = spec.queue_name
    config = spec.queue_options
    subject = queue_subject(name, prefix)

    queue = QueueBinding(
        name=name,
        subject=subject,
        stream=stream_name(name, prefix),
        consumer=_INVALID_NAME_CHARS.sub("_", f"{prefix}-worker-{name}"),
        stream_subjects=(subject,),
        stream_options=config,
    )
    return QueueRequirements(name, config, queue)
