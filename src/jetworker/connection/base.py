# src/jetworker/connection/base.py
"""
The connection contract a Worker consumes, plus the value types passed
across it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from nats.errors import NotJSMessageError

MessageCallback = Callable[[Any, "MessageMetadata"], None]


@dataclass(frozen=True)
class QueueBinding:
    """
    A JetStream-backed queue.

    Attributes:
        name: Logical queue name.
        subject: Subject messages for this queue are published on.
        stream: Stream that stores the subject.
        consumer: Default durable consumer name.
        stream_subjects: Subjects the stream is created with.
        stream_options: Extra StreamConfig fields used when creating the stream.
    """

    name: str
    subject: str
    stream: str
    consumer: str
    stream_subjects: Tuple[str, ...] = ()
    stream_options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MessageMetadata:
    """Delivery information handed to a job next to the decoded payload."""

    subject: str
    reply: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    stream: Optional[str] = None
    consumer: Optional[str] = None
    stream_sequence: Optional[int] = None
    consumer_sequence: Optional[int] = None
    num_delivered: Optional[int] = None
    num_pending: Optional[int] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_msg(cls, msg: Any) -> "MessageMetadata":
        metadata = cls(subject=msg.subject, reply=msg.reply or None, headers=dict(msg.headers or {}))
        try:
            js_meta = msg.metadata
        except NotJSMessageError:
            return metadata

        metadata.stream = js_meta.stream
        metadata.consumer = js_meta.consumer
        metadata.stream_sequence = js_meta.sequence.stream
        metadata.consumer_sequence = js_meta.sequence.consumer
        metadata.num_delivered = js_meta.num_delivered
        metadata.num_pending = js_meta.num_pending
        metadata.timestamp = js_meta.timestamp
        return metadata


class Connection(ABC):
    """
    Asynchronous transport used by a Worker.

    Every method only schedules work on the connection's reactor and returns
    immediately.
    """

    @abstractmethod
    def listen_queue(self, queue: QueueBinding, options: Any, on_message: MessageCallback) -> Any:
        """Subscribe to ``queue``; ``on_message(payload, metadata)`` runs per delivery."""

    @abstractmethod
    def close(self, on_done: Optional[Callable[[], None]] = None) -> Any:
        """Close the connection, then call ``on_done``."""

    @abstractmethod
    def next_tick(self, fn: Callable[[], None]) -> None:
        """Run ``fn`` on the next reactor iteration."""

    def join(self, timeout: Optional[float] = None) -> None:
        """Block until the reactor has stopped."""
