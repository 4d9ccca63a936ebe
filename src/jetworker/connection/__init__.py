"""
NATS connection management for jetworker workers.
"""

from .base import Connection, MessageMetadata, QueueBinding
from .client import NatsConnection
from .manager import (
    begin_worker_loop,
    close_connection,
    current_connection,
    get_connection,
    set_connection,
)
from .reactor import Reactor
from .streams import ensure_stream

__all__ = [
    "Connection",
    "MessageMetadata",
    "QueueBinding",
    "NatsConnection",
    "Reactor",
    "ensure_stream",
    "begin_worker_loop",
    "close_connection",
    "current_connection",
    "get_connection",
    "set_connection",
]
