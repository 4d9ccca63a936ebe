# src/jetworker/connection/manager.py
"""
The process-wide default connection.

Workers that are not handed a connection share this one; it is created and
connected on first use.
"""

import threading
from typing import Callable, Optional

from loguru import logger

from .base import Connection
from .client import NatsConnection
from ..settings import DEFAULT_NATS_URL

_connection: Optional[Connection] = None
_lock = threading.Lock()


def get_connection(url: str = DEFAULT_NATS_URL) -> Connection:
    """Return the default connection, connecting to ``url`` if there is none yet."""
    global _connection
    with _lock:
        if _connection is None:
            _connection = NatsConnection(url).connect()
            logger.debug(f"Created default connection {_connection!r}")
        return _connection


def current_connection() -> Optional[Connection]:
    """Return the default connection without creating one."""
    return _connection


def set_connection(connection: Optional[Connection]) -> None:
    """Replace (or with ``None``, forget) the default connection."""
    global _connection
    with _lock:
        _connection = connection


def close_connection(on_done: Optional[Callable[[], None]] = None) -> None:
    """Close and forget the default connection."""
    global _connection
    with _lock:
        connection, _connection = _connection, None
    if connection is not None:
        connection.close(on_done)
    elif on_done is not None:
        on_done()


def begin_worker_loop(callback: Optional[Callable[[], None]] = None, connection: Optional[Connection] = None) -> None:
    """
    Run ``callback`` against a live connection, then block the calling
    thread until that connection's reactor stops.
    """
    connection = connection or get_connection()
    if callback is not None:
        callback()
    connection.join()
