import concurrent.futures
from typing import Any, Callable, List, Optional

import pytest

from jetworker import config as config_module
from jetworker.connection import Connection, set_connection
from jetworker.events import EventBus, reset_event_bus
from jetworker.job import AbstractJob, _registry, _registry_lock


class FakeConnection(Connection):
    """
    In-memory connection: records subscriptions and runs scheduled work inline.

    ``deliver`` pushes a payload to every callback listening on a queue.
    """

    def __init__(self):
        self.listened: List[tuple] = []
        self.closed = False
        self.close_calls = 0
        self.ticks: List[Callable[[], None]] = []
        self.joined = False

    def listen_queue(self, queue, options, on_message):
        self.listened.append((queue, options, on_message))
        future: concurrent.futures.Future = concurrent.futures.Future()
        future.set_result(None)
        return future

    def close(self, on_done: Optional[Callable[[], None]] = None):
        self.closed = True
        self.close_calls += 1
        if on_done is not None:
            on_done()

    def next_tick(self, fn: Callable[[], None]) -> None:
        self.ticks.append(fn)
        fn()

    def join(self, timeout: Optional[float] = None) -> None:
        self.joined = True

    def deliver(self, queue_name: str, payload: Any, metadata: Any = None) -> int:
        delivered = 0
        for queue, _options, on_message in self.listened:
            if queue.name == queue_name:
                on_message(payload, metadata)
                delivered += 1
        return delivered


@pytest.fixture
def connection_factory():
    return FakeConnection


@pytest.fixture
def fake_connection(connection_factory):
    return connection_factory()


@pytest.fixture
def event_bus():
    """A private event bus that records every event it publishes."""
    bus = EventBus()
    bus.received = []
    bus.subscribe("consumer_error", lambda error: bus.received.append(("consumer_error", error)))
    bus.subscribe("consuming_done", lambda: bus.received.append(("consuming_done", None)))
    return bus


@pytest.fixture(autouse=True)
def isolate_globals():
    """Keep the job registry, default event bus and default connection per test."""
    with _registry_lock:
        saved_registry = dict(_registry)
    yield
    with _registry_lock:
        _registry.clear()
        _registry.update(saved_registry)
    reset_event_bus()
    set_connection(None)
    config_module._config_instance = None
    config_module._config_path = None


@pytest.fixture
def class_job():
    class RecordingClassJob:
        calls: List[tuple] = []

        @classmethod
        def perform(cls, payload, metadata):
            cls.calls.append((payload, metadata))

    RecordingClassJob.calls = []
    return RecordingClassJob


@pytest.fixture
def instance_job():
    class RecordingInstanceJob(AbstractJob):
        queue_name = "recording"
        calls: List[tuple] = []

        def perform(self):
            type(self).calls.append((self.payload, self.metadata))

    RecordingInstanceJob.calls = []
    return RecordingInstanceJob


@pytest.fixture
def failing_job():
    class FailingJob:
        @classmethod
        def perform(cls, payload, metadata):
            raise ValueError(f"cannot handle {payload!r}")

    return FailingJob
