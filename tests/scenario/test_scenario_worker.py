"""
End-to-end worker scenarios: messages flow from the connection to both job
styles, failures are reported without stopping consumption, and shutdown
releases the pidfile.
"""

import threading
import time
from unittest.mock import AsyncMock, MagicMock, PropertyMock

import pytest
from nats.errors import NotJSMessageError

from jetworker.connection import NatsConnection
from jetworker.events import EventBus
from jetworker.job import AbstractJob
from jetworker.worker import Worker


class OrderReceived:
    queue_name = "orders"
    handled = []

    @classmethod
    def perform(cls, payload, metadata):
        if payload.get("fail"):
            raise RuntimeError(f"order {payload['id']} rejected")
        cls.handled.append(payload["id"])


class InvoiceRequested(AbstractJob):
    queue_name = "invoices"
    listening_options = {"prefetch": 1}
    handled = []

    def perform(self):
        type(self).handled.append((self.payload["id"], self.metadata.subject))


@pytest.fixture(autouse=True)
def reset_handled():
    OrderReceived.handled = []
    InvoiceRequested.handled = []


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestWorkerWithInMemoryConnection:
    def test_both_styles_and_graceful_shutdown(self, fake_connection, event_bus, tmp_path):
        pidfile = tmp_path / "worker.pid"
        worker = Worker([OrderReceived, InvoiceRequested], connection=fake_connection, event_bus=event_bus)
        worker.use_pidfile(str(pidfile))

        worker.work_forever()

        fake_connection.deliver("orders", {"id": 1}, "m1")
        fake_connection.deliver("orders", {"id": 2, "fail": True}, "m2")
        fake_connection.deliver("orders", {"id": 3}, "m3")
        metadata = MagicMock(subject="jetworker.queue.invoices")
        fake_connection.deliver("invoices", {"id": 9}, metadata)

        assert OrderReceived.handled == [1, 3]
        assert InvoiceRequested.handled == [(9, "jetworker.queue.invoices")]
        errors = [payload for name, payload in event_bus.received if name == "consumer_error"]
        assert len(errors) == 1
        assert "order 2 rejected" in str(errors[0])

        worker.stop(graceful=True)

        assert fake_connection.closed
        assert event_bus.received[-1] == ("consuming_done", None)
        assert not pidfile.exists()


@pytest.fixture
def mock_nats(mocker):
    """A fake NATS client whose JetStream subscriptions hand back their callbacks."""
    callbacks = {}
    js = MagicMock(name="js")
    js.stream_info = AsyncMock(name="stream_info")

    async def subscribe(subject, **kwargs):
        callbacks[subject] = kwargs["cb"]
        return MagicMock(name=f"sub-{subject}")

    js.subscribe = AsyncMock(side_effect=subscribe)

    nc = MagicMock(name="nc")
    nc.is_connected = True
    nc.is_closed = False
    nc.jetstream.return_value = js
    nc.drain = AsyncMock(name="drain")
    nc.close = AsyncMock(name="close")

    mocker.patch("jetworker.connection.client.nats.connect", AsyncMock(return_value=nc))
    return nc, js, callbacks


def make_msg(subject, data):
    msg = MagicMock(name="Msg")
    msg.subject = subject
    msg.data = data
    msg.reply = ""
    msg.headers = None
    msg.ack = AsyncMock(name="ack")
    msg.term = AsyncMock(name="term")
    type(msg).metadata = PropertyMock(side_effect=NotJSMessageError)
    return msg


class TestWorkerWithNatsConnection:
    def test_consume_then_stop(self, mock_nats, tmp_path):
        nc, js, callbacks = mock_nats
        bus = EventBus()
        events = []
        bus.subscribe("consumer_error", lambda error: events.append(("error", error)))
        bus.subscribe("consuming_done", lambda: events.append(("done", None)))

        connection = NatsConnection("nats://test:4222", drain_timeout=1)
        worker = Worker([OrderReceived, InvoiceRequested], connection=connection, event_bus=bus)
        worker.use_pidfile(str(tmp_path / "worker.pid"))

        runner = threading.Thread(target=worker.work_forever, daemon=True)
        runner.start()
        try:
            assert wait_until(lambda: len(callbacks) == 2)

            order_msg = make_msg("jetworker.queue.orders", b'{"id": 5}')
            bad_msg = make_msg("jetworker.queue.orders", b'{"id": 6, "fail": true}')
            invoice_msg = make_msg("jetworker.queue.invoices", b'{"id": 7}')
            garbage_msg = make_msg("jetworker.queue.invoices", b"not json")

            for msg in (order_msg, bad_msg, invoice_msg, garbage_msg):
                connection.reactor.submit(callbacks[msg.subject](msg)).result(timeout=5)

            assert OrderReceived.handled == [5]
            assert InvoiceRequested.handled == [(7, "jetworker.queue.invoices")]
            order_msg.ack.assert_awaited_once()
            bad_msg.ack.assert_awaited_once()
            garbage_msg.term.assert_awaited_once()
            assert [name for name, _ in events] == ["error"]
        finally:
            worker.stop(graceful=True)
            runner.join(timeout=5)

        assert not runner.is_alive()
        assert events[-1] == ("done", None)
        nc.drain.assert_awaited_once()
        assert not (tmp_path / "worker.pid").exists()
        configs = {call.args[0]: call.kwargs["config"] for call in js.subscribe.call_args_list}
        assert configs["jetworker.queue.invoices"].max_ack_pending == 1
        assert configs["jetworker.queue.orders"].durable_name == "jetworker-worker-orders"
