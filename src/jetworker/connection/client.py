# src/jetworker/connection/client.py
"""
NATS JetStream implementation of the worker connection.
"""

import asyncio
import concurrent.futures
import time
from typing import Any, Callable, List, Optional

import nats
from loguru import logger
from nats.aio.client import Client as NatsClient
from nats.aio.msg import Msg
from nats.js import JetStreamContext
from nats.js.api import AckPolicy, ConsumerConfig, DeliverPolicy

from .base import Connection, MessageCallback, MessageMetadata, QueueBinding
from .reactor import Reactor
from .streams import ensure_stream
from ..exceptions import JetworkerConnectionError, SerializationError
from ..serializers import Serializer, get_serializer
from ..settings import DEFAULT_CLIENT_NAME, DEFAULT_NATS_URL, DRAIN_TIMEOUT_SECONDS


class NatsConnection(Connection):
    """
    A NATS connection driven by its own reactor thread.

    ``listen_queue``, ``close`` and ``next_tick`` may be called from any
    thread. Message callbacks, ``next_tick`` functions and ``close``
    completion callbacks all run on the reactor thread.
    """

    def __init__(
        self,
        url: str = DEFAULT_NATS_URL,
        *,
        client_name: str = DEFAULT_CLIENT_NAME,
        serializer: Optional[Serializer] = None,
        drain_timeout: float = DRAIN_TIMEOUT_SECONDS,
        reactor: Optional[Reactor] = None,
        **connect_options: Any,
    ):
        self.url = url
        self.client_name = client_name
        self.drain_timeout = drain_timeout
        self._serializer = serializer or get_serializer()
        self._reactor = reactor or Reactor()
        self._connect_options = connect_options

        self._nc: Optional[NatsClient] = None
        self._js: Optional[JetStreamContext] = None
        self._connect_lock: Optional[asyncio.Lock] = None
        self._subscriptions: List[Any] = []

    def __repr__(self) -> str:
        return f"<NatsConnection url={self.url!r} connected={self.is_connected}>"

    @property
    def reactor(self) -> Reactor:
        return self._reactor

    @property
    def is_connected(self) -> bool:
        return self._nc is not None and self._nc.is_connected

    # --- Connecting ---

    def connect(self) -> "NatsConnection":
        """
        Start the reactor and connect, blocking until the connection is up.

        Raises:
            JetworkerConnectionError: If the server cannot be reached.
        """
        self._reactor.start()
        if self._reactor.in_reactor_thread():
            raise RuntimeError("connect() cannot block the reactor thread; await _ensure_connected()")
        self._reactor.submit(self._ensure_connected()).result()
        return self

    async def _ensure_connected(self) -> JetStreamContext:
        if self._connect_lock is None:
            self._connect_lock = asyncio.Lock()

        async with self._connect_lock:
            if self._nc is None or self._nc.is_closed:
                start_time = time.time()
                connect_options = {
                    "servers": [self.url],
                    "name": self.client_name,
                }
                connect_options.update(self._connect_options)
                try:
                    self._nc = await nats.connect(**connect_options)
                except Exception as e:
                    duration = time.time() - start_time
                    logger.error(f"NATS connection failed after {duration:.2f}s: {e}")
                    raise JetworkerConnectionError(f"Failed to connect to NATS at {self.url}: {e}") from e
                self._js = self._nc.jetstream()
                logger.info(f"NATS connection established to {self.url}")
        return self._js

    # --- Connection contract ---

    def listen_queue(
        self, queue: QueueBinding, options: Any, on_message: MessageCallback
    ) -> concurrent.futures.Future:
        """
        Subscribe to ``queue`` with a durable push consumer.

        Returns a future that resolves once the subscription is active.
        """
        self._reactor.start()
        future = self._reactor.submit(self._subscribe(queue, options, on_message))
        future.add_done_callback(self._log_failure(f"Subscribing to queue '{queue.name}'"))
        return future

    def close(self, on_done: Optional[Callable[[], None]] = None) -> concurrent.futures.Future:
        """
        Drain and close the NATS client, call ``on_done``, then stop the reactor.
        """
        if not self._reactor.is_running:
            if on_done is not None:
                on_done()
            future: concurrent.futures.Future = concurrent.futures.Future()
            future.set_result(None)
            return future
        future = self._reactor.submit(self._close(on_done))
        future.add_done_callback(self._log_failure("Closing NATS connection"))
        return future

    def next_tick(self, fn: Callable[[], None]) -> None:
        self._reactor.start()
        self._reactor.call_soon(fn)

    def join(self, timeout: Optional[float] = None) -> None:
        self._reactor.join(timeout)

    # --- Reactor-side implementation ---

    async def _subscribe(self, queue: QueueBinding, options: Any, on_message: MessageCallback) -> Any:
        js = await self._ensure_connected()
        await ensure_stream(js, queue.stream, queue.stream_subjects or [queue.subject], **queue.stream_options)

        durable = options.consumer_tag or queue.consumer
        config = ConsumerConfig(
            durable_name=durable,
            deliver_policy=DeliverPolicy(options.deliver_policy),
            ack_policy=AckPolicy.EXPLICIT if options.ack else AckPolicy.NONE,
            ack_wait=options.ack_wait if options.ack else None,
            max_ack_pending=options.prefetch if options.ack else None,
        )

        async def handler(msg: Msg) -> None:
            await self._deliver(msg, options, on_message)

        # The durable doubles as the deliver group so several subscriptions
        # on the same queue share its messages.
        subscription = await js.subscribe(
            queue.subject,
            queue=durable,
            durable=durable,
            stream=queue.stream,
            config=config,
            cb=handler,
            manual_ack=True,
        )
        self._subscriptions.append(subscription)
        logger.info(f"Listening on queue '{queue.name}' (subject: {queue.subject}, durable: {durable})")
        return subscription

    async def _deliver(self, msg: Msg, options: Any, on_message: MessageCallback) -> None:
        try:
            payload = self._serializer.deserialize(msg.data)
        except SerializationError as e:
            logger.error(f"Dropping undecodable message on '{msg.subject}': {e}")
            if options.ack:
                await msg.term()
            return

        on_message(payload, MessageMetadata.from_msg(msg))

        if options.ack:
            await msg.ack()

    async def _close(self, on_done: Optional[Callable[[], None]]) -> None:
        try:
            await self._shutdown_client()
            if on_done is not None:
                try:
                    on_done()
                except Exception as e:
                    logger.error(f"Error in connection close callback: {e}", exc_info=True)
        finally:
            self._reactor.stop()

    async def _shutdown_client(self) -> None:
        nc = self._nc
        if nc is None:
            return

        try:
            if nc.is_connected:
                await asyncio.wait_for(nc.drain(), timeout=self.drain_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out draining NATS connection after {self.drain_timeout}s")
        except Exception as e:
            logger.error(f"Error draining NATS connection: {e}")
        finally:
            if not nc.is_closed:
                await nc.close()
            self._nc = None
            self._js = None
            self._subscriptions.clear()
            logger.info(f"NATS connection to {self.url} closed")

    @staticmethod
    def _log_failure(description: str) -> Callable[[concurrent.futures.Future], None]:
        def callback(future: concurrent.futures.Future) -> None:
            if future.cancelled():
                return
            error = future.exception()
            if error is not None:
                logger.error(f"{description} failed: {error}")

        return callback
