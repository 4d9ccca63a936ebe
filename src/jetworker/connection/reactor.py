# src/jetworker/connection/reactor.py
"""
A single asyncio event loop running in its own thread.

All network I/O for a connection happens on this loop. Other threads only
schedule work onto it.
"""

import asyncio
import concurrent.futures
import threading
from typing import Any, Callable, Coroutine, Optional

from loguru import logger


class Reactor:
    """Owns an event loop and the daemon thread that runs it."""

    def __init__(self, name: str = "jetworker-reactor"):
        self.name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("Reactor has not been started")
        return self._loop

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def in_reactor_thread(self) -> bool:
        return threading.current_thread() is self._thread

    def start(self) -> "Reactor":
        if self.is_running:
            return self

        self._started.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        self._started.wait()
        return self

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._started.set()
        logger.debug(f"Reactor '{self.name}' started")

        try:
            loop.run_forever()
        finally:
            pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()
            logger.debug(f"Reactor '{self.name}' stopped")

    def call_soon(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule ``fn(*args)`` on the loop from any thread."""
        self.loop.call_soon_threadsafe(fn, *args)

    def submit(self, coro: Coroutine) -> concurrent.futures.Future:
        """Schedule a coroutine on the loop from any thread."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def stop(self) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._loop.stop)

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None and not self.in_reactor_thread():
            self._thread.join(timeout)
