"""
Core Worker Implementation

The Worker binds job types to queues, dispatches every delivered message to
its job with failure isolation, and manages the process lifecycle: a pidfile
single-instance guard plus graceful or immediate shutdown.
"""

import os
import signal
import threading
from functools import partial
from typing import Any, Callable, List, Optional, Sequence, Tuple

from loguru import logger

from ..connection import Connection, begin_worker_loop, current_connection, get_connection
from ..events import EventBus, get_event_bus
from ..exceptions import ConfigurationError, JobNotFoundError, JobNotPresentError, WorkerError
from ..job import JobIdentifier, JobSpec, JobStyle, detect_style, resolve_job
from ..requirements import QueueRequirements, follow_job_requirements
from ..settings import CONSUMER_ERROR_EVENT, CONSUMING_DONE_EVENT
from .pidfile import process_group_alive, read_pid, remove_pid, write_pid
from .tracker import InFlightTracker

RequirementsResolver = Callable[[JobSpec], QueueRequirements]


class Worker:
    """
    Consumes the queues of a fixed set of jobs.

    Usage:
        worker = Worker(["myapp.jobs.SendEmail", ResizeImage])
        worker.use_pidfile("/var/run/jetworker.pid")
        worker.install_signal_handlers()
        worker.work_forever()
    """

    WorkerError = WorkerError

    def __init__(
        self,
        jobs: Sequence[JobIdentifier],
        *,
        connection: Optional[Connection] = None,
        event_bus: Optional[EventBus] = None,
        resolver: Optional[RequirementsResolver] = None,
    ):
        self.jobs: Tuple[JobSpec, ...] = tuple(self._resolve_jobs(jobs))
        self._connection = connection
        self._event_bus = event_bus
        self._resolver = resolver or follow_job_requirements
        self.in_flight = InFlightTracker()
        self.pidfile: Optional[str] = None
        self._stop_requested = threading.Event()
        self._stop_lock = threading.RLock()

    def __repr__(self) -> str:
        return f"<Worker pid={self.pid} jobs={[spec.name for spec in self.jobs]}>"

    @staticmethod
    def _resolve_jobs(jobs: Sequence[JobIdentifier]) -> List[JobSpec]:
        if isinstance(jobs, (str, type)):
            jobs = [jobs]
        if not jobs:
            message = "No jobs were specified; a worker needs at least one job to consume"
            logger.critical(message)
            raise JobNotPresentError(message)

        specs = []
        for identifier in jobs:
            try:
                specs.append(resolve_job(identifier))
            except (JobNotFoundError, ConfigurationError) as e:
                logger.critical(str(e))
                raise
        return specs

    @property
    def connection(self) -> Connection:
        """The connection in use, falling back to the shared default connection."""
        if self._connection is None:
            self._connection = get_connection()
        return self._connection

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus or get_event_bus()

    @property
    def pid(self) -> int:
        return os.getpid()

    # --- Consuming ---

    def work(self) -> None:
        """Subscribe every job's queue and return without waiting for messages."""
        connection = self.connection
        logger.info(f"Worker {self.pid} preparing to consume jobs: {', '.join(s.name for s in self.jobs)}")

        for spec in self.jobs:
            _, _, queue = self._resolver(spec)
            connection.listen_queue(queue, spec.listening_options, partial(self.invoke_job, spec))

        logger.info(f"Worker {self.pid} listening on {len(self.jobs)} queue(s)")

    def work_forever(self) -> None:
        """Subscribe like ``work`` and block until the connection shuts down."""
        begin_worker_loop(self.work, connection=self.connection)

    def invoke_job(self, job: Any, payload: Any, metadata: Any) -> None:
        """
        Run one job for one message.

        Errors raised by the job never propagate; they are published as
        ``consumer_error`` events carrying the exception.
        """
        if isinstance(job, JobSpec):
            style, handler = job.style, job.job
        else:
            style, handler = detect_style(job) or JobStyle.CLASS, job

        try:
            with self.in_flight.track():
                if style is JobStyle.INSTANCE:
                    handler(payload, metadata).perform()
                else:
                    handler.perform(payload, metadata)
        except Exception as e:
            self.event_bus.notify(CONSUMER_ERROR_EVENT, e)

    # --- Pidfile ---

    def use_pidfile(self, path: str) -> None:
        """
        Claim ``path`` for this process.

        A pidfile left behind by a dead process is taken over.

        Raises:
            WorkerError: If the recorded process is still running.
        """
        path = os.fspath(path)
        if os.path.exists(path):
            pid = read_pid(path)
            if pid is not None and pid != self.pid and process_group_alive(pid):
                message = f"A worker is already running with pid {pid} (pidfile: {path})"
                logger.critical(message)
                raise WorkerError(message)
            logger.warning(f"Taking over abandoned pidfile {path} (recorded pid: {pid})")

        write_pid(path, self.pid)
        self.pidfile = path

    def remove_pidfile(self) -> None:
        if self.pidfile:
            remove_pid(self.pidfile)

    # --- Stopping ---

    def stop(self, connection: Optional[Connection] = None, graceful: bool = False) -> None:
        """
        Close the connection and remove the pidfile.

        The teardown runs on the connection's next reactor tick. A graceful
        stop first waits for all in-flight jobs, and publishes
        ``consuming_done`` once the connection has closed.
        Only the first call has any effect; later calls (e.g. a second
        signal) are ignored.
        """
        with self._stop_lock:
            if self._stop_requested.is_set():
                logger.info(f"Worker {self.pid} is already stopping")
                return
            self._stop_requested.set()

        connection = connection or self._connection or current_connection()
        if connection is None:
            self.remove_pidfile()
            return

        def on_closed() -> None:
            if graceful:
                self.event_bus.notify(CONSUMING_DONE_EVENT)
            self.remove_pidfile()
            logger.info(f"Worker {self.pid} stopped")

        def teardown() -> None:
            if graceful:
                logger.info(f"Worker {self.pid} waiting for in-flight jobs to finish")
                self.in_flight.wait_for_drain()
            connection.close(on_closed)

        connection.next_tick(teardown)

    def install_signal_handlers(self) -> None:
        """
        Stop on termination signals: SIGTERM and SIGQUIT stop gracefully,
        SIGINT stops immediately.

        Notes:
            - signal.signal() may only be called from the main thread of the main
              interpreter. If not in the main thread, this becomes a no-op with a warning.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.warning("Skipping installation of signal handlers because we are not in the main thread.")
            return

        def graceful_stop(sig, frame) -> None:
            logger.warning(f"Received signal {sig}. Stopping after in-flight jobs finish...")
            self.stop(graceful=True)

        def immediate_stop(sig, frame) -> None:
            logger.warning(f"Received signal {sig}. Stopping immediately...")
            self.stop()

        try:
            signal.signal(signal.SIGTERM, graceful_stop)
            signal.signal(signal.SIGINT, immediate_stop)
            if hasattr(signal, "SIGQUIT"):
                signal.signal(signal.SIGQUIT, graceful_stop)
        except ValueError as e:
            # Some environments disallow setting signals (e.g. embedded interpreters)
            logger.warning(f"Could not install signal handlers: {e}")
