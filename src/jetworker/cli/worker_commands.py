"""
Worker CLI commands.
"""

import os
import sys
from typing import List, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from ..config import load_config
from ..connection import NatsConnection
from ..exceptions import ConfigurationError, JetworkerException
from ..job import resolve_jobs
from ..serializers import get_serializer
from ..utils import setup_logging
from ..worker import Worker

worker_app = typer.Typer(help="Worker management commands")
console = Console()


def _extend_sys_path(module_paths: Optional[List[str]]) -> None:
    # Jobs are usually importable from the directory the worker is started in
    for path in [os.getcwd(), *(module_paths or [])]:
        if path not in sys.path:
            sys.path.insert(0, path)


@worker_app.command("start")
def start(
    jobs: Optional[List[str]] = typer.Argument(
        None,
        help=(
            "Jobs to consume, as registered names or dotted paths "
            "(e.g. myapp.jobs.SendEmail). Defaults to worker.jobs from the config."
        ),
    ),
    nats_url: Optional[str] = typer.Option(
        None,
        "--nats-url",
        "-u",
        help="URL of the NATS server.",
        envvar="JETWORKER_NATS_URL",
    ),
    pidfile: Optional[str] = typer.Option(
        None,
        "--pidfile",
        "-p",
        help="Refuse to start if another live worker holds this pidfile.",
        envvar="JETWORKER_PIDFILE",
    ),
    module_paths: Optional[List[str]] = typer.Option(
        None,
        "--module-path",
        "-m",
        help="Additional paths to add to sys.path for job imports. Can be specified multiple times.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a jetworker YAML configuration file.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Set logging level (e.g., DEBUG, INFO, WARNING, ERROR).",
    ),
):
    """
    Starts a worker process consuming the queues of the given jobs.

    SIGTERM stops after in-flight jobs finish; SIGINT stops immediately.
    """
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=1)

    setup_logging(log_level or config.logging.level, config.logging.file)
    _extend_sys_path(module_paths)

    jobs = list(jobs or config.worker.jobs)
    url = nats_url or config.nats.get_primary_server()
    pidfile = pidfile or config.worker.pidfile

    worker = None
    try:
        connection = NatsConnection(
            url,
            client_name=config.nats.client_name,
            serializer=get_serializer(config.serialization.payload_serializer),
            drain_timeout=config.nats.drain_timeout,
            max_reconnect_attempts=config.nats.max_reconnect_attempts,
            reconnect_time_wait=config.nats.reconnect_time_wait,
            connect_timeout=config.nats.connection_timeout,
        )
        worker = Worker(jobs, connection=connection)
        if pidfile:
            worker.use_pidfile(pidfile)

        logger.info(f"Starting worker {worker.pid} for jobs: {[spec.name for spec in worker.jobs]}")
        logger.info(f"NATS URL: {url}")

        connection.connect()
        worker.install_signal_handlers()
        worker.work_forever()
    except KeyboardInterrupt:
        logger.info("Worker interrupted by user (KeyboardInterrupt). Shutting down.")
    except JetworkerException as e:
        logger.error(f"Worker failed: {e}")
        raise typer.Exit(code=1)
    finally:
        if worker is not None:
            worker.remove_pidfile()
        logger.info("Worker process finished.")


@worker_app.command("jobs")
def list_jobs(
    jobs: List[str] = typer.Argument(..., help="Jobs to resolve, as registered names or dotted paths."),
    module_paths: Optional[List[str]] = typer.Option(
        None,
        "--module-path",
        "-m",
        help="Additional paths to add to sys.path for job imports.",
    ),
):
    """
    Resolves jobs without connecting and shows how each would be consumed.
    """
    _extend_sys_path(module_paths)

    try:
        specs = resolve_jobs(jobs)
    except JetworkerException as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Jobs")
    table.add_column("Job", style="cyan")
    table.add_column("Style")
    table.add_column("Queue", style="green")
    table.add_column("Listening options")

    for spec in specs:
        options = ", ".join(f"{k}={v}" for k, v in spec.listening_options.to_dict().items())
        table.add_row(spec.name, spec.style.value, spec.queue_name, options)

    console.print(table)
