"""
Main CLI application for jetworker.
"""

import typer
from rich.console import Console

from .. import __version__

app = typer.Typer(
    name="jetworker",
    help="Run job consumers on NATS JetStream queues.",
    add_completion=False,
)

# Shared console instance for Rich output
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"[cyan]jetworker[/cyan] version: [bold]{__version__}[/bold]")
        raise typer.Exit()


def register_commands():
    """Register all command modules with the main CLI app."""
    from .worker_commands import worker_app

    app.add_typer(worker_app, name="worker")


register_commands()


@app.callback()
def global_options(
    version: bool = typer.Option(
        False, "--version", "-v", callback=version_callback, is_eager=True,
        help="Show the version and exit."
    )
):
    """jetworker - job consumers for NATS JetStream."""


# Alias used by tests
cli = app


def main():
    """Main entry point for the jetworker CLI."""
    app()


if __name__ == "__main__":
    main()
