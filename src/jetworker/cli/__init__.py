"""Command-line interface for jetworker."""

from .main import app, cli, main

__all__ = ["app", "cli", "main"]
