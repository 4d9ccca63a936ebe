"""
Worker package for jetworker.

Provides the Worker class and its in-flight tracker.
"""

from .core import Worker
from .tracker import InFlightTracker

__all__ = [
    "Worker",
    "InFlightTracker",
]
