# src/jetworker/worker/pidfile.py
"""
Pidfile helpers used by the worker's single-instance guard.
"""

import os
from typing import Optional


def read_pid(path: str) -> Optional[int]:
    """Return the pid recorded in ``path``, or None if it is not a valid pid."""
    with open(path, "r") as f:
        content = f.read().strip()
    try:
        pid = int(content)
    except ValueError:
        return None
    return pid if pid > 0 else None


def process_group_alive(pid: int) -> bool:
    """Whether a process with ``pid`` exists (it has a process group)."""
    try:
        os.getpgid(pid)
    except ProcessLookupError:
        return False
    return True


def write_pid(path: str, pid: int) -> None:
    with open(path, "w") as f:
        f.write(str(pid))


def remove_pid(path: str) -> bool:
    """Delete ``path`` if it exists. Returns whether a file was removed."""
    if not os.path.exists(path):
        return False
    os.remove(path)
    return True
