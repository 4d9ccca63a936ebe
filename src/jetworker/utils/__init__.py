# src/jetworker/utils/__init__.py
"""Utility helpers for jetworker."""

from .logging import setup_logging

__all__ = ["setup_logging"]
