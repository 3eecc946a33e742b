# src/pollwise/core/__init__.py
"""Core utilities for Pollwise."""

from .env import load_env
from .logs import clear_logs, get_event_logger, get_logs, log_message

__all__ = [
    "load_env",
    "get_event_logger",
    "log_message",
    "get_logs",
    "clear_logs",
]
