# src/pollwise/core/logs.py
"""Structured event logging for Pollwise.

Events are JSON-serializable records with a type, level, priority and free-form
metadata. They are buffered in memory for inspection and mirrored to the
standard ``logging`` hierarchy under the ``pollwise`` logger.
"""

from __future__ import annotations

import functools
import inspect
import json
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, cast
from uuid import uuid4

from pollwise.config import config


class LogLevel(Enum):
    """Log levels with numeric values for filtering."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class EventType(Enum):
    """Event types for structured logging."""

    SYSTEM = "system"

    # Poll analysis events
    ANALYSIS_START = "analysis_start"
    ANALYSIS_COMPLETE = "analysis_complete"
    SPAN_DROPPED = "span_dropped"

    # LLM interaction events
    LLM_REQUEST = "llm_request"
    PROMPT_LOAD = "prompt_load"

    # Error events
    ERROR = "error"
    WARNING = "warning"
    ERROR_CLASSIFICATION = "error_classification"
    RETRY_ATTEMPT = "retry_attempt"
    RETRY_EXHAUSTED = "retry_exhausted"


class Priority(Enum):
    """Event priority levels."""

    CRITICAL = 1  # Errors, system failures
    HIGH = 2  # User-visible outcomes
    NORMAL = 3  # Routine processing
    LOW = 4  # Debug traces


@dataclass
class EventMetrics:
    """Counters for emitted events."""

    total_events: int = 0
    events_by_type: dict[str, int] = field(default_factory=dict)
    events_by_priority: dict[int, int] = field(default_factory=dict)

    def record_event(self, event_type: str, priority: int) -> None:
        """Record an event for metrics tracking."""
        self.total_events += 1
        self.events_by_type[event_type] = self.events_by_type.get(event_type, 0) + 1
        self.events_by_priority[priority] = self.events_by_priority.get(priority, 0) + 1


@dataclass
class StructuredLogEvent:
    """Structured log event with metadata."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: float = field(default_factory=time.time)
    event_type: EventType = EventType.SYSTEM
    level: LogLevel = LogLevel.INFO
    priority: Priority = Priority.NORMAL
    message: str = ""
    component: str | None = None
    user_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    processing_time_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "event_id": self.event_id,
            "timestamp": self.timestamp,
            "event_type": self.event_type.value,
            "level": self.level.name,
            "level_value": self.level.value,
            "priority": self.priority.value,
            "priority_name": self.priority.name,
            "message": self.message,
            "component": self.component,
            "user_id": self.user_id,
            "metadata": self.metadata,
            "processing_time_ms": self.processing_time_ms,
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)


class EventLogger:
    """Structured logging front-end used throughout the package.

    Provides:
    - JSON-structured events with metadata
    - A bounded in-memory buffer for inspection
    - Mirroring to the standard logging system
    """

    def __init__(self, max_events: int = 10000):
        """Initialize the event logger.

        Args:
            max_events: Maximum number of events to keep in memory
        """
        self.max_events = max_events
        self._events: deque[StructuredLogEvent] = deque(maxlen=max_events)
        self._events_lock = threading.Lock()
        self._metrics = EventMetrics()

        self._traditional_logger = logging.getLogger("pollwise")
        self._configure_traditional_logger()

    def _configure_traditional_logger(self) -> None:
        """Attach console and optional file handlers to the ``pollwise`` logger."""
        for handler in list(self._traditional_logger.handlers):
            self._traditional_logger.removeHandler(handler)

        self._traditional_logger.propagate = False
        self._traditional_logger.setLevel(config.system.log_level.upper())

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        self._traditional_logger.addHandler(console_handler)
        self.console_handler: logging.Handler = console_handler

        if config.system.log_file:
            file_handler = logging.FileHandler(config.system.log_file)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            self._traditional_logger.addHandler(file_handler)

    def set_console_handler(
        self, handler: logging.Handler, level: int | None = None
    ) -> None:
        """Replace the console handler, leaving any file handler in place."""
        self._traditional_logger.removeHandler(self.console_handler)
        self._traditional_logger.addHandler(handler)
        self.console_handler = handler
        if level is not None:
            self._traditional_logger.setLevel(level)

    def log_event(self, event: StructuredLogEvent) -> None:
        """Store ``event`` and mirror it to the traditional logger."""
        self._metrics.record_event(event.event_type.value, event.priority.value)
        with self._events_lock:
            self._events.append(event)
        try:
            self._log_to_traditional(event)
        except Exception as e:
            fallback_logger = logging.getLogger("pollwise.logs.fallback")
            fallback_logger.error(f"Failed to log to traditional logger: {e}")

    def _log_to_traditional(self, event: StructuredLogEvent) -> None:
        log_level = {
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.INFO: logging.INFO,
            LogLevel.WARNING: logging.WARNING,
            LogLevel.ERROR: logging.ERROR,
            LogLevel.CRITICAL: logging.CRITICAL,
        }.get(event.level, logging.INFO)

        parts = [f"[{event.event_type.value}]"]
        if event.component:
            parts.append(f"({event.component})")
        if event.user_id:
            parts.append(f"user:{event.user_id}")
        key_metadata = self._format_key_metadata(event)
        if key_metadata:
            parts.append(key_metadata)
        timing = (
            f" [proc:{event.processing_time_ms:.1f}ms]"
            if event.processing_time_ms
            else ""
        )
        self._traditional_logger.log(
            log_level,
            f"{' '.join(parts)} {event.message}{timing}",
            extra={
                "event_id": event.event_id,
                "event_type": event.event_type.value,
                "priority": event.priority.value,
                "component": event.component,
                "user_id": event.user_id,
                "processing_time_ms": event.processing_time_ms,
                "event_metadata": event.metadata,
            },
        )

    def _format_key_metadata(self, event: StructuredLogEvent) -> str:
        key_info = []
        if "model" in event.metadata:
            key_info.append(f"model:{event.metadata['model']}")
        if "attempt" in event.metadata and "max_attempts" in event.metadata:
            key_info.append(
                f"attempt:{event.metadata['attempt']}/{event.metadata['max_attempts']}"
            )
        if "success" in event.metadata:
            key_info.append("ok" if event.metadata["success"] else "failed")
        return f"<{' | '.join(key_info)}>" if key_info else ""

    def log(
        self,
        level: LogLevel,
        message: str,
        event_type: EventType = EventType.SYSTEM,
        priority: Priority = Priority.NORMAL,
        component: str | None = None,
        user_id: str | None = None,
        processing_time_ms: float | None = None,
        metadata: dict[str, Any] | None = None,
        **extra: Any,
    ) -> None:
        """Log a message with structured metadata.

        Args:
            level: Log level
            message: Log message
            event_type: Type of event
            priority: Event priority
            component: Optional component name
            user_id: Optional user ID
            processing_time_ms: Optional duration of the logged operation
            metadata: Additional metadata
            **extra: Additional metadata given as keywords
        """
        merged = dict(metadata or {})
        merged.update(extra)
        self.log_event(
            StructuredLogEvent(
                level=level,
                event_type=event_type,
                priority=priority,
                message=message,
                component=component,
                user_id=user_id,
                metadata=merged,
                processing_time_ms=processing_time_ms,
            )
        )

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        kwargs.setdefault("priority", Priority.LOW)
        self.log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self.log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        kwargs.setdefault("event_type", EventType.WARNING)
        kwargs.setdefault("priority", Priority.HIGH)
        self.log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message."""
        kwargs.setdefault("event_type", EventType.ERROR)
        kwargs.setdefault("priority", Priority.CRITICAL)
        self.log(LogLevel.ERROR, message, **kwargs)

    def log_error_classification(
        self, error_type: str, classification: str, **kwargs: Any
    ) -> None:
        """Log how an error was classified for retry purposes."""
        self.log(
            LogLevel.INFO,
            f"Classified {error_type} as {classification}",
            event_type=EventType.ERROR_CLASSIFICATION,
            priority=Priority.NORMAL,
            error_type=error_type,
            classification=classification,
            **kwargs,
        )

    def log_retry_attempt(
        self, attempt: int, max_attempts: int, delay_ms: float, **kwargs: Any
    ) -> None:
        """Log retry attempts."""
        self.log(
            LogLevel.WARNING,
            f"Retry attempt {attempt}/{max_attempts} after {delay_ms:.0f}ms delay",
            event_type=EventType.RETRY_ATTEMPT,
            priority=Priority.NORMAL,
            attempt=attempt,
            max_attempts=max_attempts,
            delay_ms=delay_ms,
            **kwargs,
        )

    def log_retry_exhausted(self, total_attempts: int, **kwargs: Any) -> None:
        """Log retry exhaustion."""
        self.log(
            LogLevel.ERROR,
            f"Retry attempts exhausted after {total_attempts} tries",
            event_type=EventType.RETRY_EXHAUSTED,
            priority=Priority.CRITICAL,
            total_attempts=total_attempts,
            **kwargs,
        )

    def get_events(
        self,
        event_type: EventType | None = None,
        min_level: LogLevel | None = None,
        limit: int | None = None,
    ) -> list[StructuredLogEvent]:
        """Return buffered events, oldest first, optionally filtered."""
        with self._events_lock:
            events = list(self._events)
        if event_type is not None:
            events = [e for e in events if e.event_type == event_type]
        if min_level is not None:
            events = [e for e in events if e.level.value >= min_level.value]
        if limit is not None:
            events = events[-limit:]
        return events

    def get_logs(self, limit: int = 100) -> list[str]:
        """Return the most recent events as JSON lines."""
        return [e.to_json() for e in self.get_events(limit=limit)]

    def get_metrics(self) -> dict[str, Any]:
        """Return event counters."""
        return {
            "total_events": self._metrics.total_events,
            "events_by_type": dict(self._metrics.events_by_type),
            "events_by_priority": dict(self._metrics.events_by_priority),
            "buffered_events": len(self._events),
        }

    def clear_logs(self) -> None:
        """Clear buffered events."""
        with self._events_lock:
            self._events.clear()


# Global event logger instance
_event_logger: EventLogger | None = None


def get_event_logger() -> EventLogger:
    """Get global event logger instance."""
    global _event_logger
    if _event_logger is None:
        _event_logger = EventLogger()
    return _event_logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under ``pollwise``; dotted package names are used as is."""
    event_logger = get_event_logger()
    if name == "pollwise" or name.startswith("pollwise."):
        return logging.getLogger(name)
    return event_logger._traditional_logger.getChild(name)


def log_message(message: str) -> None:
    """Store message in structured logging system."""
    get_event_logger().info(message, event_type=EventType.SYSTEM)


def log_calls(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorate func to log calls at the DEBUG level."""

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            event_logger = get_event_logger()
            start_time = time.time()
            event_logger.debug(
                f"Entering {func.__qualname__}",
                component=func.__module__,
                metadata={"function": func.__qualname__, "args_count": len(args)},
            )
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                event_logger.error(
                    f"Error in {func.__qualname__}: {e}",
                    component=func.__module__,
                    processing_time_ms=(time.time() - start_time) * 1000,
                    metadata={
                        "function": func.__qualname__,
                        "error_type": type(e).__name__,
                    },
                )
                raise
            event_logger.debug(
                f"Exiting {func.__qualname__} successfully",
                component=func.__module__,
                processing_time_ms=(time.time() - start_time) * 1000,
                metadata={"function": func.__qualname__},
            )
            return result

        return cast(Callable[..., Any], async_wrapper)

    @functools.wraps(func)
    def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
        event_logger = get_event_logger()
        start_time = time.time()
        event_logger.debug(
            f"Entering {func.__qualname__}",
            component=func.__module__,
            metadata={"function": func.__qualname__, "args_count": len(args)},
        )
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            event_logger.error(
                f"Error in {func.__qualname__}: {e}",
                component=func.__module__,
                processing_time_ms=(time.time() - start_time) * 1000,
                metadata={
                    "function": func.__qualname__,
                    "error_type": type(e).__name__,
                },
            )
            raise
        event_logger.debug(
            f"Exiting {func.__qualname__} successfully",
            component=func.__module__,
            processing_time_ms=(time.time() - start_time) * 1000,
            metadata={"function": func.__qualname__},
        )
        return result

    return cast(Callable[..., Any], sync_wrapper)


def get_logs(limit: int = 100) -> list[str]:
    """Return the captured log messages."""
    return get_event_logger().get_logs(limit)


def clear_logs() -> None:
    """Remove all stored log messages."""
    get_event_logger().clear_logs()


__all__ = [
    "EventLogger",
    "StructuredLogEvent",
    "EventMetrics",
    "LogLevel",
    "EventType",
    "Priority",
    "get_event_logger",
    "log_message",
    "get_logger",
    "get_logs",
    "clear_logs",
    "log_calls",
]
