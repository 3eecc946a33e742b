# src/pollwise/core/logging.py
"""Process-level logging bootstrap for Pollwise.

``init_logging`` reads the ``system`` section of the configuration and
installs one console handler for the whole process. The same handler replaces
the default one on the ``pollwise`` event logger, which does not propagate to
the root logger, so structured analysis events follow the chosen format.

Settings (see :class:`pollwise.config.SystemConfig`):

- ``LOG_LEVEL``: DEBUG|INFO|WARNING|ERROR|CRITICAL (default INFO)
- ``LOG_FORMAT``: plain|rich|json (default rich when installed, else plain)
- ``LOG_INCLUDE_TRACE``: render rich tracebacks (default false)
"""

import json
import logging
import sys

from pollwise.config import SystemConfig, config
from pollwise.core.logs import get_event_logger

LOG_FORMATS = ("plain", "rich", "json")

_installed_handler: logging.Handler | None = None

_RESERVED_RECORD_KEYS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Extras passed by the event logger (``event_type``, ``component``,
    ``user_id``, ``event_metadata`` and friends) become top-level keys;
    ``event_metadata`` is emitted as ``metadata``.
    """

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_KEYS:
                continue
            data["metadata" if key == "event_metadata" else key] = value
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


def resolve_format(value: str | None) -> str:
    """Return a supported format name, preferring rich when it is installed."""
    fmt = (value or "").strip().lower()
    if fmt in LOG_FORMATS:
        return fmt
    try:
        import rich  # noqa: F401
    except ImportError:
        return "plain"
    return "rich"


def build_handler(fmt: str, level: int, include_trace: bool = False) -> logging.Handler:
    """Create the console handler for ``fmt``."""
    handler: logging.Handler
    if fmt == "json":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
    elif fmt == "rich":
        from rich.logging import RichHandler

        handler = RichHandler(
            level=level,
            rich_tracebacks=include_trace,
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    handler.setLevel(level)
    return handler


def init_logging(
    settings: SystemConfig | None = None, *, force: bool = False
) -> logging.Handler:
    """Configure process logging from ``settings`` (default ``config.system``).

    Repeated calls return the installed handler unless ``force`` is set, in
    which case the previous Pollwise handler is swapped out. Handlers added by
    other code stay on the root logger.
    """
    global _installed_handler
    if _installed_handler is not None and not force:
        return _installed_handler

    system = settings or config.system
    level_name = (system.log_level or "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level_name, level = "INFO", logging.INFO
    fmt = resolve_format(system.log_format)
    handler = build_handler(fmt, level, system.log_include_trace)

    root = logging.getLogger()
    if _installed_handler is not None:
        root.removeHandler(_installed_handler)
    root.setLevel(level)
    root.addHandler(handler)
    get_event_logger().set_console_handler(handler, level)

    # Reduce noisy libraries
    for noisy in ("uvicorn", "asyncio", "httpx", "LiteLLM"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    _installed_handler = handler

    from pollwise import __version__

    logging.getLogger("pollwise.start").info(
        "Initializing logging | version=%s level=%s format=%s include_trace=%s",
        __version__,
        level_name,
        fmt,
        system.log_include_trace,
    )
    return handler


__all__ = ["JsonFormatter", "LOG_FORMATS", "build_handler", "init_logging", "resolve_format"]
