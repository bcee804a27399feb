"""Structured logging infrastructure for jsonfunc.

Provides structured logging using structlog with request-scoped context
(request_id, handler, method, path) attached automatically to every event
emitted while a request is being served.

Example usage:
    from jsonfunc.core.logging import get_logger, configure_logging

    # Configure once at startup (optional; structlog defaults apply otherwise)
    configure_logging(level="DEBUG", format="json")

    # Get a component-specific logger
    logger = get_logger("handler")

    # Log with event names and key-value pairs
    logger.info("handler_constructed", handler="greet", params=2)

    # Scope request context
    ctx = RequestContext(handler="greet", method="POST", path="/greet")
    with with_context(ctx):
        logger.warning("arity_mismatch")  # Includes request_id, path, ...
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Keys whose values must never reach a log sink (headers, cookies, injected
# credentials all flow through this package)
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "token",
    "secret",
    "password",
    "credential",
    "cookie",
    "session",
    "bearer",
    "authorization",
})


@dataclass(frozen=True)
class RequestContext:
    """Immutable context identifying the request currently being served.

    Attributes:
        request_id: Unique identifier generated per request.
        handler: Name of the target function bound to the handler.
        method: HTTP method of the request.
        path: URL path of the request.
    """

    handler: str
    method: str = ""
    path: str = ""
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging (empty fields dropped)."""
        result: dict[str, Any] = {
            "request_id": self.request_id,
            "handler": self.handler,
        }
        if self.method:
            result["method"] = self.method
        if self.path:
            result["path"] = self.path
        return result


_current_context: ContextVar[RequestContext | None] = ContextVar(
    "jsonfunc_request_context", default=None
)


def get_current_context() -> RequestContext | None:
    """Get the RequestContext of the request being served, if any."""
    return _current_context.get()


@contextmanager
def with_context(ctx: RequestContext) -> Iterator[RequestContext]:
    """Set ``ctx`` as the current RequestContext for the duration of a block.

    Args:
        ctx: The RequestContext to use for the block.

    Yields:
        The RequestContext that was set.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _sanitize_value(key: str, value: Any) -> Any:
    """Return ``"[REDACTED]"`` when ``key`` names a sensitive field."""
    key_lower = key.lower()
    if any(pattern in key_lower for pattern in SENSITIVE_PATTERNS):
        return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that redacts sensitive fields, one level deep."""
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {k: _sanitize_value(k, v) for k, v in value.items()}
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds an ISO8601 UTC timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds RequestContext fields to log entries.

    Explicitly bound fields take precedence over context fields.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            event_dict.setdefault(key, value)
    return event_dict


class JsonFuncLogger:
    """Component logger wrapping structlog.

    The underlying structlog logger is fetched on every call so loggers
    created at import time still honour a later ``configure_logging()``.
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> JsonFuncLogger:
        """Create a new logger with additional bound context."""
        new_logger = JsonFuncLogger.__new__(JsonFuncLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def unbind(self, *keys: str) -> JsonFuncLogger:
        """Create a new logger with the given keys removed from the context."""
        new_logger = JsonFuncLogger.__new__(JsonFuncLogger)
        new_logger._component = self._component
        new_logger._context = {k: v for k, v in self._context.items() if k not in keys}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an error with the active exception's traceback."""
        self._get_logger().exception(event, **kw)


def _build_processors(
    renderer: Processor,
    include_timestamps: bool,
    include_context: bool,
) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
    ]
    if include_context:
        processors.append(_add_context)
    if include_timestamps:
        processors.append(_add_timestamp)
    processors.extend([
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ])
    return processors


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console"] = "console",  # noqa: A002
    file_path: Path | None = None,
    include_timestamps: bool = True,
    include_context: bool = True,
) -> None:
    """Configure jsonfunc structured logging.

    Args:
        level: Minimum log level to capture.
        format: "console" for human-readable output on stderr, "json" for
            one JSON object per line on stdout (or ``file_path``).
        file_path: Optional file for JSON output. Only valid with format="json".
        include_timestamps: Whether to include ISO8601 timestamps.
        include_context: Whether to include RequestContext fields.

    Raises:
        ValueError: If file_path is given with format="console".
    """
    if file_path is not None and format != "json":
        raise ValueError("file_path is only supported with format='json'")

    log_level = getattr(logging, level)

    handler: logging.Handler
    if format == "console":
        handler = logging.StreamHandler(sys.stderr)
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    elif file_path is not None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(file_path, encoding="utf-8")
        renderer = structlog.processors.JSONRenderer()
    else:
        handler = logging.StreamHandler(sys.stdout)
        renderer = structlog.processors.JSONRenderer()
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    # cache_logger_on_first_use=False keeps import-time loggers in sync with
    # reconfiguration
    structlog.configure(
        processors=_build_processors(renderer, include_timestamps, include_context),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> JsonFuncLogger:
    """Get a jsonfunc logger for a component (e.g., "handler", "decoder")."""
    return JsonFuncLogger(component, **initial_context)


__all__ = [
    "JsonFuncLogger",
    "RequestContext",
    "SENSITIVE_PATTERNS",
    "configure_logging",
    "get_current_context",
    "get_logger",
    "with_context",
]
