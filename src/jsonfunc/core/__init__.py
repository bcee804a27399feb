"""Core configuration and logging."""

from jsonfunc.core.config import ErrorTranslator, HandlerConfig, LogConfig
from jsonfunc.core.logging import RequestContext, configure_logging, get_logger, with_context

__all__ = [
    "ErrorTranslator",
    "HandlerConfig",
    "LogConfig",
    "RequestContext",
    "configure_logging",
    "get_logger",
    "with_context",
]
