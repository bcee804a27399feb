"""Pytest fixtures for jsonfunc tests."""

import logging
from collections.abc import Callable, Generator
from typing import Any

import pytest
import structlog
from starlette.requests import Request


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset structlog and root logger handlers around each test.

    The CLI callback calls configure_logging(), which replaces root handlers.
    """
    structlog.reset_defaults()
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level

    yield

    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Factory for bare Starlette requests (no body) for unit tests."""

    def _make(
        method: str = "POST",
        path: str = "/",
        headers: dict[str, str] | None = None,
        state: dict[str, Any] | None = None,
    ) -> Request:
        scope = {
            "type": "http",
            "method": method,
            "path": path,
            "root_path": "",
            "query_string": b"",
            "headers": [
                (key.lower().encode("latin-1"), value.encode("latin-1"))
                for key, value in (headers or {}).items()
            ],
            "state": dict(state or {}),
        }
        return Request(scope)

    return _make
