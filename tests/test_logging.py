"""Tests for jsonfunc.core.logging."""

import json
import logging
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from jsonfunc.core.logging import (
    JsonFuncLogger,
    RequestContext,
    _add_context,
    _add_timestamp,
    _sanitize_event_dict,
    configure_logging,
    get_current_context,
    get_logger,
    with_context,
)


class TestRequestContext:
    """Tests for RequestContext and its context variable."""

    def test_unique_request_ids(self):
        assert RequestContext(handler="a").request_id != RequestContext(handler="a").request_id

    def test_to_dict_drops_empty_fields(self):
        ctx = RequestContext(handler="greet", request_id="r1")
        assert ctx.to_dict() == {"request_id": "r1", "handler": "greet"}
        full = RequestContext(handler="greet", method="POST", path="/greet", request_id="r1")
        assert full.to_dict()["path"] == "/greet"

    def test_with_context_scopes_and_restores(self):
        assert get_current_context() is None
        ctx = RequestContext(handler="greet")
        with with_context(ctx) as active:
            assert active is ctx
            assert get_current_context() is ctx
        assert get_current_context() is None

    def test_with_context_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with with_context(RequestContext(handler="greet")):
                raise RuntimeError("x")
        assert get_current_context() is None


class TestProcessors:
    """Tests for the structlog processors."""

    def test_sanitize_redacts_sensitive_keys(self):
        event = {
            "event": "x",
            "auth_token": "abc",
            "Authorization": "Bearer abc",
            "headers": {"cookie": "s=1", "accept": "json"},
            "handler": "greet",
        }
        result = _sanitize_event_dict(None, "info", event)
        assert result["auth_token"] == "[REDACTED]"
        assert result["Authorization"] == "[REDACTED]"
        assert result["headers"] == {"cookie": "[REDACTED]", "accept": "json"}
        assert result["handler"] == "greet"

    def test_add_timestamp(self):
        result = _add_timestamp(None, "info", {"event": "x"})
        assert result["timestamp"].endswith("+00:00")

    def test_add_context_does_not_override(self):
        ctx = RequestContext(handler="greet", path="/greet", request_id="r1")
        with with_context(ctx):
            result = _add_context(None, "info", {"event": "x", "handler": "explicit"})
        assert result["request_id"] == "r1"
        assert result["path"] == "/greet"
        assert result["handler"] == "explicit"

    def test_add_context_without_request(self):
        assert _add_context(None, "info", {"event": "x"}) == {"event": "x"}


class TestJsonFuncLogger:
    """Tests for the component logger wrapper."""

    def test_component_bound(self):
        logger = get_logger("decoder")
        assert isinstance(logger, JsonFuncLogger)
        with capture_logs() as logs:
            logger.warning("request_decode_failed", position=1)
        assert logs == [
            {
                "component": "decoder",
                "position": 1,
                "event": "request_decode_failed",
                "log_level": "warning",
            }
        ]

    def test_bind_and_unbind(self):
        logger = get_logger("handler").bind(handler="greet", mode="target")
        with capture_logs() as logs:
            logger.info("a")
            logger.unbind("mode").info("b")
        assert logs[0]["mode"] == "target"
        assert "mode" not in logs[1]
        assert logs[1]["component"] == "handler"
        assert logs[1]["handler"] == "greet"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_file_path_requires_json(self, tmp_path: Path):
        with pytest.raises(ValueError, match="only supported with format='json'"):
            configure_logging(format="console", file_path=tmp_path / "x.log")

    def test_json_file_output(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "jsonfunc.jsonl"
        configure_logging(level="INFO", format="json", file_path=log_file)

        with with_context(RequestContext(handler="greet", request_id="r1")):
            get_logger("handler").info("invocation_done", session_token="secret")
        get_logger("handler").debug("hidden")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = log_file.read_text().splitlines()
        assert len(lines) == 1
        entry = json.loads(lines[0])
        assert entry["event"] == "invocation_done"
        assert entry["level"] == "info"
        assert entry["request_id"] == "r1"
        assert entry["session_token"] == "[REDACTED]"
        assert "timestamp" in entry

    def test_optional_processors_disabled(self, tmp_path: Path):
        log_file = tmp_path / "plain.jsonl"
        configure_logging(
            format="json",
            file_path=log_file,
            include_timestamps=False,
            include_context=False,
        )
        with with_context(RequestContext(handler="greet")):
            get_logger("handler").warning("arity_mismatch")
        for handler in logging.getLogger().handlers:
            handler.flush()

        entry = json.loads(log_file.read_text().splitlines()[0])
        assert "timestamp" not in entry
        assert "request_id" not in entry
