"""Tests for jsonfunc.core.config."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from jsonfunc.core.config import HandlerConfig, LogConfig


class TestHandlerConfig:
    """Tests for HandlerConfig model."""

    def test_defaults(self):
        config = HandlerConfig()
        assert config.error_translator is None
        assert config.default_status_code == 200
        assert config.client_error_status_code == 422
        assert config.internal_error_status_code == 500

    def test_translator_accepts_callable(self):
        def redact(error: BaseException) -> BaseException:
            return RuntimeError("internal error")

        assert HandlerConfig(error_translator=redact).error_translator is redact

    def test_translator_rejects_non_callable(self):
        with pytest.raises(ValidationError):
            HandlerConfig(error_translator="redact")

    @pytest.mark.parametrize("code", [99, 600])
    def test_status_code_range(self, code):
        with pytest.raises(ValidationError):
            HandlerConfig(default_status_code=code)

    def test_frozen(self):
        config = HandlerConfig()
        with pytest.raises(ValidationError):
            config.default_status_code = 201

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            HandlerConfig(status=200)


class TestLogConfig:
    """Tests for LogConfig model."""

    def test_defaults(self):
        config = LogConfig()
        assert config.level == "INFO"
        assert config.format == "console"
        assert config.file_path is None

    def test_invalid_level(self):
        with pytest.raises(ValidationError):
            LogConfig(level="TRACE")

    def test_file_requires_json(self, tmp_path: Path):
        with pytest.raises(ValidationError, match="requires format='json'"):
            LogConfig(file_path=tmp_path / "log.jsonl")
        assert LogConfig(format="json", file_path=tmp_path / "log.jsonl").file_path is not None
