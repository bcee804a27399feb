"""Configuration models for jsonfunc handlers.

Defines Pydantic v2 models for handler behaviour (status codes, error
translation) and for structured logging. Both are plain values passed to
the code that needs them; there is no process-wide default instance to
mutate.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# An error translator receives the outcome a function (or injector) reported
# and returns the exception to expose to the client.
ErrorTranslator = Callable[[BaseException], BaseException | None]


class HandlerConfig(BaseModel):
    """Per-handler configuration, immutable once built.

    A single instance may be shared by any number of handlers.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    error_translator: ErrorTranslator | None = Field(
        default=None,
        description="Hook applied to every non-null outcome before it is encoded. "
        "Use it to redact internal error detail. Returning None keeps the "
        "original outcome.",
    )
    default_status_code: int = Field(
        default=200,
        ge=100,
        le=599,
        description="Status for successful calls and for reported errors that "
        "carry no status code of their own",
    )
    client_error_status_code: int = Field(
        default=422,
        ge=100,
        le=599,
        description="Status for undecodable request bodies and arity mismatches",
    )
    internal_error_status_code: int = Field(
        default=500,
        ge=100,
        le=599,
        description="Status when the function raises or returns a malformed result",
    )


class LogConfig(BaseModel):
    """Configuration for structured logging.

    Mirrors the keyword arguments of ``jsonfunc.core.logging.configure_logging``.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level to capture",
    )
    format: Literal["json", "console"] = Field(
        default="console",
        description="Output format: json for structured, console for human-readable",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path for JSON log output (requires format='json')",
    )
    include_timestamps: bool = Field(
        default=True,
        description="Include ISO8601 UTC timestamps in log entries",
    )
    include_context: bool = Field(
        default=True,
        description="Include request context (request_id, path) in log entries",
    )

    @model_validator(mode="after")
    def _file_requires_json(self) -> LogConfig:
        if self.file_path is not None and self.format != "json":
            raise ValueError("file_path requires format='json'")
        return self


__all__ = ["ErrorTranslator", "HandlerConfig", "LogConfig"]
