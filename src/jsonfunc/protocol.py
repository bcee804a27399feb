"""Wire protocol models for the JSON call protocol.

Defines Pydantic v2 models for the request and response bodies. These
models enforce the wire format at the serialization boundary.

Request::

    {"params": ["Gates", 1]}

Response::

    {"results": ["Hi, Mr. Gates", null]}
    {"results": ["", {"error": "It crashed.", "value": {"error_code": 8800}}]}
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CallRequest(BaseModel):
    """Inbound call: positional parameters for the non-injected arguments."""

    params: list[Any] = Field(default_factory=list)


class ErrorEnvelope(BaseModel):
    """JSON representation of a non-null outcome.

    ``value`` carries the error's structured payload and is omitted on the
    wire when the error has none.
    """

    error: str
    value: Any | None = None

    def to_wire(self) -> dict[str, Any]:
        """Dump for embedding in ``results``, dropping an absent ``value``."""
        if self.value is None:
            return {"error": self.error}
        return {"error": self.error, "value": self.value}


class CallResponse(BaseModel):
    """Outbound results: every normal return value, then the outcome slot."""

    results: list[Any]


__all__ = ["CallRequest", "CallResponse", "ErrorEnvelope"]
