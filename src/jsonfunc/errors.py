"""Outcome helpers: status codes and error envelopes.

Maps outcome exceptions to the HTTP status they request and to the
``ErrorEnvelope`` sent to the client.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic_core import to_jsonable_python

from jsonfunc.protocol import ErrorEnvelope

# ---------------------------------------------------------------------------
# Default status codes
# ---------------------------------------------------------------------------

STATUS_OK = 200
STATUS_UNPROCESSABLE = 422
STATUS_INTERNAL_ERROR = 500


# ---------------------------------------------------------------------------
# Status-code capability
# ---------------------------------------------------------------------------


@runtime_checkable
class HasStatusCode(Protocol):
    """An outcome that chooses the HTTP status of the response.

    ``jsonfunc.exceptions.StatusCodeError`` and Starlette's
    ``HTTPException`` both satisfy it.
    """

    status_code: int


def status_code_of(error: BaseException, default: int) -> int:
    """Status requested by ``error``, or ``default`` if it requests none."""
    if isinstance(error, HasStatusCode):
        code = error.status_code
        if isinstance(code, int) and not isinstance(code, bool):
            return code
    return default


def unwrap_error(error: BaseException) -> BaseException:
    """Peel status-code wrappers off ``error``."""
    seen: set[int] = set()
    unwrap = getattr(error, "unwrap", None)
    while callable(unwrap) and id(error) not in seen:
        seen.add(id(error))
        inner = unwrap()
        if not isinstance(inner, BaseException):
            break
        error = inner
        unwrap = getattr(error, "unwrap", None)
    return error


# ---------------------------------------------------------------------------
# Envelope builders
# ---------------------------------------------------------------------------


def error_payload(error: BaseException) -> Any | None:
    """Structured payload of ``error``: its public instance attributes.

    Values that have no JSON form are rendered with ``str()``. Returns None
    when the error carries no attributes.
    """
    fields = {
        key: value
        for key, value in getattr(error, "__dict__", {}).items()
        if not key.startswith("_")
    }
    if not fields:
        return None
    return to_jsonable_python(fields, serialize_unknown=True)


def make_envelope(error: BaseException) -> ErrorEnvelope:
    """Build the envelope for ``error`` after unwrapping it."""
    inner = unwrap_error(error)
    return ErrorEnvelope(error=str(inner), value=error_payload(inner))


__all__ = [
    "HasStatusCode",
    "STATUS_INTERNAL_ERROR",
    "STATUS_OK",
    "STATUS_UNPROCESSABLE",
    "error_payload",
    "make_envelope",
    "status_code_of",
    "unwrap_error",
]
