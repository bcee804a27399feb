"""Exception hierarchy for jsonfunc.

All jsonfunc-specific exceptions inherit from JsonFuncError, enabling callers
to catch broad (JsonFuncError) or narrow (e.g., ArityError).

Two families matter to callers:

- ``ShapeError`` and subclasses are raised while a handler is constructed.
  They signal a programming error in the registering code and are never
  deferred to request time.
- ``RequestError`` and subclasses are raised while a request is served and
  are always turned into a JSON error envelope by the handler.
"""

from __future__ import annotations

from typing import Any


class JsonFuncError(Exception):
    """Base exception for all jsonfunc errors."""


class ShapeError(JsonFuncError, TypeError):
    """Raised when a target function or injector has a disallowed shape.

    Examples: no exception type in the trailing return position, a
    ``queue.Queue`` parameter, ``*args`` in the signature.
    """


class InjectorMismatchError(ShapeError):
    """Raised when injector outputs do not fit the target's leading parameters."""

    def __init__(self, message: str, expected: list[str], actual: list[str]) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class RequestError(JsonFuncError):
    """Base class for request-time client errors."""


class DecodeError(RequestError):
    """Raised when the request body cannot be decoded into parameter slots.

    Examples: malformed JSON, ``params`` not an array, an element that does
    not validate against its parameter's type.
    """


class ArityError(RequestError):
    """Raised when the assembled argument list does not match the signature."""

    def __init__(self, required: int, supplied: int, arguments: list[Any]) -> None:
        super().__init__(
            f"require {required} parameters, but passed in {supplied} parameters: "
            f"{arguments!r}"
        )
        self.required = required
        self.supplied = supplied


class ReturnShapeError(JsonFuncError):
    """Raised when a function returns values that contradict its annotation."""


class ResultEncodingError(JsonFuncError):
    """Raised when a return value cannot be serialized to JSON."""


class TranslationError(JsonFuncError):
    """Substituted for the outcome when the configured error translator fails."""


class InjectorFailure(JsonFuncError):
    """Raised by the injector chain when an injector reports a failure.

    Carries the injector's outcome so the handler can encode it exactly as
    if the target function had returned it.
    """

    def __init__(self, outcome: BaseException, injector: str) -> None:
        super().__init__(f"injector {injector} failed: {outcome}")
        self.outcome = outcome
        self.injector = injector


class StatusCodeError(JsonFuncError):
    """Wraps an error together with the HTTP status code to respond with.

    The envelope text and payload come from the wrapped error, the status
    code from this wrapper::

        return "", StatusCodeError(403, PermissionError("you can't access it"))
    """

    def __init__(self, status_code: int, error: BaseException | str) -> None:
        if isinstance(error, str):
            error = JsonFuncError(error)
        super().__init__(str(error))
        self.status_code = status_code
        self.error = error

    def unwrap(self) -> BaseException:
        """Return the wrapped error."""
        return self.error

    def __str__(self) -> str:
        return str(self.error)


__all__ = [
    "ArityError",
    "DecodeError",
    "InjectorFailure",
    "InjectorMismatchError",
    "JsonFuncError",
    "RequestError",
    "ResultEncodingError",
    "ReturnShapeError",
    "ShapeError",
    "StatusCodeError",
    "TranslationError",
]
