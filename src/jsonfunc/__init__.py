"""jsonfunc: serve ordinary Python functions over a JSON call protocol."""

from jsonfunc.core.config import HandlerConfig, LogConfig
from jsonfunc.errors import HasStatusCode
from jsonfunc.exceptions import (
    ArityError,
    DecodeError,
    InjectorMismatchError,
    JsonFuncError,
    RequestError,
    ShapeError,
    StatusCodeError,
)
from jsonfunc.handler import HandlerMode, JsonHandler, describe_bindings, to_handler
from jsonfunc.protocol import CallRequest, CallResponse, ErrorEnvelope
from jsonfunc.writer import ResponseWriter

__version__ = "0.1.0"

__all__ = [
    "ArityError",
    "CallRequest",
    "CallResponse",
    "DecodeError",
    "ErrorEnvelope",
    "HandlerConfig",
    "HandlerMode",
    "HasStatusCode",
    "InjectorMismatchError",
    "JsonFuncError",
    "JsonHandler",
    "LogConfig",
    "RequestError",
    "ResponseWriter",
    "ShapeError",
    "StatusCodeError",
    "__version__",
    "describe_bindings",
    "to_handler",
]
