"""ASGI handler binding one function to the JSON call protocol.

``JsonHandler`` converts an ordinary function into an ASGI application that
accepts ``{"params": [...]}`` and responds with ``{"results": [...]}``::

    def greet(name: str, gender: int) -> tuple[str, Exception | None]:
        if gender == 1:
            return f"Hi, Mr. {name}", None
        return "", ValueError("Sorry, I don't know about your gender.")

    app = JsonHandler(greet)

Per request the pipeline is: injector chain -> parameter decoder -> invoker
-> result encoder. Any failure short-circuits to the encoder's error path so
every response has the same shape. Construction-time problems (bad shapes,
injector mismatches) raise immediately from the constructor instead.

The pipeline itself is synchronous; the ASGI entry point reads the body,
runs ``serve()`` in Starlette's threadpool, and sends the buffered response.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from typing import Any

from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect, Request
from starlette.types import Receive, Scope, Send

from jsonfunc.core.config import HandlerConfig
from jsonfunc.core.logging import RequestContext, get_logger, with_context
from jsonfunc.decoder import ParameterDecoder
from jsonfunc.encoder import ResultEncoder
from jsonfunc.exceptions import InjectorFailure, RequestError
from jsonfunc.injectors import Injector, InjectorChain, is_injector_shaped
from jsonfunc.invoker import Invoker
from jsonfunc.shape import FunctionDescriptor
from jsonfunc.typeinfo import type_name
from jsonfunc.writer import ResponseWriter

_logger = get_logger("handler")


class HandlerMode(enum.Enum):
    """How the handler produces its outcome list, chosen at construction."""

    TARGET = "target"
    INJECTOR_AS_TARGET = "injector_as_target"


class JsonHandler:
    """ASGI application serving one target function.

    Args:
        func: The target function. When passed alone and shaped like an
            injector, it is served directly: its own outputs are the results
            and no body is decoded.
        *injectors: Functions ``(writer, request) -> (values..., outcome)``
            whose values become the leading arguments of ``func``.
        config: Status codes and error translation. Defaults to
            ``HandlerConfig()``.

    Raises:
        ShapeError: If ``func`` or an injector has a disallowed shape.
        InjectorMismatchError: If injector outputs do not fit ``func``.
    """

    def __init__(
        self,
        func: Any,
        *injectors: Any,
        config: HandlerConfig | None = None,
    ) -> None:
        self.config = config if config is not None else HandlerConfig()
        descriptor = FunctionDescriptor.describe(func)

        if not injectors and is_injector_shaped(descriptor):
            self.mode = HandlerMode.INJECTOR_AS_TARGET
            self.chain = InjectorChain([Injector(descriptor)])
            offset = len(descriptor.params)
        else:
            self.mode = HandlerMode.TARGET
            self.chain = InjectorChain.for_target(descriptor, injectors)
            offset = self.chain.width

        self.descriptor = descriptor
        self.decoder = ParameterDecoder(descriptor, offset)
        self.invoker = Invoker(descriptor)
        self.encoder = ResultEncoder(descriptor, self.config)

        _logger.debug(
            "handler_constructed",
            handler=descriptor.name,
            mode=self.mode.value,
            injectors=[injector.name for injector in self.chain.injectors],
            body_params=len(self.decoder.specs),
        )

    @property
    def name(self) -> str:
        return self.descriptor.name

    def serve(self, writer: ResponseWriter, request: Request, body: bytes | None) -> None:
        """Run the synchronous pipeline for one request, filling ``writer``.

        Never raises for request-time failures; they are encoded instead.
        """
        ctx = RequestContext(
            handler=self.descriptor.name,
            method=request.method,
            path=request.url.path,
        )
        with with_context(ctx):
            try:
                outs = self._run(writer, request, body)
            except InjectorFailure as exc:
                self.encoder.encode_error(exc.outcome, writer, self.config.default_status_code)
                return
            except RequestError as exc:
                self.encoder.encode_error(exc, writer, self.config.client_error_status_code)
                return
            except Exception as exc:
                _logger.error(
                    "invocation_failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    exc_info=True,
                )
                self.encoder.encode_error(exc, writer, self.config.internal_error_status_code)
                return
            self.encoder.encode(outs, writer)

    def _run(self, writer: ResponseWriter, request: Request, body: bytes | None) -> list[Any]:
        if self.mode is HandlerMode.INJECTOR_AS_TARGET:
            return self.invoker.invoke([writer, request])
        injected = self.chain.run(writer, request)
        decoded = self.decoder.decode(body)
        args = self.invoker.assemble(injected, decoded)
        return self.invoker.invoke(args)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            raise RuntimeError(f"{self.descriptor.name} only serves http, got {scope['type']}")
        log = _logger.bind(handler=self.descriptor.name)
        request = Request(scope, receive)
        try:
            body = await request.body() if self.decoder.needs_body else None
        except (OSError, ClientDisconnect) as exc:
            # Nobody is left to answer
            log.warning("request_read_failed", error=str(exc) or type(exc).__name__)
            return
        writer = ResponseWriter()
        await run_in_threadpool(self.serve, writer, request, body)
        response = writer.to_response()
        try:
            await response(scope, receive, send)
        except (OSError, ClientDisconnect) as exc:
            log.warning("response_write_failed", error=str(exc) or type(exc).__name__)


def to_handler(
    func: Any,
    *injectors: Any,
    config: HandlerConfig | None = None,
) -> JsonHandler:
    """Build a ``JsonHandler``; see its documentation."""
    return JsonHandler(func, *injectors, config=config)


def describe_bindings(handler: JsonHandler) -> Sequence[tuple[int, str, str, str]]:
    """Rows ``(position, name, type, source)`` describing each parameter.

    ``source`` is "injector", "context", "writer/request" or "body".
    """
    rows: list[tuple[int, str, str, str]] = []
    for position, param in enumerate(handler.descriptor.params):
        if handler.mode is HandlerMode.INJECTOR_AS_TARGET:
            source = "writer/request"
        elif position >= handler.decoder.offset:
            source = "body"
        elif handler.chain.implicit:
            source = "context"
        else:
            source = "injector"
        rows.append((position, param.name, type_name(param.annotation), source))
    return rows


__all__ = ["HandlerMode", "JsonHandler", "describe_bindings", "to_handler"]
