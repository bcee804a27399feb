"""Argument injectors: leading arguments derived from the request context.

An injector is a function taking exactly the response writer and the
incoming request, returning the values it produces followed by an outcome::

    def current_user(writer: ResponseWriter, request: Request) -> tuple[User, Exception | None]:
        token = request.headers.get("authorization")
        if token is None:
            return User(), StatusCodeError(401, "missing credentials")
        return load_user(token), None

Injectors run in declaration order. Their produced values are concatenated
and passed as the leading arguments of the target function; a non-None
outcome stops the chain before the body is decoded.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from starlette.datastructures import State
from starlette.requests import Request

from jsonfunc.core.logging import get_logger
from jsonfunc.exceptions import InjectorFailure, InjectorMismatchError, ShapeError
from jsonfunc.shape import FunctionDescriptor
from jsonfunc.typeinfo import is_assignable, is_context_type, type_name
from jsonfunc.writer import ResponseWriter

_logger = get_logger("injectors")


def is_injector_shaped(descriptor: FunctionDescriptor) -> bool:
    """True when the function accepts exactly ``(ResponseWriter, Request)``."""
    if len(descriptor.params) != 2:
        return False
    writer_type, request_type = descriptor.param_types
    return (
        isinstance(writer_type, type)
        and issubclass(writer_type, ResponseWriter)
        and is_assignable(Request, request_type)
        and is_context_type(request_type)
    )


@dataclass(frozen=True)
class Injector:
    """A validated injector function."""

    descriptor: FunctionDescriptor

    @classmethod
    def from_function(cls, func: Any) -> Injector:
        """Describe and validate ``func`` as an injector.

        Raises:
            ShapeError: If ``func`` is not shaped like an injector.
        """
        if isinstance(func, Injector):
            return func
        descriptor = FunctionDescriptor.describe(func)
        if not is_injector_shaped(descriptor):
            raise ShapeError(
                f"injector {descriptor.signature()} must accept exactly "
                "(writer: ResponseWriter, request: Request)"
            )
        return cls(descriptor)

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def produced_types(self) -> tuple[Any, ...]:
        return self.descriptor.result_types

    def __call__(
        self, writer: ResponseWriter, request: Request
    ) -> tuple[list[Any], BaseException | None]:
        """Run the injector, returning ``(produced_values, outcome)``."""
        outs = self.descriptor.unpack(self.descriptor.func(writer, request))
        return outs[:-1], outs[-1]


def _inject_request(
    writer: ResponseWriter, request: Request
) -> tuple[Request, Exception | None]:
    return request, None


def _inject_state(
    writer: ResponseWriter, request: Request
) -> tuple[State, Exception | None]:
    return request.state, None


def default_injector(target: FunctionDescriptor) -> Injector | None:
    """Implicit injector for a target whose first parameter takes the context.

    ``Request`` (or any ``HTTPConnection``) receives the request itself,
    ``State`` receives ``request.state``.
    """
    if not target.params or not is_context_type(target.params[0].annotation):
        return None
    annotation = target.params[0].annotation
    if is_assignable(Request, annotation):
        return Injector.from_function(_inject_request)
    if is_assignable(State, annotation):
        return Injector.from_function(_inject_state)
    return None


class InjectorChain:
    """Ordered injectors whose outputs form the target's leading arguments."""

    def __init__(self, injectors: Sequence[Injector] = (), implicit: bool = False) -> None:
        self.injectors: tuple[Injector, ...] = tuple(injectors)
        # True when the only injector is the default context injector
        self.implicit = implicit

    @classmethod
    def for_target(cls, target: FunctionDescriptor, funcs: Sequence[Any]) -> InjectorChain:
        """Validate ``funcs`` as injectors feeding ``target``.

        With no injectors, a context-typed first parameter gets the implicit
        default injector.

        Raises:
            ShapeError: If an injector is malformed.
            InjectorMismatchError: If the produced types do not fit ``target``.
        """
        injectors = [Injector.from_function(func) for func in funcs]
        implicit = False
        if not injectors:
            default = default_injector(target)
            if default is not None:
                injectors.append(default)
                implicit = True
        chain = cls(injectors, implicit=implicit)
        chain.check_compatible(target)
        return chain

    @property
    def produced_types(self) -> tuple[Any, ...]:
        return tuple(tp for injector in self.injectors for tp in injector.produced_types)

    @property
    def width(self) -> int:
        """Number of leading target parameters supplied by the chain."""
        return len(self.produced_types)

    def check_compatible(self, target: FunctionDescriptor) -> None:
        produced = self.produced_types
        expected = target.param_types[: len(produced)]
        compatible = len(produced) <= len(target.params) and all(
            is_assignable(src, dst) for src, dst in zip(produced, expected, strict=False)
        )
        if compatible:
            return
        expected_names = [type_name(tp) for tp in expected]
        actual_names = [type_name(tp) for tp in produced]
        raise InjectorMismatchError(
            f"{target.signature()} params type is [{', '.join(expected_names)}], "
            f"but injecting [{', '.join(actual_names)}]",
            expected=expected_names,
            actual=actual_names,
        )

    def run(self, writer: ResponseWriter, request: Request) -> list[Any]:
        """Run every injector in order and return the concatenated values.

        Raises:
            InjectorFailure: As soon as an injector reports a non-None outcome.
        """
        prefix: list[Any] = []
        for injector in self.injectors:
            values, outcome = injector(writer, request)
            if outcome is not None:
                _logger.info(
                    "injector_short_circuit",
                    injector=injector.name,
                    error=str(outcome),
                )
                raise InjectorFailure(outcome, injector.name)
            prefix.extend(values)
        return prefix


__all__ = [
    "Injector",
    "InjectorChain",
    "default_injector",
    "is_injector_shaped",
]
