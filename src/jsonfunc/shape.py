"""Function shape introspection and validation.

A function's *shape* is its ordered parameter types plus its ordered return
types. ``FunctionDescriptor.describe`` captures the shape once, when a
handler is constructed, and rejects anything the binding machinery cannot
serve:

- the trailing return type must be an exception type (``Exception | None``)
  because it carries the call's outcome;
- no parameter or return may be a blocking/channel type (queues, iterators,
  generators);
- parameters must be positional; ``*args``/``**kwargs`` and required
  keyword-only parameters cannot be bound from a JSON array.

Several results are declared as a tuple annotation whose last element is
the outcome::

    def greet(name: str, gender: int) -> tuple[str, Exception | None]: ...

A function reporting only an outcome annotates the exception type alone::

    def ping() -> Exception | None: ...
"""

from __future__ import annotations

import inspect
import typing
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, get_args, get_origin

from jsonfunc.exceptions import ReturnShapeError, ShapeError
from jsonfunc.typeinfo import is_blocking_type, is_error_type, type_name

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


@dataclass(frozen=True)
class Parameter:
    """One positional parameter of a described function."""

    name: str
    annotation: Any

    def __str__(self) -> str:
        return f"{self.name}: {type_name(self.annotation)}"


@dataclass(frozen=True)
class FunctionDescriptor:
    """Immutable description of a function's call shape.

    Attributes:
        func: The described callable.
        name: Display name used in messages and logs.
        params: Positional parameters in declaration order.
        returns: Return types in order; the last one is the outcome type.
        packed: True when the function returns a tuple of ``returns``.
        return_annotation: The return annotation as declared.
    """

    func: Callable[..., Any]
    name: str
    params: tuple[Parameter, ...]
    returns: tuple[Any, ...]
    packed: bool
    return_annotation: Any

    @classmethod
    def describe(cls, func: Any) -> FunctionDescriptor:
        """Introspect ``func`` and validate its shape.

        Raises:
            ShapeError: If ``func`` cannot be bound to the JSON call protocol.
        """
        if not callable(func):
            raise ShapeError(f"must pass in a callable, got {func!r}")
        name = getattr(func, "__name__", type(func).__name__)
        if inspect.iscoroutinefunction(func) or inspect.isasyncgenfunction(func):
            raise ShapeError(f"{name} must be a plain function, not a coroutine function")
        if inspect.isgeneratorfunction(func):
            raise ShapeError(f"{name} must be a plain function, not a generator function")

        hint_source = func if inspect.isroutine(func) else type(func).__call__
        try:
            signature = inspect.signature(func)
            hints = typing.get_type_hints(hint_source)
        except (NameError, TypeError, ValueError) as exc:
            raise ShapeError(f"cannot resolve the signature of {name}: {exc}") from exc

        params: list[Parameter] = []
        for param in signature.parameters.values():
            if param.kind is inspect.Parameter.KEYWORD_ONLY:
                if param.default is inspect.Parameter.empty:
                    raise ShapeError(
                        f"{name}: keyword-only parameter {param.name} needs a default"
                    )
                continue
            if param.kind not in _POSITIONAL:
                raise ShapeError(f"{name}: variadic parameter {param.name} is not supported")
            annotation = hints.get(param.name, Any)
            if is_blocking_type(annotation):
                raise ShapeError(
                    f"{name}: func arguments can not be blocking type "
                    f"({param.name}: {type_name(annotation)})"
                )
            params.append(Parameter(param.name, annotation))

        if "return" not in hints:
            raise ShapeError(f"{name}: func's last return value must be an exception type")
        return_annotation = hints["return"]
        packed = get_origin(return_annotation) is tuple
        if packed:
            returns = get_args(return_annotation)
            if not returns or returns[-1] is Ellipsis or returns == ((),):
                raise ShapeError(
                    f"{name}: return tuple must list each value, got "
                    f"{type_name(return_annotation)}"
                )
        else:
            returns = (return_annotation,)

        if not is_error_type(returns[-1]):
            raise ShapeError(
                f"{name}: func's last return value must be an exception type, "
                f"got {type_name(returns[-1])}"
            )
        for tp in returns:
            if is_blocking_type(tp):
                raise ShapeError(
                    f"{name}: func return values can not be blocking type ({type_name(tp)})"
                )

        return cls(
            func=func,
            name=name,
            params=tuple(params),
            returns=tuple(returns),
            packed=packed,
            return_annotation=return_annotation,
        )

    @property
    def param_types(self) -> tuple[Any, ...]:
        return tuple(p.annotation for p in self.params)

    @property
    def result_types(self) -> tuple[Any, ...]:
        """Return types before the trailing outcome."""
        return self.returns[:-1]

    def signature(self) -> str:
        """Render the shape as ``name(a: int, b: str) -> tuple[str, Exception | None]``."""
        params = ", ".join(str(p) for p in self.params)
        return f"{self.name}({params}) -> {type_name(self.return_annotation)}"

    def unpack(self, value: Any) -> list[Any]:
        """Normalize a raw return value into the ordered outcome list.

        Raises:
            ReturnShapeError: If the value contradicts the return annotation.
        """
        if self.packed:
            if not isinstance(value, tuple) or len(value) != len(self.returns):
                raise ReturnShapeError(
                    f"{self.name} returned {value!r}, expected a tuple of "
                    f"{len(self.returns)} values"
                )
            outs = list(value)
        else:
            outs = [value]
        outcome = outs[-1]
        if outcome is not None and not isinstance(outcome, BaseException):
            raise ReturnShapeError(
                f"{self.name} returned {outcome!r} as its outcome, expected an "
                "exception or None"
            )
        return outs


__all__ = ["FunctionDescriptor", "Parameter"]
