"""Final argument assembly and invocation of the target function."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from jsonfunc.core.logging import get_logger
from jsonfunc.exceptions import ArityError
from jsonfunc.shape import FunctionDescriptor

_logger = get_logger("invoker")


class Invoker:
    """Calls a described function with a fully assembled argument list."""

    def __init__(self, descriptor: FunctionDescriptor) -> None:
        self.descriptor = descriptor

    def assemble(self, injected: Sequence[Any], decoded: Sequence[Any]) -> list[Any]:
        """Concatenate injected and decoded arguments, checking the arity.

        Raises:
            ArityError: If the total differs from the declared parameter count.
        """
        args = [*injected, *decoded]
        required = len(self.descriptor.params)
        if len(args) != required:
            _logger.warning(
                "arity_mismatch",
                handler=self.descriptor.name,
                required=required,
                supplied=len(args),
            )
            raise ArityError(required, len(args), args)
        return args

    def invoke(self, args: Sequence[Any]) -> list[Any]:
        """Call the function and return its outcome list.

        Exceptions raised by the function propagate unchanged.

        Raises:
            ReturnShapeError: If the return value contradicts the annotation.
        """
        return self.descriptor.unpack(self.descriptor.func(*args))


__all__ = ["Invoker"]
