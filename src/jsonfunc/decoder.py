"""Type-directed decoding of the request body into parameter slots.

For every target parameter not supplied by injectors, a ``SlotSpec`` is
built once at construction time. Each request then gets fresh
``ParameterSlot`` objects that are filled from the ``params`` array by
position: element *i* fills slot *i*, validated by pydantic against the
parameter's declared type in strict JSON mode. A JSON string never fills an
``int`` slot and a JSON boolean never fills a number slot; strings still
decode into dates, enums and other types JSON spells as strings.

Optional parameters (``T | None``) are *by reference*: JSON ``null`` binds
``None``. Every other parameter is *by value*: JSON ``null`` leaves the
slot at the zero value of its type (``0``, ``""``, ``[]``...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError
from pydantic_core import to_json

from jsonfunc.core.logging import get_logger
from jsonfunc.exceptions import DecodeError, ShapeError
from jsonfunc.protocol import CallRequest
from jsonfunc.shape import FunctionDescriptor, Parameter
from jsonfunc.typeinfo import unwrap_optional, zero_value

_logger = get_logger("decoder")


def describe_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic's error list into one line."""
    parts = []
    for error in exc.errors():
        loc = ".".join(str(item) for item in error["loc"])
        parts.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return "; ".join(parts)


@dataclass(frozen=True)
class SlotSpec:
    """Construction-time description of one decodable parameter."""

    position: int
    parameter: Parameter
    by_reference: bool
    adapter: TypeAdapter[Any] = field(repr=False, compare=False)

    @classmethod
    def for_parameter(cls, position: int, parameter: Parameter) -> SlotSpec:
        """Build the slot spec, rejecting types pydantic cannot decode.

        Raises:
            ShapeError: If no JSON schema can be generated for the parameter.
        """
        _, optional = unwrap_optional(parameter.annotation)
        try:
            adapter: TypeAdapter[Any] = TypeAdapter(parameter.annotation)
        except PydanticSchemaGenerationError as exc:
            raise ShapeError(
                f"parameter {parameter} cannot be decoded from JSON"
            ) from exc
        return cls(position, parameter, optional, adapter)

    def new_slot(self) -> ParameterSlot:
        initial = None if self.by_reference else zero_value(self.parameter.annotation)
        return ParameterSlot(self, initial)


@dataclass
class ParameterSlot:
    """Request-scoped storage for one parameter."""

    spec: SlotSpec
    value: Any
    filled: bool = False

    def fill(self, raw: Any) -> None:
        """Decode the JSON value ``raw`` into the slot.

        Raises:
            DecodeError: If ``raw`` does not validate against the parameter type.
        """
        self.filled = True
        if raw is None and not self.spec.by_reference:
            return
        try:
            self.value = self.spec.adapter.validate_json(to_json(raw), strict=True)
        except ValidationError as exc:
            param = self.spec.parameter
            raise DecodeError(
                f"params[{self.spec.position}] ({param}): {describe_validation_error(exc)}"
            ) from exc

    def argument(self) -> Any:
        """Value to pass to the target function.

        By-value slots never pass None for a non-optional type.
        """
        if self.value is None and not self.spec.by_reference:
            return zero_value(self.spec.parameter.annotation)
        return self.value


class ParameterDecoder:
    """Decodes ``{"params": [...]}`` into arguments for the non-injected parameters."""

    def __init__(self, descriptor: FunctionDescriptor, offset: int = 0) -> None:
        self.descriptor = descriptor
        self.offset = offset
        self.specs: tuple[SlotSpec, ...] = tuple(
            SlotSpec.for_parameter(position, param)
            for position, param in enumerate(descriptor.params[offset:])
        )

    @property
    def needs_body(self) -> bool:
        """False when every parameter is injected; the body is then never read."""
        return bool(self.specs)

    def new_slots(self) -> list[ParameterSlot]:
        return [spec.new_slot() for spec in self.specs]

    def decode(self, body: bytes | None) -> list[Any]:
        """Decode ``body`` into call arguments, in parameter order.

        Elements beyond the slot count are returned undecoded so the
        invoker's arity check reports them.

        Raises:
            DecodeError: On malformed JSON or a type mismatch.
        """
        if not self.specs:
            return []
        try:
            call = CallRequest.model_validate_json(body or b"")
        except ValidationError as exc:
            _logger.warning(
                "request_decode_failed",
                handler=self.descriptor.name,
                error=describe_validation_error(exc),
            )
            raise DecodeError(
                f"{describe_validation_error(exc)}, func type: {self.descriptor.signature()}"
            ) from exc

        slots = self.new_slots()
        args: list[Any] = []
        for index, raw in enumerate(call.params):
            if index >= len(slots):
                args.append(raw)
                continue
            slot = slots[index]
            try:
                slot.fill(raw)
            except DecodeError as exc:
                _logger.warning(
                    "request_decode_failed",
                    handler=self.descriptor.name,
                    position=index,
                    error=str(exc),
                )
                raise
            args.append(slot.argument())
        return args


__all__ = [
    "ParameterDecoder",
    "ParameterSlot",
    "SlotSpec",
    "describe_validation_error",
]
