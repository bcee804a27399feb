"""Encoding of a function's outcome list into the JSON response.

The last value of the outcome list is the outcome: ``None`` on success,
an exception otherwise. Normal values are serialized as-is; the outcome
becomes ``null`` or an ``ErrorEnvelope``. Failures raised anywhere in the
pipeline go through ``encode_error`` so the client always receives the
same shape: one placeholder per normal return value, then the envelope.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic_core import PydanticSerializationError, to_jsonable_python

from jsonfunc.core.config import HandlerConfig
from jsonfunc.core.logging import get_logger
from jsonfunc.errors import make_envelope, status_code_of
from jsonfunc.exceptions import ResultEncodingError, TranslationError
from jsonfunc.protocol import CallResponse
from jsonfunc.shape import FunctionDescriptor
from jsonfunc.typeinfo import zero_value
from jsonfunc.writer import ResponseWriter

_logger = get_logger("encoder")


class ResultEncoder:
    """Writes outcome lists of one function as ``{"results": [...]}``."""

    def __init__(self, descriptor: FunctionDescriptor, config: HandlerConfig) -> None:
        self.descriptor = descriptor
        self.config = config

    def encode(self, outs: Sequence[Any], writer: ResponseWriter) -> None:
        """Write a complete outcome list returned by the function."""
        *normal, outcome = outs
        try:
            results = [to_jsonable_python(value) for value in normal]
        except PydanticSerializationError as exc:
            _logger.error(
                "result_encoding_failed",
                handler=self.descriptor.name,
                error=str(exc),
            )
            self.encode_error(
                ResultEncodingError(f"cannot encode results of {self.descriptor.name}: {exc}"),
                writer,
                self.config.internal_error_status_code,
            )
            return
        status_code = self.config.default_status_code
        if outcome is None:
            results.append(None)
        else:
            status_code, envelope = self._envelope(outcome, status_code)
            results.append(envelope)
        self._write(writer, status_code, results)

    def encode_error(
        self,
        error: BaseException,
        writer: ResponseWriter,
        status_code: int | None = None,
    ) -> None:
        """Write ``error`` with zero placeholders for the normal return values.

        ``status_code`` is the default used when ``error`` requests no status
        of its own.
        """
        if status_code is None:
            status_code = self.config.default_status_code
        placeholders = [
            to_jsonable_python(zero_value(tp), serialize_unknown=True)
            for tp in self.descriptor.result_types
        ]
        status_code, envelope = self._envelope(error, status_code)
        self._write(writer, status_code, [*placeholders, envelope])

    def _envelope(self, outcome: BaseException, default_status: int) -> tuple[int, dict[str, Any]]:
        status_code = status_code_of(outcome, default_status)
        final = self._translate(outcome)
        return status_code, make_envelope(final).to_wire()

    def _translate(self, outcome: BaseException) -> BaseException:
        translator = self.config.error_translator
        if translator is None:
            return outcome
        try:
            translated = translator(outcome)
        except Exception:
            _logger.exception(
                "error_translation_failed",
                handler=self.descriptor.name,
                error_type=type(outcome).__name__,
            )
            return TranslationError("error translation failed")
        return outcome if translated is None else translated

    def _write(self, writer: ResponseWriter, status_code: int, results: list[Any]) -> None:
        body = CallResponse(results=results).model_dump_json()
        writer.headers["content-type"] = "application/json"
        writer.write_header(status_code)
        writer.write(body.encode("utf-8") + b"\n")


__all__ = ["ResultEncoder"]
