"""Tests for jsonfunc.errors, jsonfunc.exceptions and the wire models."""

import pytest
from pydantic import ValidationError
from starlette.exceptions import HTTPException

from jsonfunc.errors import (
    STATUS_INTERNAL_ERROR,
    STATUS_OK,
    STATUS_UNPROCESSABLE,
    HasStatusCode,
    error_payload,
    make_envelope,
    status_code_of,
    unwrap_error,
)
from jsonfunc.exceptions import (
    ArityError,
    DecodeError,
    InjectorFailure,
    JsonFuncError,
    RequestError,
    StatusCodeError,
)
from jsonfunc.protocol import CallRequest, CallResponse, ErrorEnvelope


class QuotaError(Exception):
    def __init__(self, limit: int) -> None:
        super().__init__(f"quota of {limit} exceeded")
        self.limit = limit
        self._internal = "hidden"


class TestStatusCodes:
    def test_defaults(self):
        assert (STATUS_OK, STATUS_UNPROCESSABLE, STATUS_INTERNAL_ERROR) == (200, 422, 500)

    def test_capability(self):
        assert isinstance(StatusCodeError(403, "x"), HasStatusCode)
        assert isinstance(HTTPException(status_code=404), HasStatusCode)
        assert not isinstance(ValueError("x"), HasStatusCode)

    def test_status_code_of(self):
        assert status_code_of(StatusCodeError(403, "x"), 200) == 403
        assert status_code_of(HTTPException(status_code=418), 200) == 418
        assert status_code_of(ValueError("x"), 422) == 422

    def test_non_integer_status_ignored(self):
        class Odd(Exception):
            status_code = "teapot"

        class Flag(Exception):
            status_code = True

        assert status_code_of(Odd(), 500) == 500
        assert status_code_of(Flag(), 500) == 500


class TestEnvelope:
    def test_unwrap_nested(self):
        inner = QuotaError(5)
        wrapped = StatusCodeError(429, StatusCodeError(403, inner))
        assert unwrap_error(wrapped) is inner

    def test_unwrap_self_reference_terminates(self):
        class Loop(Exception):
            def unwrap(self):
                return self

        error = Loop("loop")
        assert unwrap_error(error) is error

    def test_payload_public_attributes(self):
        assert error_payload(QuotaError(5)) == {"limit": 5}
        assert error_payload(ValueError("plain")) is None

    def test_payload_unknown_values_rendered(self):
        class Holder(Exception):
            def __init__(self) -> None:
                super().__init__("holder")
                self.thing = object()

        payload = error_payload(Holder())
        assert isinstance(payload["thing"], str)

    def test_make_envelope(self):
        envelope = make_envelope(StatusCodeError(429, QuotaError(5)))
        assert envelope.to_wire() == {"error": "quota of 5 exceeded", "value": {"limit": 5}}

    def test_envelope_without_value(self):
        assert make_envelope(ValueError("plain")).to_wire() == {"error": "plain"}


class TestExceptions:
    def test_hierarchy(self):
        assert issubclass(DecodeError, RequestError)
        assert issubclass(ArityError, RequestError)
        assert issubclass(RequestError, JsonFuncError)

    def test_status_code_error_from_string(self):
        error = StatusCodeError(403, "you can't access it")
        assert str(error) == "you can't access it"
        assert isinstance(error.unwrap(), JsonFuncError)

    def test_injector_failure_carries_outcome(self):
        outcome = ValueError("no session")
        failure = InjectorFailure(outcome, "session")
        assert failure.outcome is outcome
        assert "session" in str(failure)


class TestWireModels:
    def test_call_request(self):
        assert CallRequest.model_validate_json('{"params": ["a", 1, null]}').params == ["a", 1, None]
        assert CallRequest.model_validate_json("{}").params == []

    def test_call_request_rejects_non_array(self):
        with pytest.raises(ValidationError):
            CallRequest.model_validate_json('{"params": {"a": 1}}')

    def test_call_response_is_compact(self):
        body = CallResponse(results=["x", {"error": "e"}]).model_dump_json()
        assert body == '{"results":["x",{"error":"e"}]}'

    def test_error_envelope_value(self):
        assert ErrorEnvelope(error="e", value={"a": 1}).to_wire() == {"error": "e", "value": {"a": 1}}
