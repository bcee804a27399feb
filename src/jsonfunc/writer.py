"""Response sink handed to injectors and filled by the result encoder.

``ResponseWriter`` buffers one response: status line, headers and body.
Injectors receive it to set headers (cookies, cache control) before the
encoder writes the JSON envelope. The handler turns it into a Starlette
``Response`` once the pipeline has finished.
"""

from __future__ import annotations

from starlette.datastructures import MutableHeaders
from starlette.responses import Response

from jsonfunc.core.logging import get_logger

_logger = get_logger("writer")


class ResponseWriter:
    """Buffered HTTP response sink for a single request."""

    def __init__(self) -> None:
        self.headers = MutableHeaders()
        self._status_code: int | None = None
        self._body = bytearray()

    @property
    def status_code(self) -> int:
        """Status written so far, 200 if nothing has been written."""
        return self._status_code if self._status_code is not None else 200

    @property
    def wrote_header(self) -> bool:
        return self._status_code is not None

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    def write_header(self, status_code: int) -> None:
        """Set the response status. Only the first call takes effect."""
        if self._status_code is not None:
            _logger.warning(
                "superfluous_write_header",
                status_code=status_code,
                written=self._status_code,
            )
            return
        self._status_code = status_code

    def write(self, data: bytes) -> int:
        """Append ``data`` to the body, writing a 200 status first if needed."""
        if self._status_code is None:
            self.write_header(200)
        self._body.extend(data)
        return len(data)

    def to_response(self) -> Response:
        """Build the Starlette response, keeping repeated headers."""
        response = Response(content=self.body, status_code=self.status_code)
        response.raw_headers.extend(self.headers.raw)
        return response


__all__ = ["ResponseWriter"]
