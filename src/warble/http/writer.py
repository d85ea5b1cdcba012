"""Response sinks.

Render calls write to a *sink*. A full ``ResponseWriter`` receives
headers, a status code and body bytes. Any object with a ``write(bytes)``
method is accepted too; it only receives the body, which is handy for
rendering into files or plain buffers.
"""

import logging
from collections.abc import MutableMapping
from typing import Protocol, runtime_checkable

from warble.http.content import CONTENT_TYPE
from warble.http.headers import MutableHeaders

logger = logging.getLogger("warble.render")


@runtime_checkable
class Writer(Protocol):
    """Anything that accepts body bytes."""

    def write(self, data: bytes, /) -> int: ...


@runtime_checkable
class ResponseWriter(Protocol):
    """An HTTP response under construction.

    Headers must be set before ``write_header``; the first ``write``
    without a prior ``write_header`` implies status 200.
    """

    headers: MutableMapping[str, str]

    def write_header(self, status: int) -> None: ...

    def write(self, data: bytes, /) -> int: ...


class BufferedResponse:
    """A ``ResponseWriter`` that keeps everything in memory.

    Hosts hand one to the renderer and then ship ``status``, ``headers``
    and ``body`` through their own transport (see ``warble.asgi``).
    Tests use it to inspect exactly what a render call produced.
    """

    __slots__ = ("_body", "headers", "status", "wrote_header")

    def __init__(self) -> None:
        self.headers = MutableHeaders()
        self.status = 200
        self.wrote_header = False
        self._body = bytearray()

    def write_header(self, status: int) -> None:
        if self.wrote_header:
            logger.warning("superfluous write_header call (status %d ignored)", status)
            return
        self.status = status
        self.wrote_header = True

    def write(self, data: bytes, /) -> int:
        if not self.wrote_header:
            self.write_header(200)
        self._body += data
        return len(data)

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    @property
    def text(self) -> str:
        return self._body.decode("utf-8", errors="replace")

    @property
    def content_type(self) -> str | None:
        return self.headers.get(CONTENT_TYPE)

    def __repr__(self) -> str:
        return f"BufferedResponse(status={self.status}, body={len(self._body)} bytes)"


def http_error(w: Writer, message: str, status: int) -> None:
    """Replace the response with a plain-text error page."""
    if isinstance(w, ResponseWriter):
        w.headers[CONTENT_TYPE] = "text/plain; charset=utf-8"
        w.headers["X-Content-Type-Options"] = "nosniff"
        w.write_header(status)
    w.write(f"{message}\n".encode())
