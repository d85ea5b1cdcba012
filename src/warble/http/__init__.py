"""HTTP-facing pieces: headers, content types and response sinks."""

from warble.http.content import (
    CONTENT_BINARY,
    CONTENT_HTML,
    CONTENT_JSON,
    CONTENT_JSONP,
    CONTENT_LENGTH,
    CONTENT_TEXT,
    CONTENT_TYPE,
    CONTENT_XHTML,
    CONTENT_XML,
    DEFAULT_CHARSET,
)
from warble.http.headers import MutableHeaders
from warble.http.writer import BufferedResponse, ResponseWriter, Writer, http_error

__all__ = [
    "CONTENT_BINARY",
    "CONTENT_HTML",
    "CONTENT_JSON",
    "CONTENT_JSONP",
    "CONTENT_LENGTH",
    "CONTENT_TEXT",
    "CONTENT_TYPE",
    "CONTENT_XHTML",
    "CONTENT_XML",
    "DEFAULT_CHARSET",
    "BufferedResponse",
    "MutableHeaders",
    "ResponseWriter",
    "Writer",
    "http_error",
]
