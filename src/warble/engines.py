"""Render engines — one per output format.

An engine knows how to turn one kind of value into response bytes and
when to write the head (status plus ``Content-Type``). ``Renderer`` builds
a fresh engine per call and owns the error-page policy around it.

Buffered engines produce the whole body before touching the sink, so a
failure never leaves a half-written response. Streaming JSON writes the
head first and encodes straight into the sink: lower latency and memory,
but a failure part-way through leaves a truncated body behind headers
that are already committed.
"""

import copy
import dataclasses
import json as json_module
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from warble.errors import MarshalError
from warble.http.content import CONTENT_TYPE
from warble.http.writer import ResponseWriter, Writer
from warble.pool import BufferPool, SizedBufferPool, pooled
from warble.templating.compiler import TemplateSet
from warble.templating.helpers import bind_helpers

_HTML_ESCAPES = str.maketrans({"<": "\\u003c", ">": "\\u003e", "&": "\\u0026"})

# Valid JSON, but they terminate lines when the payload is evaluated as JavaScript
_LINE_SEPARATOR_ESCAPES = str.maketrans({"\u2028": "\\u2028", "\u2029": "\\u2029"})


@dataclass(frozen=True, slots=True)
class Head:
    """Status code and ``Content-Type`` for one response."""

    content_type: str
    status: int

    def write(self, w: Writer) -> None:
        if isinstance(w, ResponseWriter):
            w.headers[CONTENT_TYPE] = self.content_type
            w.write_header(self.status)


class Engine(ABC):
    """Base for render engines."""

    __slots__ = ()

    # True when the head is written before the body is known to be good.
    writes_head_first: bool = False

    @abstractmethod
    def render(self, w: Writer, value: Any) -> None: ...


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def _json_encoder(indent: bool) -> json_module.JSONEncoder:
    return json_module.JSONEncoder(
        ensure_ascii=False,
        allow_nan=False,
        indent=2 if indent else None,
        separators=(",", ": ") if indent else (",", ":"),
        default=_json_default,
    )


def _escape_json(text: str, *, escape_html: bool) -> str:
    text = text.translate(_LINE_SEPARATOR_ESCAPES)
    if escape_html:
        text = text.translate(_HTML_ESCAPES)
    return text


def marshal_json(value: Any, *, indent: bool = False, escape_html: bool = True) -> bytes:
    """Serialize *value* to JSON bytes.

    Indented output ends with a newline. ``<``, ``>`` and ``&`` become
    unicode escapes unless *escape_html* is off.

    Raises:
        MarshalError: *value* (or something inside it) cannot be encoded.
    """
    try:
        text = _json_encoder(indent).encode(value)
    except (TypeError, ValueError, RecursionError) as exc:
        raise MarshalError(f"json: {exc}") from exc
    text = _escape_json(text, escape_html=escape_html)
    if indent:
        text += "\n"
    return text.encode("utf-8")


def marshal_xml(value: Any, *, indent: bool = False) -> bytes:
    """Serialize an ``Element`` (or an object with ``__xml__()``) to bytes.

    Raises:
        MarshalError: *value* is not XML-serializable.
    """
    element = value.__xml__() if hasattr(value, "__xml__") else value
    if not isinstance(element, ET.Element):
        msg = f"xml: unsupported type: {type(value).__name__}"
        raise MarshalError(msg)
    if indent:
        element = copy.deepcopy(element)
        ET.indent(element, space="  ")
    try:
        text = ET.tostring(element, encoding="unicode", short_empty_elements=False)
    except (TypeError, ValueError) as exc:
        raise MarshalError(f"xml: {exc}") from exc
    if indent:
        text += "\n"
    return text.encode("utf-8")


@dataclass(frozen=True, slots=True)
class Data(Engine):
    """Raw bytes, written verbatim.

    A ``Content-Type`` the caller already set wins over the configured one.
    """

    head: Head

    def render(self, w: Writer, value: Any) -> None:
        if not isinstance(value, bytes | bytearray | memoryview):
            msg = f"data: expected bytes, got {type(value).__name__}"
            raise MarshalError(msg)
        if isinstance(w, ResponseWriter):
            if CONTENT_TYPE not in w.headers:
                w.headers[CONTENT_TYPE] = self.head.content_type
            w.write_header(self.head.status)
        w.write(bytes(value))


@dataclass(frozen=True, slots=True)
class Text(Engine):
    """Plain text."""

    head: Head

    def render(self, w: Writer, value: Any) -> None:
        body = value if isinstance(value, bytes) else str(value).encode("utf-8")
        self.head.write(w)
        w.write(body)


@dataclass(frozen=True, slots=True)
class JSON(Engine):
    """JSON, buffered or streamed, with an optional literal prefix."""

    head: Head
    indent: bool = False
    unescape_html: bool = False
    prefix: bytes = b""
    streaming: bool = False
    buffer_pool: BufferPool = dataclasses.field(default_factory=SizedBufferPool)

    @property
    def writes_head_first(self) -> bool:  # type: ignore[override]
        return self.streaming

    def render(self, w: Writer, value: Any) -> None:
        if self.streaming:
            self._render_streaming(w, value)
            return

        body = marshal_json(value, indent=self.indent, escape_html=not self.unescape_html)
        with pooled(self.buffer_pool) as buf:
            buf.write(self.prefix)
            buf.write(body)
            self.head.write(w)
            w.write(buf.getvalue())

    def _render_streaming(self, w: Writer, value: Any) -> None:
        self.head.write(w)
        if self.prefix:
            w.write(self.prefix)
        encoder = _json_encoder(self.indent)
        try:
            for chunk in encoder.iterencode(value):
                w.write(_escape_json(chunk, escape_html=not self.unescape_html).encode("utf-8"))
        except (TypeError, ValueError, RecursionError) as exc:
            raise MarshalError(f"json: {exc}") from exc
        w.write(b"\n")


@dataclass(frozen=True, slots=True)
class JSONP(Engine):
    """JSON wrapped in a ``callback(...);`` call."""

    head: Head
    callback: str
    indent: bool = False

    def render(self, w: Writer, value: Any) -> None:
        body = marshal_json(value, indent=self.indent)
        self.head.write(w)
        w.write(f"{self.callback}(".encode())
        w.write(body)
        w.write(b");")


@dataclass(frozen=True, slots=True)
class XML(Engine):
    """XML from ``Element`` trees, with an optional literal prefix."""

    head: Head
    indent: bool = False
    prefix: bytes = b""
    buffer_pool: BufferPool = dataclasses.field(default_factory=SizedBufferPool)

    def render(self, w: Writer, value: Any) -> None:
        body = marshal_xml(value, indent=self.indent)
        with pooled(self.buffer_pool) as buf:
            buf.write(self.prefix)
            buf.write(body)
            self.head.write(w)
            w.write(buf.getvalue())


@dataclass(frozen=True, slots=True)
class HTML(Engine):
    """A named template, optionally wrapped in a layout.

    The content template is looked up first so a missing template is
    reported by its own name, then the layout. With a layout, the layout
    is executed and ``yield`` inside it renders the content template.
    """

    head: Head
    name: str
    templates: TemplateSet
    layout: str = ""
    funcs: Mapping[str, Any] | None = None
    require_partials: bool = False
    partials_without_prefix: bool = False
    buffer_pool: BufferPool = dataclasses.field(default_factory=SizedBufferPool)

    def render(self, w: Writer, value: Any) -> None:
        template = self.templates.require(self.name)
        if self.layout:
            template = self.templates.require(self.layout)

        context = self._context(value)
        with pooled(self.buffer_pool) as buf:
            for chunk in template.generate(context):
                buf.write(chunk.encode("utf-8"))
            self.head.write(w)
            w.write(buf.getvalue())

    def _context(self, binding: Any) -> dict[str, Any]:
        context: dict[str, Any] = {}
        if isinstance(binding, Mapping):
            context.update(binding)
        context.setdefault("data", binding)
        if self.funcs:
            context.update(self.funcs)
        context.update(
            bind_helpers(
                self.templates,
                self.name,
                context,
                layout=bool(self.layout),
                require_partials=self.require_partials,
                partials_without_prefix=self.partials_without_prefix,
            )
        )
        return context
