"""Renderer configuration.

RenderConfig is a frozen dataclass — immutable after creation,
IDE-autocompletable, no string-key dict lookups. Several configs can be
layered with ``merge_configs``: later configs win field by field, but only
for fields they set to something other than the default.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from warble.errors import ConfigurationError
from warble.fs.base import FileSystem
from warble.http.content import (
    CONTENT_BINARY,
    CONTENT_HTML,
    CONTENT_JSON,
    CONTENT_JSONP,
    CONTENT_TEXT,
    CONTENT_XML,
    DEFAULT_CHARSET,
)
from warble.pool import BufferPool

# Statement and comment markers Jinja2 keeps regardless of expression delimiters
_RESERVED_MARKERS = frozenset({"{%", "%}", "{#", "#}"})


@dataclass(frozen=True, slots=True)
class Delims:
    """Expression delimiters, ``{{ ... }}`` by default."""

    left: str = "{{"
    right: str = "}}"


DEFAULT_DELIMS = Delims()


@dataclass(frozen=True, slots=True)
class HTMLOptions:
    """Per-call overrides for ``Renderer.html``.

    ``layout=None`` keeps the configured layout; ``layout=""`` renders
    without one. ``funcs`` adds helpers for this call only (built-ins
    still win).
    """

    layout: str | None = None
    funcs: Mapping[str, Callable[..., Any]] | None = None


@dataclass(frozen=True, slots=True)
class RenderConfig:
    """Renderer configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RenderConfig(directory="views", layout="base", indent_json=True)
    """

    # Templates
    directory: str | Path = "templates"
    file_system: FileSystem | None = None  # Takes precedence over directory
    layout: str = ""
    extensions: tuple[str, ...] = (".tmpl",)
    funcs: tuple[Mapping[str, Callable[..., Any]], ...] = ()
    delims: Delims = DEFAULT_DELIMS
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True
    strict_undefined: bool = True
    require_partials: bool = False
    render_partials_without_prefix: bool = False

    # Recompilation
    recompile: bool = False  # Rebuild templates before every HTML render
    use_mutex_lock: bool = False

    # Charset
    charset: str = DEFAULT_CHARSET
    disable_charset: bool = False

    # Content types
    html_content_type: str = CONTENT_HTML
    json_content_type: str = CONTENT_JSON
    jsonp_content_type: str = CONTENT_JSONP
    xml_content_type: str = CONTENT_XML
    text_content_type: str = CONTENT_TEXT
    binary_content_type: str = CONTENT_BINARY

    # JSON
    indent_json: bool = False
    prefix_json: bytes = b""
    unescape_html: bool = False
    streaming_json: bool = False

    # XML
    indent_xml: bool = False
    prefix_xml: bytes = b""

    # Errors
    disable_http_error_rendering: bool = False

    # Buffers
    buffer_pool: BufferPool | None = None


def merge_configs(*configs: RenderConfig) -> RenderConfig:
    """Layer *configs* left to right; non-default values override."""
    overrides: dict[str, Any] = {}
    for config in configs:
        for f in fields(RenderConfig):
            value = getattr(config, f.name)
            if value != f.default:
                overrides[f.name] = value
    return RenderConfig(**overrides)


def validate_config(config: RenderConfig) -> None:
    """Reject configurations a renderer cannot work with.

    Raises:
        ConfigurationError: Describes the first problem found.
    """
    delims = config.delims
    if not delims.left or not delims.right:
        msg = f"template delimiters must not be empty: {delims!r}"
        raise ConfigurationError(msg)
    if delims.left in _RESERVED_MARKERS or delims.right in _RESERVED_MARKERS:
        msg = f"template delimiters {delims!r} collide with statement or comment markers"
        raise ConfigurationError(msg)

    if not config.extensions:
        msg = "at least one template extension is required"
        raise ConfigurationError(msg)
    for extension in config.extensions:
        if len(extension) < 2 or not extension.startswith("."):
            msg = f"template extension {extension!r} must start with '.' and name a suffix"
            raise ConfigurationError(msg)

    if config.file_system is not None and not isinstance(config.file_system, FileSystem):
        msg = f"file_system {config.file_system!r} does not provide open(path)"
        raise ConfigurationError(msg)

    for bundle in config.funcs:
        if not isinstance(bundle, Mapping):
            msg = f"helper bundles must be mappings of name to callable, got {type(bundle).__name__}"
            raise ConfigurationError(msg)

    pool = config.buffer_pool
    if pool is not None and not (callable(getattr(pool, "get", None)) and callable(getattr(pool, "put", None))):
        msg = f"buffer_pool {pool!r} must provide get() and put()"
        raise ConfigurationError(msg)
