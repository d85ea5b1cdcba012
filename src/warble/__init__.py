"""Warble — response rendering for Python web services.

Renders HTML templates (with layouts), JSON, JSONP, XML, plain text and raw
bytes into any response sink. Templates are compiled from a virtual
filesystem: a local directory, an in-memory asset map, package resources,
or a watchable wrapper that rebuilds templates when they change.

Basic usage::

    from warble import BufferedResponse, RenderConfig, Renderer

    renderer = Renderer(RenderConfig(directory="templates", layout="layout"))

    response = BufferedResponse()
    renderer.html(response, 200, "home", {"user": "ana"})

ASGI applications can hand a render call to ``warble.asgi.render_asgi``,
which runs it in a worker thread and sends the result.
"""

__version__ = "0.1.0-dev"
__all__ = [
    "AssetFS",
    "BufferedResponse",
    "CompilationError",
    "ConfigurationError",
    "Delims",
    "HTMLOptions",
    "LocalFS",
    "MarshalError",
    "PackageFS",
    "RenderConfig",
    "Renderer",
    "TemplateNotFound",
    "WarbleError",
    "WatchFS",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import warble`` fast while providing a clean top-level API.
    """
    if name == "Renderer":
        from warble.renderer import Renderer

        return Renderer

    if name in ("RenderConfig", "HTMLOptions", "Delims"):
        from warble import config as _config

        return getattr(_config, name)

    if name == "BufferedResponse":
        from warble.http.writer import BufferedResponse

        return BufferedResponse

    if name in ("AssetFS", "LocalFS", "PackageFS", "WatchFS"):
        from warble import fs as _fs

        return getattr(_fs, name)

    if name in (
        "CompilationError",
        "ConfigurationError",
        "MarshalError",
        "TemplateNotFound",
        "WarbleError",
    ):
        from warble import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
