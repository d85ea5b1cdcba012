"""The Renderer — one object per application, shared by every request.

Construction merges and validates configuration, picks the filesystem and
the lock strategy, and compiles the templates. Compilation errors are fatal
to construction: a renderer never exists without a usable template set.

When the filesystem is watchable, the first successful compile arms a
single background worker. It waits for one change event, rebuilds the
whole set, and starts waiting again. A failed rebuild keeps the previous
set live; the error is logged and queued for ``watch_errors()``.
"""

import contextlib
import logging
import queue
import threading
from collections.abc import Mapping
from typing import Any

from jinja2 import Template

from warble.config import HTMLOptions, RenderConfig, merge_configs, validate_config
from warble.engines import HTML, JSON, JSONP, XML, Data, Engine, Head, Text
from warble.fs.base import FileSystem
from warble.fs.local import LocalFS
from warble.fs.watch import Subscription, WatchableFS
from warble.http.writer import Writer, http_error
from warble.pool import BufferPool, SizedBufferPool
from warble.templating import compiler
from warble.templating.locks import select_lock
from warble.templating.store import TemplateStore

logger = logging.getLogger("warble.render")

# Background rebuild failures kept for watch_errors(); the oldest are dropped first
WATCH_ERROR_LIMIT = 32


class Renderer:
    """Render HTML templates, JSON, JSONP, XML, text and raw bytes.

    Thread-safe: any number of threads may render through one instance
    while templates are rebuilt in the background.

    Usage::

        renderer = Renderer(RenderConfig(directory="views", layout="base"))
        renderer.html(response, 200, "home", {"user": user})
        renderer.json(response, 200, {"ok": True})
    """

    __slots__ = (
        "_charset_suffix",
        "_closed",
        "_compile_lock",
        "_config",
        "_fs",
        "_pool",
        "_store",
        "_subscription",
        "_watch_errors",
        "_watch_lock",
        "_watcher",
    )

    def __init__(self, *configs: RenderConfig) -> None:
        config = merge_configs(*configs)
        validate_config(config)
        self._config = config

        self._fs: FileSystem = (
            config.file_system if config.file_system is not None else LocalFS(config.directory)
        )
        self._pool: BufferPool = (
            config.buffer_pool if config.buffer_pool is not None else SizedBufferPool()
        )
        if config.disable_charset or not config.charset:
            self._charset_suffix = ""
        else:
            self._charset_suffix = f"; charset={config.charset}"

        lock = select_lock(
            recompile=config.recompile,
            use_mutex_lock=config.use_mutex_lock,
            watchable=isinstance(self._fs, WatchableFS),
        )
        self._store = TemplateStore(lock)

        self._compile_lock = threading.Lock()
        self._watch_lock = threading.Lock()
        self._watcher: threading.Thread | None = None
        self._subscription: Subscription | None = None
        self._watch_errors: queue.Queue[BaseException] = queue.Queue(maxsize=WATCH_ERROR_LIMIT)
        self._closed = threading.Event()

        self.compile_templates()

    # -- Properties --

    @property
    def config(self) -> RenderConfig:
        return self._config

    @property
    def file_system(self) -> FileSystem:
        return self._fs

    @property
    def store(self) -> TemplateStore:
        return self._store

    # -- Templates --

    def compile_templates(self) -> None:
        """Rebuild the template set from the filesystem and swap it in.

        Raises:
            CompilationError: One or more templates failed; the previous
                set stays live.
        """
        config = self._config
        with self._compile_lock:
            templates = compiler.compile_templates(
                self._fs,
                extensions=config.extensions,
                delims=config.delims,
                funcs=config.funcs,
                autoescape=config.autoescape,
                trim_blocks=config.trim_blocks,
                lstrip_blocks=config.lstrip_blocks,
                strict_undefined=config.strict_undefined,
            )
            version = self._store.replace(templates)
            logger.info("loaded %d templates (version %d)", len(templates), version)
            self._arm_watch()

    def template_lookup(self, name: str) -> Template | None:
        """Return the compiled template called *name*, if any."""
        return self._store.lookup(name)

    # -- Render entry points --

    def render(self, w: Writer, engine: Engine, data: Any) -> None:
        """Run *engine* against *w*, writing an error page if it fails.

        The error page is skipped when error rendering is disabled, or when
        the engine may already have committed the head. The error is
        re-raised either way.
        """
        try:
            engine.render(w, data)
        except Exception as exc:
            if not engine.writes_head_first:
                self._error_page(w, exc)
            raise

    def html(
        self,
        w: Writer,
        status: int,
        name: str,
        binding: Any = None,
        options: HTMLOptions | None = None,
    ) -> None:
        """Render template *name* with *binding*, wrapped in the layout if any."""
        config = self._config
        if config.recompile:
            try:
                self.compile_templates()
            except Exception as exc:
                self._error_page(w, exc)
                raise

        layout = config.layout
        funcs: Mapping[str, Any] | None = None
        if options is not None:
            if options.layout is not None:
                layout = options.layout
            funcs = options.funcs

        with self._store.reading() as templates:
            engine = HTML(
                head=Head(self._content_type(config.html_content_type), status),
                name=name,
                templates=templates,
                layout=layout,
                funcs=funcs,
                require_partials=config.require_partials,
                partials_without_prefix=config.render_partials_without_prefix,
                buffer_pool=self._pool,
            )
            self.render(w, engine, binding)

    def json(self, w: Writer, status: int, value: Any) -> None:
        config = self._config
        engine = JSON(
            head=Head(self._content_type(config.json_content_type), status),
            indent=config.indent_json,
            unescape_html=config.unescape_html,
            prefix=config.prefix_json,
            streaming=config.streaming_json,
            buffer_pool=self._pool,
        )
        self.render(w, engine, value)

    def jsonp(self, w: Writer, status: int, callback: str, value: Any) -> None:
        config = self._config
        engine = JSONP(
            head=Head(self._content_type(config.jsonp_content_type), status),
            callback=callback,
            indent=config.indent_json,
        )
        self.render(w, engine, value)

    def xml(self, w: Writer, status: int, value: Any) -> None:
        config = self._config
        engine = XML(
            head=Head(self._content_type(config.xml_content_type), status),
            indent=config.indent_xml,
            prefix=config.prefix_xml,
            buffer_pool=self._pool,
        )
        self.render(w, engine, value)

    def text(self, w: Writer, status: int, value: str) -> None:
        engine = Text(head=Head(self._content_type(self._config.text_content_type), status))
        self.render(w, engine, value)

    def data(self, w: Writer, status: int, value: bytes) -> None:
        engine = Data(head=Head(self._config.binary_content_type, status))
        self.render(w, engine, value)

    # -- Watching --

    def watch_errors(self) -> list[BaseException]:
        """Drain and return errors from background rebuilds, oldest first."""
        errors: list[BaseException] = []
        while True:
            try:
                errors.append(self._watch_errors.get_nowait())
            except queue.Empty:
                return errors

    def close(self) -> None:
        """Stop the background watcher, if one is running."""
        self._closed.set()
        with self._watch_lock:
            subscription, self._subscription = self._subscription, None
            watcher = self._watcher
        if subscription is not None:
            subscription.close()
        if watcher is not None and watcher is not threading.current_thread():
            watcher.join()

    def __enter__(self) -> "Renderer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- Internals --

    def _content_type(self, base: str) -> str:
        return f"{base}{self._charset_suffix}"

    def _error_page(self, w: Writer, exc: BaseException) -> None:
        if self._config.disable_http_error_rendering:
            return
        http_error(w, str(exc), 500)

    def _record_watch_error(self, exc: BaseException) -> None:
        while True:
            try:
                self._watch_errors.put_nowait(exc)
                return
            except queue.Full:
                with contextlib.suppress(queue.Empty):
                    self._watch_errors.get_nowait()

    def _arm_watch(self) -> None:
        if not isinstance(self._fs, WatchableFS) or self._closed.is_set():
            return
        with self._watch_lock:
            if self._watcher is not None:
                return
            self._watcher = threading.Thread(
                target=self._watch_loop,
                name="warble-template-watch",
                daemon=True,
            )
        self._watcher.start()

    def _watch_loop(self) -> None:
        fs = self._fs
        assert isinstance(fs, WatchableFS)
        while not self._closed.is_set():
            subscription = fs.subscribe()
            with self._watch_lock:
                self._subscription = subscription
            if self._closed.is_set():
                subscription.close()
                return

            event = subscription.next_event()
            subscription.close()
            if event is None or self._closed.is_set():
                logger.debug("template watcher stopped")
                return

            logger.debug("template change detected: %s, rebuilding", event)
            try:
                self.compile_templates()
            except Exception as exc:
                logger.exception("failed to rebuild templates after change to %s", event.name)
                self._record_watch_error(exc)

    def __repr__(self) -> str:
        return f"Renderer(fs={self._fs!r}, templates={len(self._store.snapshot())})"
