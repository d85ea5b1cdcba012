"""Built-in template helpers: ``yield``, ``current`` and ``partial``.

They are installed after user helper bundles, so a user function with
the same name never replaces them. The compile-time versions are
placeholders; each render call binds real ones to the template being
rendered.

``yield`` and ``current`` work both bare and called::

    head
    {{ yield }}
    {{ current() }} foot
"""

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from jinja2 import TemplateRuntimeError
from markupsafe import Markup, escape

if TYPE_CHECKING:
    from warble.templating.compiler import TemplateSet


class BareCallable:
    """A helper that renders its own result when printed without ``()``."""

    __slots__ = ("_fn",)

    def __init__(self, fn: Callable[[], Any]) -> None:
        self._fn = fn

    def __call__(self) -> Any:
        return self._fn()

    def __html__(self) -> str:
        return str(escape(self._fn()))

    def __str__(self) -> str:
        return str(self._fn())

    def __repr__(self) -> str:
        return f"BareCallable({getattr(self._fn, '__name__', self._fn)!r})"


def _no_layout_yield() -> str:
    raise TemplateRuntimeError("yield called with no layout defined")


def _no_layout_partial(name: str) -> str:
    raise TemplateRuntimeError(f"partial {name!r} called with no layout defined")


BUILTIN_HELPERS: Mapping[str, Any] = {
    "yield": BareCallable(_no_layout_yield),
    "current": BareCallable(lambda: ""),
    "partial": _no_layout_partial,
}


def bind_helpers(
    templates: "TemplateSet",
    name: str,
    context: Mapping[str, Any],
    *,
    layout: bool,
    require_partials: bool = False,
    partials_without_prefix: bool = False,
) -> dict[str, Any]:
    """Build the helpers for rendering template *name* with *context*.

    With *layout* set, ``yield`` renders *name* in place and ``partial(x)``
    renders ``x-<name>`` (or plain ``x`` when *partials_without_prefix*).
    Without a layout, ``yield`` and ``partial`` keep failing loudly.
    """

    def current() -> str:
        return name

    if not layout:
        return {
            "yield": BUILTIN_HELPERS["yield"],
            "current": BareCallable(current),
            "partial": _no_layout_partial,
        }

    def render_yield() -> Markup:
        template = templates.require(name)
        return Markup(template.render(context))

    def render_partial(partial_name: str) -> Markup:
        candidates = [f"{partial_name}-{name}"]
        if partials_without_prefix:
            candidates.append(partial_name)
        for candidate in candidates:
            template = templates.lookup(candidate)
            if template is not None:
                return Markup(template.render(context))
        if require_partials:
            raise TemplateRuntimeError(f'partial "{candidates[0]}" is undefined')
        return Markup("")

    return {
        "yield": BareCallable(render_yield),
        "current": BareCallable(current),
        "partial": render_partial,
    }
