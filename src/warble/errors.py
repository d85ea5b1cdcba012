"""Warble exception hierarchy.

Shared across the compiler, the store, the engines and the renderer so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class WarbleError(Exception):
    """Base for all warble-specific errors."""


class ConfigurationError(WarbleError):
    """Raised when renderer configuration is invalid.

    Raised from ``Renderer.__init__``; no partially built renderer is
    ever returned.
    """


@dataclass(frozen=True, slots=True)
class TemplateFailure:
    """One file that could not be read or parsed during compilation."""

    path: str
    error: BaseException

    def __str__(self) -> str:
        return f"{self.path}: {self.error}"


class CompilationError(WarbleError):
    """One or more template files failed to load or parse.

    Collected across the whole tree walk, so ``failures`` names every
    failing file, not only the first.
    """

    def __init__(self, failures: tuple[TemplateFailure, ...]) -> None:
        self.failures = failures
        listing = "; ".join(str(f) for f in failures)
        super().__init__(
            f"one or more errors occurred while loading or parsing templates: {listing}"
        )


class TemplateNotFound(WarbleError, LookupError):  # noqa: N818
    """The requested template (or layout) is not in the live template set."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f'template "{self.name}" is undefined'


class MarshalError(WarbleError, ValueError):
    """A value could not be serialized to JSON or XML.

    The underlying ``TypeError``/``ValueError`` is chained as ``__cause__``.
    """
