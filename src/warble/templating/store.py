"""The live template set and its lock.

``TemplateStore`` is the only owner of the current ``TemplateSet``.
Readers get the whole set under the read side of the lock; a rebuild
swaps in a complete new set under the write side. Nothing ever edits a
set in place, so a reader sees either the old set or the new one.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from jinja2 import Environment, Template

from warble.templating.compiler import TemplateSet
from warble.templating.locks import Lock, NoopLock


class TemplateStore:
    """Versioned holder of the live ``TemplateSet``."""

    __slots__ = ("_current", "_lock", "_version")

    def __init__(self, lock: Lock | None = None, initial: TemplateSet | None = None) -> None:
        self._lock = lock if lock is not None else NoopLock()
        self._current = initial if initial is not None else TemplateSet(Environment(), {})
        self._version = 0

    @property
    def lock(self) -> Lock:
        return self._lock

    @property
    def version(self) -> int:
        """Number of successful swaps so far."""
        return self._version

    @contextmanager
    def reading(self) -> Iterator[TemplateSet]:
        """Hold the read lock and yield the current set."""
        with self._lock.read():
            yield self._current

    def lookup(self, name: str) -> Template | None:
        with self._lock.read():
            return self._current.lookup(name)

    def snapshot(self) -> TemplateSet:
        with self._lock.read():
            return self._current

    def replace(self, templates: TemplateSet) -> int:
        """Swap in *templates* and return the new version number."""
        with self._lock.write():
            self._current = templates
            self._version += 1
            return self._version
