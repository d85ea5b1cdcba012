"""Lock strategies guarding the live template set.

Both strategies expose ``read()`` and ``write()`` context managers. The
renderer picks one at construction and never changes it:

- ``RWLock`` whenever the set can be rebuilt while requests are running
  (recompile-per-render, a watchable filesystem, or an explicit request)
- ``NoopLock`` when templates are compiled once at startup
"""

import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager, nullcontext
from typing import Protocol


class Lock(Protocol):
    def read(self) -> AbstractContextManager[None]: ...

    def write(self) -> AbstractContextManager[None]: ...


class RWLock:
    """Readers-writer lock with writer preference.

    Any number of readers may hold the lock together; a writer holds it
    alone. Once a writer is waiting, new readers queue behind it so a
    steady stream of requests cannot starve a recompilation.
    """

    __slots__ = ("_cond", "_readers", "_waiting_writers", "_writer")

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._waiting_writers = 0
        self._writer = False

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class NoopLock:
    """Lock that never blocks, for template sets that are never rebuilt."""

    __slots__ = ()

    def read(self) -> AbstractContextManager[None]:
        return nullcontext()

    def write(self) -> AbstractContextManager[None]:
        return nullcontext()


def select_lock(*, recompile: bool, use_mutex_lock: bool, watchable: bool = False) -> Lock:
    """Choose the lock strategy for a renderer."""
    if recompile or use_mutex_lock or watchable:
        return RWLock()
    return NoopLock()
