"""Watchable filesystems — change notification for template reloads.

A ``WatchableFS`` is a filesystem that also offers ``subscribe()``. Each
subscription is a private queue of ``Event``s; the renderer uses one to
learn that its templates changed and rebuild them.

``WatchFS`` wraps any filesystem. Changes reach subscribers either from
an explicit ``notify()`` (for hosts that already run a file watcher) or
from ``scan()``, which diffs sizes and modification times against the
previous scan. ``start_polling()`` runs ``scan()`` on a daemon thread.

Thread-safety:
    - ``Event`` is a frozen dataclass, safe to share between threads
    - the subscriber set is guarded by a lock
    - each subscription owns its own ``queue.Queue``
"""

import contextlib
import enum
import logging
import queue
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

from warble.fs.base import File, FileSystem, stat, walk

logger = logging.getLogger("warble.fs")


class Op(enum.Flag):
    """Kind of change that produced an ``Event``."""

    CREATE = enum.auto()
    WRITE = enum.auto()
    REMOVE = enum.auto()
    RENAME = enum.auto()
    CHMOD = enum.auto()


@dataclass(frozen=True, slots=True)
class Event:
    """A single change notification.

    Attributes:
        name: Slash-separated path relative to the filesystem root.
        op: What happened to it.
    """

    name: str
    op: Op


class Subscription:
    """One subscriber's view of a watchable filesystem.

    Iterate it, or call ``next_event()``, to receive events. Closing the
    subscription detaches it and wakes any thread blocked waiting on it.
    """

    __slots__ = ("_closed", "_on_close", "_queue")

    def __init__(self, on_close: Callable[["Subscription"], None], maxsize: int = 256) -> None:
        self._queue: queue.Queue[Event | None] = queue.Queue(maxsize=maxsize)
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: Event) -> None:
        """Queue *event* without blocking; dropped if the subscriber lags."""
        if self._closed:
            return
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            logger.debug("subscription queue full, dropping %s", event)

    def next_event(self, timeout: float | None = None) -> Event | None:
        """Block for the next event.

        Returns ``None`` once the subscription is closed, or when
        *timeout* elapses first.
        """
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._on_close(self)
        # Wake a blocked reader even when the queue is full.
        while True:
            try:
                self._queue.put_nowait(None)
                return
            except queue.Full:
                with contextlib.suppress(queue.Empty):
                    self._queue.get_nowait()

    def __iter__(self) -> Iterator[Event]:
        while (event := self.next_event()) is not None:
            yield event

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@runtime_checkable
class WatchableFS(FileSystem, Protocol):
    """A filesystem that can announce changes to its contents."""

    def subscribe(self) -> Subscription: ...


class WatchFS:
    """Wrap *inner* so that changes to it can be subscribed to."""

    __slots__ = ("_closed", "_inner", "_lock", "_poller", "_snapshot", "_stop", "_subscribers")

    def __init__(self, inner: FileSystem) -> None:
        self._inner = inner
        self._lock = threading.Lock()
        self._subscribers: set[Subscription] = set()
        self._snapshot: dict[str, tuple[int, datetime | None]] | None = None
        self._poller: threading.Thread | None = None
        self._stop = threading.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self, path: str) -> File:
        return self._inner.open(path)

    def subscribe(self) -> Subscription:
        """Return a new subscription; already closed if this wrapper is."""
        subscription = Subscription(self._detach)
        with self._lock:
            if not self._closed:
                self._subscribers.add(subscription)
                return subscription
        subscription.close()
        return subscription

    def notify(self, name: str, op: Op = Op.WRITE) -> None:
        """Broadcast a change to every current subscriber."""
        self._publish(Event(name=name, op=op))

    def scan(self) -> list[Event]:
        """Diff the inner filesystem against the previous scan.

        The first scan only records a baseline and reports nothing.
        Every detected change is broadcast and also returned.
        """
        current = self._take_snapshot()
        with self._lock:
            previous, self._snapshot = self._snapshot, current
        if previous is None:
            return []

        events: list[Event] = []
        for name, signature in current.items():
            if name not in previous:
                events.append(Event(name, Op.CREATE))
            elif previous[name] != signature:
                events.append(Event(name, Op.WRITE))
        events.extend(Event(name, Op.REMOVE) for name in previous if name not in current)

        for event in events:
            self._publish(event)
        return events

    def start_polling(self, interval: float = 1.0) -> None:
        """Call ``scan()`` every *interval* seconds on a daemon thread."""
        with self._lock:
            if self._poller is not None and self._poller.is_alive():
                return
            self._stop.clear()
            self._poller = threading.Thread(
                target=self._poll,
                args=(interval,),
                name="warble-watch-poll",
                daemon=True,
            )
        self.scan()
        self._poller.start()

    def close(self) -> None:
        """Stop polling and close every subscription, current and future."""
        self._stop.set()
        with self._lock:
            self._closed = True
            poller, self._poller = self._poller, None
            subscribers = set(self._subscribers)
        for subscription in subscribers:
            subscription.close()
        if poller is not None and poller is not threading.current_thread():
            poller.join()

    def _poll(self, interval: float) -> None:
        while not self._stop.wait(interval):
            try:
                self.scan()
            except OSError:
                logger.exception("template directory scan failed")

    def _publish(self, event: Event) -> None:
        with self._lock:
            subscribers = set(self._subscribers)
        for subscription in subscribers:
            subscription.deliver(event)

    def _detach(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscribers.discard(subscription)

    def _take_snapshot(self) -> dict[str, tuple[int, datetime | None]]:
        try:
            stat(self._inner, ".")
        except FileNotFoundError:
            return {}
        return {
            path: (info.size, info.mod_time)
            for path, info in walk(self._inner)
            if not info.is_dir
        }

    def __repr__(self) -> str:
        return f"WatchFS({self._inner!r})"
