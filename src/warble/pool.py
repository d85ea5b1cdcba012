"""Reusable output buffers.

Buffered render paths write into a pooled ``io.BytesIO`` and hand it back
once the response is written, whether rendering succeeded or not. A pool
is anything with ``get()`` and ``put()``; ``pooled()`` wraps the pair in a
context manager.
"""

import io
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from warble.errors import ConfigurationError


class BufferPool(Protocol):
    def get(self) -> io.BytesIO: ...

    def put(self, buffer: io.BytesIO) -> None: ...


class SizedBufferPool:
    """Keep up to *size* idle buffers.

    Buffers that grew beyond *max_buffer_size* bytes are dropped on
    ``put`` so one huge response does not pin its memory for good.
    """

    __slots__ = ("_buffers", "_lock", "max_buffer_size", "size")

    def __init__(self, size: int = 32, max_buffer_size: int = 64 * 1024) -> None:
        if size <= 0 or max_buffer_size <= 0:
            msg = f"buffer pool sizes must be positive (size={size}, max_buffer_size={max_buffer_size})"
            raise ConfigurationError(msg)
        self.size = size
        self.max_buffer_size = max_buffer_size
        self._buffers: list[io.BytesIO] = []
        self._lock = threading.Lock()

    def get(self) -> io.BytesIO:
        with self._lock:
            if self._buffers:
                return self._buffers.pop()
        return io.BytesIO()

    def put(self, buffer: io.BytesIO) -> None:
        if buffer.seek(0, io.SEEK_END) > self.max_buffer_size:
            return
        buffer.seek(0)
        buffer.truncate()
        with self._lock:
            if len(self._buffers) < self.size:
                self._buffers.append(buffer)

    def __len__(self) -> int:
        return len(self._buffers)


@contextmanager
def pooled(pool: BufferPool) -> Iterator[io.BytesIO]:
    """Borrow a buffer from *pool* for the duration of the block."""
    buffer = pool.get()
    try:
        yield buffer
    finally:
        pool.put(buffer)
