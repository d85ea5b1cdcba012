"""Tests for warble.pool — reusable output buffers."""

import pytest

from warble.errors import ConfigurationError
from warble.pool import SizedBufferPool, pooled


class TestSizedBufferPool:
    def test_reuses_buffers(self) -> None:
        pool = SizedBufferPool(size=2)
        buf = pool.get()
        buf.write(b"data")
        pool.put(buf)
        assert len(pool) == 1

        again = pool.get()
        assert again is buf
        assert again.getvalue() == b""

    def test_drops_oversized_buffers(self) -> None:
        pool = SizedBufferPool(max_buffer_size=4)
        buf = pool.get()
        buf.write(b"too large")
        pool.put(buf)
        assert len(pool) == 0

    def test_bounded(self) -> None:
        pool = SizedBufferPool(size=1)
        pool.put(pool.get())
        pool.put(SizedBufferPool().get())
        assert len(pool) == 1

    @pytest.mark.parametrize(("size", "max_buffer_size"), [(0, 10), (1, 0), (-1, 10)])
    def test_rejects_non_positive_sizes(self, size: int, max_buffer_size: int) -> None:
        with pytest.raises(ConfigurationError):
            SizedBufferPool(size=size, max_buffer_size=max_buffer_size)


class TestPooled:
    def test_returns_buffer_on_error(self) -> None:
        pool = SizedBufferPool()
        with pytest.raises(RuntimeError), pooled(pool) as buf:
            buf.write(b"partial")
            raise RuntimeError("boom")
        assert len(pool) == 1
        assert pool.get().getvalue() == b""
