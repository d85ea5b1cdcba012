"""Read-only virtual filesystem contract.

A filesystem is anything with ``open(path) -> File``. Paths are
slash-separated, relative to the filesystem root, and ``"."`` names the
root itself. Everything else (``stat``, ``read_dir``, ``read_file``,
``walk``) is built on top of ``open`` so backends stay tiny.
"""

import errno
import io
import os
import posixpath
import stat as stat_module
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Protocol, runtime_checkable

DIR_MODE = stat_module.S_IFDIR | 0o755
FILE_MODE = 0o644


@dataclass(frozen=True, slots=True)
class FileInfo:
    """Metadata for one file or directory entry.

    ``mod_time`` is ``None`` when the backend does not track it.
    """

    name: str
    is_dir: bool = False
    size: int = 0
    mod_time: datetime | None = None

    @property
    def mode(self) -> int:
        return DIR_MODE if self.is_dir else FILE_MODE


class File:
    """An open filesystem entry.

    Regular files wrap a readable, seekable byte stream. Directories carry
    a listing instead and answer ``read_dir``; reading bytes from them
    raises ``IsADirectoryError``.
    """

    __slots__ = ("_entries", "_info", "_position", "_stream")

    def __init__(
        self,
        info: FileInfo,
        *,
        stream: BinaryIO | None = None,
        entries: Sequence[FileInfo] = (),
    ) -> None:
        self._info = info
        self._stream = stream
        self._entries = tuple(entries)
        self._position = 0

    def stat(self) -> FileInfo:
        return self._info

    def read(self, size: int = -1) -> bytes:
        return self._require_stream().read(size)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._require_stream().seek(offset, whence)

    def read_dir(self, count: int = -1) -> list[FileInfo]:
        """Return up to *count* further entries (all remaining if ``count <= 0``).

        Successive calls continue where the previous one stopped; an empty
        list means the listing is exhausted.
        """
        if not self._info.is_dir:
            raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), self._info.name)
        end = len(self._entries)
        if count > 0:
            end = min(self._position + count, end)
        entries = list(self._entries[self._position : end])
        self._position = end
        return entries

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()

    def __enter__(self) -> "File":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _require_stream(self) -> BinaryIO:
        if self._stream is None:
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), self._info.name)
        return self._stream


@runtime_checkable
class FileSystem(Protocol):
    """Minimal read-only filesystem: open a path, get a ``File``."""

    def open(self, path: str) -> File: ...


def not_found(path: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)


def clean_path(path: str) -> str:
    """Normalize *path* and refuse anything that would leave the root."""
    if path in ("", "."):
        return "."
    if path.startswith("/"):
        raise not_found(path)
    cleaned = posixpath.normpath(path)
    if cleaned == ".." or cleaned.startswith("../"):
        raise not_found(path)
    return cleaned


def join(directory: str, name: str) -> str:
    return posixpath.normpath(posixpath.join(directory, name))


def stat(fs: FileSystem, path: str) -> FileInfo:
    with fs.open(path) as handle:
        return handle.stat()


def read_dir(fs: FileSystem, path: str) -> list[FileInfo]:
    """List *path*, sorted by entry name."""
    with fs.open(path) as handle:
        entries = handle.read_dir()
    return sorted(entries, key=lambda entry: entry.name)


def read_file(fs: FileSystem, path: str) -> bytes:
    with fs.open(path) as handle:
        return handle.read()


def walk(fs: FileSystem, root: str = ".") -> Iterator[tuple[str, FileInfo]]:
    """Depth-first walk in lexical order, yielding ``(path, info)``.

    The root itself is yielded first. Directories are yielded before
    their children. Errors opening or listing any entry propagate.
    """
    info = stat(fs, root)
    yield root, info
    if info.is_dir:
        yield from _walk_dir(fs, root)


def _walk_dir(fs: FileSystem, directory: str) -> Iterator[tuple[str, FileInfo]]:
    for entry in read_dir(fs, directory):
        path = join(directory, entry.name)
        yield path, entry
        if entry.is_dir:
            yield from _walk_dir(fs, path)
