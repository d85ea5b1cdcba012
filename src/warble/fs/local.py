"""Disk-backed filesystem and sub-tree views."""

import os
import stat as stat_module
from datetime import UTC, datetime
from pathlib import Path

from warble.fs.base import File, FileInfo, FileSystem, clean_path, join


def _from_stat(name: str, st: os.stat_result) -> FileInfo:
    return FileInfo(
        name=name,
        is_dir=stat_module.S_ISDIR(st.st_mode),
        size=st.st_size,
        mod_time=datetime.fromtimestamp(st.st_mtime, tz=UTC),
    )


def _entry_info(entry: os.DirEntry[str]) -> FileInfo | None:
    """Describe one listing entry, or ``None`` if it vanished meanwhile.

    A dangling symlink (editor lock files such as ``.#page.tmpl``) is
    described by the link itself rather than failing the whole listing.
    """
    try:
        st = entry.stat()
    except FileNotFoundError:
        try:
            st = entry.stat(follow_symlinks=False)
        except FileNotFoundError:
            return None
    return _from_stat(entry.name, st)


def _list_dir(path: Path) -> list[FileInfo]:
    with os.scandir(path) as it:
        return [info for entry in it if (info := _entry_info(entry)) is not None]


class LocalFS:
    """Read-only view of a directory on local disk.

    Paths are resolved relative to *directory* and may not climb above it.
    """

    __slots__ = ("_root",)

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._root = Path(directory)

    @property
    def root(self) -> Path:
        return self._root

    def open(self, path: str) -> File:
        name = clean_path(path)
        target = self._root if name == "." else self._root.joinpath(*name.split("/"))
        info = _from_stat(target.name if name != "." else ".", target.stat())
        if info.is_dir:
            return File(info, entries=_list_dir(target))
        return File(info, stream=target.open("rb"))

    def __repr__(self) -> str:
        return f"LocalFS({str(self._root)!r})"


class SubFS:
    """A filesystem rooted at *directory* inside another filesystem."""

    __slots__ = ("_directory", "_parent")

    def __init__(self, parent: FileSystem, directory: str) -> None:
        self._parent = parent
        self._directory = clean_path(directory)

    def open(self, path: str) -> File:
        return self._parent.open(join(self._directory, clean_path(path)))

    def __repr__(self) -> str:
        return f"SubFS({self._parent!r}, {self._directory!r})"
