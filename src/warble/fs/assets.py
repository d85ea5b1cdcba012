"""In-memory and package-embedded filesystems.

``AssetFS`` serves a flat set of named byte blobs (for templates baked
into a binary or generated at build time). ``PackageFS`` serves resource
files shipped inside an installed Python package.
"""

import io
from collections.abc import Callable, Iterable, Mapping
from importlib import resources
from importlib.resources.abc import Traversable
from types import ModuleType

from warble.fs.base import File, FileInfo, clean_path, not_found


class AssetFS:
    """Filesystem over an asset lookup function and a name enumerator.

    The only directory is the root: ``open(".")`` synthesizes a listing
    with every asset name as a direct child. Names containing slashes are
    still direct children; walking joins them back into the same paths.
    """

    __slots__ = ("_asset", "_asset_names")

    def __init__(
        self,
        asset: Callable[[str], bytes],
        asset_names: Callable[[], Iterable[str]],
    ) -> None:
        self._asset = asset
        self._asset_names = asset_names

    @classmethod
    def from_mapping(cls, assets: Mapping[str, bytes | str]) -> "AssetFS":
        """Build an ``AssetFS`` from ``{name: content}``."""
        blobs = {
            name: content.encode("utf-8") if isinstance(content, str) else bytes(content)
            for name, content in assets.items()
        }

        def asset(name: str) -> bytes:
            try:
                return blobs[name]
            except KeyError:
                raise not_found(name) from None

        return cls(asset, lambda: list(blobs))

    def open(self, path: str) -> File:
        name = clean_path(path)
        names = list(self._asset_names())

        if name == ".":
            entries = [FileInfo(name=n) for n in names]
            return File(FileInfo(name=".", is_dir=True), entries=entries)

        if name not in names:
            raise not_found(path)

        content = self._asset(name)
        return File(FileInfo(name=name, size=len(content)), stream=io.BytesIO(content))


class PackageFS:
    """Filesystem over resources bundled with a Python package.

    *anchor* is a package name, a module, or any ``Traversable`` (a
    ``pathlib.Path`` works too). *directory* selects a sub-tree.
    """

    __slots__ = ("_root",)

    def __init__(self, anchor: str | ModuleType | Traversable, directory: str = ".") -> None:
        if isinstance(anchor, str | ModuleType):
            root = resources.files(anchor)
        else:
            root = anchor
        directory = clean_path(directory)
        if directory != ".":
            root = root.joinpath(*directory.split("/"))
        self._root = root

    def open(self, path: str) -> File:
        name = clean_path(path)
        target = self._root if name == "." else self._root.joinpath(*name.split("/"))

        if target.is_dir():
            entries = [FileInfo(name=child.name, is_dir=child.is_dir()) for child in target.iterdir()]
            return File(FileInfo(name=name, is_dir=True), entries=entries)

        if target.is_file():
            content = target.read_bytes()
            return File(FileInfo(name=name, size=len(content)), stream=io.BytesIO(content))

        raise not_found(path)

    def __repr__(self) -> str:
        return f"PackageFS({self._root!r})"
