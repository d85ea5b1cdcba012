"""Virtual filesystems that templates are compiled from.

Backends:

- ``LocalFS``: a directory on disk
- ``AssetFS``: named byte blobs (``AssetFS.from_mapping`` for dicts)
- ``PackageFS``: resources shipped inside a Python package
- ``SubFS``: a sub-tree of another filesystem
- ``WatchFS``: wraps any of the above and publishes change events
"""

from warble.fs.assets import AssetFS, PackageFS
from warble.fs.base import (
    DIR_MODE,
    FILE_MODE,
    File,
    FileInfo,
    FileSystem,
    clean_path,
    read_dir,
    read_file,
    stat,
    walk,
)
from warble.fs.local import LocalFS, SubFS
from warble.fs.watch import Event, Op, Subscription, WatchableFS, WatchFS

__all__ = [
    "DIR_MODE",
    "FILE_MODE",
    "AssetFS",
    "Event",
    "File",
    "FileInfo",
    "FileSystem",
    "LocalFS",
    "Op",
    "PackageFS",
    "SubFS",
    "Subscription",
    "WatchFS",
    "WatchableFS",
    "clean_path",
    "read_dir",
    "read_file",
    "stat",
    "walk",
]
