"""Mutable, case-insensitive HTTP headers.

Implements ``MutableMapping[str, str]``. Keeps header names in the case
they were first set and preserves insertion order, which is what ends up
on the wire.
"""

from collections.abc import Iterable, Iterator, MutableMapping


class MutableHeaders(MutableMapping[str, str]):
    """Case-insensitive response headers.

    ``__getitem__`` returns the first matching value, ``__setitem__``
    replaces every existing value for the name, and ``add`` appends another
    value (e.g. a second ``Set-Cookie``).
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._items: list[tuple[str, str]] = list(items)

    def __getitem__(self, key: str) -> str:
        key_lower = key.lower()
        for name, value in self._items:
            if name.lower() == key_lower:
                return value
        raise KeyError(key)

    def __setitem__(self, key: str, value: str) -> None:
        key_lower = key.lower()
        for index, (name, _) in enumerate(self._items):
            if name.lower() == key_lower:
                self._items[index] = (name, value)
                self._items[index + 1 :] = [
                    item for item in self._items[index + 1 :] if item[0].lower() != key_lower
                ]
                return
        self._items.append((key, value))

    def __delitem__(self, key: str) -> None:
        key_lower = key.lower()
        remaining = [item for item in self._items if item[0].lower() != key_lower]
        if len(remaining) == len(self._items):
            raise KeyError(key)
        self._items = remaining

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        key_lower = key.lower()
        return any(name.lower() == key_lower for name, _ in self._items)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._items:
            key = name.lower()
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"MutableHeaders({{{items}}})"

    def add(self, key: str, value: str) -> None:
        """Append a value without replacing existing ones."""
        self._items.append((key, value))

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        key_lower = key.lower()
        return [value for name, value in self._items if name.lower() == key_lower]

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """Header pairs as lower-cased latin-1 bytes, for ASGI."""
        return tuple(
            (name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in self._items
        )
