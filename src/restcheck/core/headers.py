from collections.abc import Iterable, Iterator, Mapping
from typing import Any

type HeaderInput = Mapping[str, Any] | Iterable[tuple[str, Any]] | None


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive header mapping.

    Repeated header names are combined into one comma-separated value, the way
    HTTP intermediaries fold them.
    """

    __slots__ = ("_items",)

    def __init__(self, raw: HeaderInput = None) -> None:
        items: dict[str, str] = {}
        for name, value in _iter_pairs(raw):
            key = name.strip().lower()
            if key in items:
                items[key] = f"{items[key]}, {value}"
            else:
                items[key] = value
        self._items = items

    def __getitem__(self, name: str) -> str:
        return self._items[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Headers):
            return self._items == other._items
        if isinstance(other, Mapping):
            return self._items == Headers(other)._items
        return NotImplemented

    def __repr__(self) -> str:
        return f"Headers({self._items!r})"

    def media_type(self) -> str:
        """Content-Type without parameters, lowercased (``""`` when absent)."""
        value = self._items.get("content-type", "")
        return value.split(";", 1)[0].strip().lower()


def _iter_pairs(raw: HeaderInput) -> Iterator[tuple[str, str]]:
    if raw is None:
        return
    if isinstance(raw, Mapping):
        pairs: Iterable[Any] = raw.items()
    else:
        pairs = raw
    for item in pairs:
        if isinstance(item, Mapping):
            # HAR-style {"name": ..., "value": ...}
            name, value = item.get("name"), item.get("value")
        elif isinstance(item, (list | tuple)) and len(item) == 2:
            name, value = item
        else:
            msg = f"Header entries must be [name, value] pairs, got {item!r}"
            raise ValueError(msg)
        if not isinstance(name, str) or not name.strip():
            msg = f"Header name must be a non-empty str, got {name!r}"
            raise ValueError(msg)
        if isinstance(value, bytes):
            value = value.decode("latin-1")
        yield name, str(value)


def is_json_media_type(media_type: str) -> bool:
    return media_type == "application/json" or media_type.endswith("+json")
