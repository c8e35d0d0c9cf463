"""Ordered set of item identifiers."""

from __future__ import annotations

from typing import Iterable, Iterator

from .errors import EmptySetError


class IdSet:
    """Insertion-ordered set of integer ids with explicit empty-set min/max."""

    def __init__(self, ids: Iterable[int] | None = None) -> None:
        self._items: dict[int, None] = {}
        if ids is not None:
            self.add_all(ids)

    def add(self, item_id: int) -> bool:
        """Add an id; return False when it was already present."""
        if item_id in self._items:
            return False
        self._items[item_id] = None
        return True

    def add_all(self, ids: Iterable[int]) -> None:
        for item_id in ids:
            self._items.setdefault(item_id, None)

    def min(self) -> int:
        if not self._items:
            raise EmptySetError("min() of an empty id set")
        return min(self._items)

    def max(self) -> int:
        if not self._items:
            raise EmptySetError("max() of an empty id set")
        return max(self._items)

    def as_list(self) -> list[int]:
        return list(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[int]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["IdSet"]
