from __future__ import annotations

from collections.abc import Iterable, Iterator

from devtidy.models.item import Item


class InventoryStore:
    """The authoritative set of discovered items and their selection flags.

    Precondition: exactly one logical owner mutates the store at a time. There
    is no internal locking; the UI thread owns it while idle and the cleanup
    run owns it while running (toggles are refused in that window).
    """

    def __init__(self, items: Iterable[Item] = ()) -> None:
        self._items: dict[str, Item] = {}
        self.replace(items)

    def replace(self, items: Iterable[Item]) -> None:
        fresh: dict[str, Item] = {}
        for item in items:
            if item.path in fresh:
                raise ValueError(f"Duplicate inventory path: {item.path}")
            fresh[item.path] = item
        self._items = fresh

    def get(self, path: str) -> Item | None:
        return self._items.get(path)

    def toggle(self, path: str) -> bool:
        item = self._items[path]
        item.selected = not item.selected
        return item.selected

    def set_all(self, selected: bool) -> None:
        for item in self._items.values():
            item.selected = selected

    def remove(self, path: str) -> Item | None:
        return self._items.pop(path, None)

    def items(self) -> list[Item]:
        return list(self._items.values())

    def selected_items(self) -> list[Item]:
        return [item for item in self._items.values() if item.selected]

    def selected_count(self) -> int:
        return sum(1 for item in self._items.values() if item.selected)

    def total_selected_size(self) -> int:
        return sum(item.size_bytes for item in self._items.values() if item.selected)

    def total_size(self) -> int:
        return sum(item.size_bytes for item in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, path: object) -> bool:
        return path in self._items

    def __iter__(self) -> Iterator[Item]:
        return iter(self.items())
