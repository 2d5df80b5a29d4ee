"""Ordered, id-keyed in-memory list of entities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator


class _Entity(Protocol):
    @property
    def id(self) -> str: ...


E = TypeVar("E", bound=_Entity)


class EntityCollection(Generic[E]):
    """
    Visible list of boards or tasks.

    Every mutation is a single synchronous step, so no other coroutine ever
    observes a half-applied change. ``sort_key``/``descending`` describe the
    display order and are used to put a rolled-back entity back in place.
    """

    def __init__(
        self,
        items: Iterable[E] = (),
        *,
        sort_key: Callable[[E], Any],
        descending: bool = False,
    ) -> None:
        self._items: list[E] = list(items)
        self._sort_key = sort_key
        self._descending = descending

    def snapshot(self) -> tuple[E, ...]:
        return tuple(self._items)

    def get(self, entity_id: str) -> E | None:
        for item in self._items:
            if item.id == entity_id:
                return item
        return None

    def index_of(self, entity_id: str) -> int | None:
        for index, item in enumerate(self._items):
            if item.id == entity_id:
                return index
        return None

    def prepend(self, entity: E) -> None:
        self._items.insert(0, entity)

    def append(self, entity: E) -> None:
        self._items.append(entity)

    def reset(self, items: Iterable[E]) -> None:
        self._items = list(items)

    def replace(self, entity: E) -> bool:
        """Swap in ``entity`` for the element with the same id. False if there is none."""
        index = self.index_of(entity.id)
        if index is None:
            return False
        self._items[index] = entity
        return True

    def discard(self, entity_id: str) -> E | None:
        index = self.index_of(entity_id)
        if index is None:
            return None
        return self._items.pop(index)

    def restore(self, entity: E) -> None:
        """Put a removed entity back at its display position. No-op if it is present."""
        if self.index_of(entity.id) is not None:
            return
        key = self._sort_key(entity)
        for index, item in enumerate(self._items):
            other = self._sort_key(item)
            if (other < key) if self._descending else (other > key):
                self._items.insert(index, entity)
                return
        self._items.append(entity)

    def clear(self) -> None:
        self._items.clear()

    def filter(self, predicate: Callable[[E], bool]) -> list[E]:
        return [item for item in self._items if predicate(item)]

    def __iter__(self) -> Iterator[E]:
        return iter(tuple(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity_id: object) -> bool:
        return any(item.id == entity_id for item in self._items)

    def __repr__(self) -> str:
        return f"EntityCollection({[item.id for item in self._items]!r})"
