"""race_calendar.directory

Case- and accent-insensitive name index over one entity collection
(championships, cities or members).

Lookup is exact after ``fold_name`` normalization; there is no typo
tolerance.  When several stored entities fold to the same key the first one
in collection order wins, so lookups are deterministic.
"""

from __future__ import annotations

from typing import Generic, Iterable, Iterator, Protocol, TypeVar

from race_calendar.normalize import fold_name


class Named(Protocol):
    id: str
    name: str


E = TypeVar("E", bound=Named)


class EntityDirectory(Generic[E]):
    """Folded-name → entity index."""

    def __init__(self) -> None:
        self._index: dict[str, E] = {}
        self._entities: list[E] = []

    @classmethod
    def build(cls, entities: Iterable[E]) -> EntityDirectory[E]:
        directory: EntityDirectory[E] = cls()
        for entity in entities:
            directory.add(entity)
        return directory

    def add(self, entity: E) -> None:
        """Index ``entity``; an existing entry with the same key is kept."""
        self._entities.append(entity)
        key = fold_name(entity.name)
        if key is not None and key not in self._index:
            self._index[key] = entity

    def lookup(self, raw_name: str | None) -> E | None:
        key = fold_name(raw_name)
        if key is None:
            return None
        return self._index.get(key)

    def __contains__(self, raw_name: object) -> bool:
        return isinstance(raw_name, str) and self.lookup(raw_name) is not None

    def __iter__(self) -> Iterator[E]:
        return iter(self._entities)

    def __len__(self) -> int:
        return len(self._entities)


def build(entities: Iterable[E]) -> EntityDirectory[E]:
    return EntityDirectory.build(entities)


def lookup(directory: EntityDirectory[E], raw_name: str | None) -> E | None:
    return directory.lookup(raw_name)
