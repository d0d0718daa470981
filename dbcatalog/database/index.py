"""Insertion-ordered registry of named objects."""

from typing import Callable, Dict, Generic, Iterator, List, Optional, TypeVar

from .keys import NamedObjectKey

T = TypeVar("T")


class NamedObjectIndex(Generic[T]):
    """Registry of in-progress entities keyed by NamedObjectKey.

    Not safe for concurrent mutation; the crawl pipeline is sequential.
    """

    def __init__(self):
        self._objects: Dict[NamedObjectKey, T] = {}

    def lookup(self, key: NamedObjectKey) -> Optional[T]:
        return self._objects.get(key)

    def add(self, key: NamedObjectKey, obj: T) -> T:
        """Register an object, keeping the first one registered under a key."""
        return self._objects.setdefault(key, obj)

    def lookup_or_create(self, key: NamedObjectKey, factory: Callable[[], T]) -> T:
        """Return the existing entity for key, or create and register one."""
        existing = self._objects.get(key)
        if existing is not None:
            return existing
        created = factory()
        self._objects[key] = created
        return created

    def all(self) -> List[T]:
        """All registered entities, in insertion order."""
        return list(self._objects.values())

    def __contains__(self, key: NamedObjectKey) -> bool:
        return key in self._objects

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._objects.values()))

    def __len__(self) -> int:
        return len(self._objects)
