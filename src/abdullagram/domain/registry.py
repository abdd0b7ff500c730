from __future__ import annotations

import logging
from typing import Callable, Dict, Generic, Hashable, Iterable, Iterator, Optional, Tuple, TypeVar

from abdullagram.domain.errors import DuplicateKeyError, NotFoundError

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
E = TypeVar("E")


class Registry(Generic[K, E]):
    """Live extent of one entity kind, indexed by the kind's unique key.

    Membership in a registry is what makes an entity alive.
    """

    def __init__(self, kind: str, key: Callable[[E], K]) -> None:
        self._kind = kind
        self._key = key
        self._items: Dict[K, E] = {}

    @property
    def kind(self) -> str:
        return self._kind

    def key_of(self, entity: E) -> K:
        return self._key(entity)

    def ensure_available(self, key: K, entity: Optional[E] = None) -> None:
        current = self._items.get(key)
        if current is not None and current is not entity:
            raise DuplicateKeyError(f"A {self._kind} with key {key!r} already exists.")

    def register(self, entity: E) -> None:
        key = self._key(entity)
        self.ensure_available(key, entity)
        self._items[key] = entity

    def unregister(self, entity: E) -> None:
        key = self._key(entity)
        if self._items.get(key) is not entity:
            raise NotFoundError(f"{self._kind} {key!r} is not registered.")
        del self._items[key]

    def rekey(self, old_key: K, new_key: K) -> None:
        entity = self._items.get(old_key)
        if entity is None:
            raise NotFoundError(f"{self._kind} {old_key!r} is not registered.")
        if old_key == new_key:
            return
        self.ensure_available(new_key, entity)
        del self._items[old_key]
        self._items[new_key] = entity

    def get(self, key: K) -> Optional[E]:
        return self._items.get(key)

    def all(self) -> Tuple[E, ...]:
        return tuple(self._items.values())

    def clear(self) -> None:
        self._items.clear()

    def reload(self, entities: Iterable[E]) -> None:
        """Replace the extent with ``entities``.

        The whole batch is checked first; on a duplicate key the registry keeps
        its previous contents and DuplicateKeyError is raised.
        """
        staged: Dict[K, E] = {}
        for entity in entities:
            key = self._key(entity)
            if key in staged and staged[key] is not entity:
                raise DuplicateKeyError(f"Duplicate {self._kind} key {key!r} found during reload.")
            staged[key] = entity
        self._items = staged
        logger.debug("Reloaded %s registry with %d entities", self._kind, len(staged))

    def __contains__(self, entity: object) -> bool:
        try:
            key = self._key(entity)  # type: ignore[arg-type]
        except AttributeError:
            return False
        return self._items.get(key) is entity

    def __iter__(self) -> Iterator[E]:
        return iter(tuple(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)
