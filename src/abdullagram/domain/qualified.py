from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Dict, Generic, Hashable, Iterator, Mapping, Optional, Tuple, TypeVar

from abdullagram.domain.errors import (
    CapacityExceededError,
    DuplicateKeyError,
    MinimumViolationError,
    NotFoundError,
)
from abdullagram.domain.value_objects import LinkPolicy

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class QualifiedCollection(Generic[K, V]):
    """Keyed container owned by one entity, mirrored on each value.

    ``attribute`` names the owner attribute holding the collection. With
    ``exclusive`` set, ``reverse`` is a plain attribute on the value
    pointing back at the owner, and a value moves out of its previous
    collection on insertion. Otherwise ``reverse`` is a LinkSet of owners.
    ``on_conflict`` decides what happens when a key is already taken by a
    different value: IDEMPOTENT ignores the insertion, STRICT raises.
    """

    def __init__(
        self,
        owner: Any,
        *,
        name: str,
        attribute: str,
        qualifier: Callable[[V], K],
        reverse: str,
        exclusive: bool = False,
        max_size: Optional[int] = None,
        min_size: int = 0,
        on_conflict: LinkPolicy = LinkPolicy.STRICT,
    ) -> None:
        self._owner = owner
        self._name = name
        self._attribute = attribute
        self._qualifier = qualifier
        self._reverse = reverse
        self._exclusive = exclusive
        self._max_size = max_size
        self._min_size = min_size
        self._on_conflict = on_conflict
        self._items: Dict[K, V] = {}

    @property
    def max_size(self) -> Optional[int]:
        return self._max_size

    @max_size.setter
    def max_size(self, value: Optional[int]) -> None:
        self._max_size = value

    @property
    def min_size(self) -> int:
        return self._min_size

    def put(self, value: V) -> bool:
        key = self._qualifier(value)
        current = self._items.get(key)
        if current is value:
            return False
        if current is not None:
            if self._on_conflict is LinkPolicy.STRICT:
                raise DuplicateKeyError(f"{self._name}: key {key!r} is already in use.")
            return False
        if self._max_size is not None and len(self._items) >= self._max_size:
            raise CapacityExceededError(f"{self._name} cannot hold more than {self._max_size} entries.")
        if self._exclusive:
            previous = getattr(value, self._reverse)
            if previous is not None and previous is not self._owner:
                getattr(previous, self._attribute).detach(value)
            setattr(value, self._reverse, self._owner)
        else:
            getattr(value, self._reverse)._add(self._owner)
        self._items[key] = value
        return True

    def remove(self, key: K) -> V:
        value = self._items.get(key)
        if value is None:
            raise NotFoundError(f"{self._name}: no entry for key {key!r}.")
        if len(self._items) - 1 < self._min_size:
            raise MinimumViolationError(f"{self._name} must keep at least {self._min_size} entries.")
        self.detach(value)
        return value

    def detach(self, value: V) -> None:
        """Drop ``value`` without checking the lower bound."""
        key = self._qualifier(value)
        if self._items.get(key) is not value:
            return
        del self._items[key]
        if self._exclusive:
            setattr(value, self._reverse, None)
        else:
            getattr(value, self._reverse)._discard(self._owner)

    def rekey(self, old_key: K, new_key: K) -> None:
        value = self._items.get(old_key)
        if value is None:
            raise NotFoundError(f"{self._name}: no entry for key {old_key!r}.")
        if old_key == new_key:
            return
        if new_key in self._items:
            raise DuplicateKeyError(f"{self._name}: key {new_key!r} is already in use.")
        del self._items[old_key]
        self._items[new_key] = value

    def clear(self) -> None:
        for value in self.values():
            self.detach(value)

    def get(self, key: K) -> Optional[V]:
        return self._items.get(key)

    def keys(self) -> Tuple[K, ...]:
        return tuple(self._items)

    def values(self) -> Tuple[V, ...]:
        return tuple(self._items.values())

    def as_mapping(self) -> Mapping[K, V]:
        return MappingProxyType(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[K]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._items)
