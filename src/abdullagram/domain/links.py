from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterator, Optional, Tuple, TypeVar

from abdullagram.domain.errors import DuplicateKeyError, NotFoundError
from abdullagram.domain.value_objects import LinkPolicy

T = TypeVar("T")


class LinkSet(Generic[T]):
    """Insertion-ordered identity set holding one side of a relationship.

    Only associations mutate it; entities expose it through read-only views.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: Dict[T, None] = {}

    def _add(self, item: T) -> bool:
        if item in self._items:
            return False
        self._items[item] = None
        return True

    def _discard(self, item: T) -> bool:
        if item not in self._items:
            return False
        del self._items[item]
        return True

    def view(self) -> Tuple[T, ...]:
        return tuple(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[T]:
        return iter(tuple(self._items))

    def __len__(self) -> int:
        return len(self._items)


@dataclass(frozen=True, slots=True)
class Association:
    """Many-to-many relationship kept consistent from both ends.

    ``forward`` names the LinkSet attribute on the source, ``reverse`` the one
    on the target. The two policies decide whether a repeated link or a
    missing unlink is an error or a no-op.
    """

    name: str
    forward: str
    reverse: str
    on_duplicate: LinkPolicy = LinkPolicy.IDEMPOTENT
    on_missing: LinkPolicy = LinkPolicy.STRICT

    def _sides(self, source: Any, target: Any) -> Tuple[LinkSet[Any], LinkSet[Any]]:
        return getattr(source, self.forward), getattr(target, self.reverse)

    def linked(self, source: Any, target: Any) -> bool:
        return target in getattr(source, self.forward)

    def link(self, source: Any, target: Any) -> bool:
        forward, reverse = self._sides(source, target)
        if target in forward:
            if self.on_duplicate is LinkPolicy.STRICT:
                raise DuplicateKeyError(f"{self.name}: link already exists.")
            return False
        forward._add(target)
        reverse._add(source)
        return True

    def unlink(self, source: Any, target: Any) -> bool:
        forward, reverse = self._sides(source, target)
        if target not in forward:
            if self.on_missing is LinkPolicy.STRICT:
                raise NotFoundError(f"{self.name}: link does not exist.")
            return False
        forward._discard(target)
        reverse._discard(source)
        return True

    def unlink_all(self, source: Any) -> None:
        for target in getattr(source, self.forward):
            self.unlink(source, target)

    def unlink_all_reverse(self, target: Any) -> None:
        for source in getattr(target, self.reverse):
            self.unlink(source, target)


@dataclass(frozen=True, slots=True)
class Reference:
    """Single-valued relationship whose target keeps a LinkSet of sources.

    ``forward`` names the plain attribute holding the target (or None).
    """

    name: str
    forward: str
    reverse: str

    def get(self, source: Any) -> Optional[Any]:
        return getattr(source, self.forward)

    def assign(self, source: Any, target: Optional[Any]) -> bool:
        current = getattr(source, self.forward)
        if current is target:
            return False
        if current is not None:
            getattr(current, self.reverse)._discard(source)
        setattr(source, self.forward, target)
        if target is not None:
            getattr(target, self.reverse)._add(source)
        return True

    def clear(self, source: Any, strict: bool = True) -> bool:
        if getattr(source, self.forward) is None:
            if strict:
                raise NotFoundError(f"{self.name}: nothing is assigned.")
            return False
        return self.assign(source, None)

    def clear_all_reverse(self, target: Any) -> None:
        for source in getattr(target, self.reverse):
            self.assign(source, None)
