from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Optional

from abdullagram.domain.errors import InvalidStateError, ValidationError
from abdullagram.domain.registry import Registry

if TYPE_CHECKING:
    from abdullagram.domain.store import ChatStore


class StoredEntity:
    """An entity that lives in one registry of a ChatStore."""

    registry_name: ClassVar[str]

    def __init__(self, store: "ChatStore") -> None:
        if store is None:
            raise ValidationError("A store is required.")
        self._store = store

    @property
    def store(self) -> "ChatStore":
        return self._store

    def _registry(self) -> Registry[Any, Any]:
        return getattr(self._store, self.registry_name)

    @property
    def is_alive(self) -> bool:
        return self in self._registry()

    def _ensure_alive(self) -> None:
        if not self.is_alive:
            raise InvalidStateError(f"{type(self).__name__} has been deleted.")

    def _bind(self, store: "ChatStore") -> None:
        self._store = store


def require_entity(value: Any, field: str, store: Optional["ChatStore"] = None) -> Any:
    """Reject a missing or deleted entity, or one that lives in another store."""
    if value is None:
        raise ValidationError(f"{field} is required.")
    if isinstance(value, StoredEntity):
        if not value.is_alive:
            raise InvalidStateError(f"{field} has been deleted.")
        if store is not None and value.store is not store:
            raise ValidationError(f"{field} belongs to a different store.")
    return value
