from __future__ import annotations

import logging
from operator import attrgetter
from typing import TYPE_CHECKING, Optional, Tuple
from uuid import uuid4

from abdullagram.domain.associations import FOLDER_CHATS, FOLDER_OWNER, PACK_MANAGER, SAVED_PACKS
from abdullagram.domain.base import StoredEntity, require_entity
from abdullagram.domain.errors import CapacityExceededError
from abdullagram.domain.links import LinkSet
from abdullagram.domain.qualified import QualifiedCollection
from abdullagram.domain.validation import require_text
from abdullagram.domain.value_objects import LinkPolicy

if TYPE_CHECKING:
    from abdullagram.domain.attachments import Sticker
    from abdullagram.domain.chats import Chat
    from abdullagram.domain.store import ChatStore
    from abdullagram.domain.users import User

logger = logging.getLogger(__name__)


class Folder(StoredEntity):
    """A user's folder of chats.

    The owner is fixed at creation and deleting the owner deletes the folder.
    Chats are only referenced: deleting the folder leaves them alive.
    """

    registry_name = "folders"

    def __init__(self, owner: "User", name: str, *, id: Optional[str] = None) -> None:
        require_entity(owner, "Folder owner")
        super().__init__(owner.store)
        self._name = require_text(name, "Folder name")
        self.id = id or uuid4().hex
        self._owner: Optional[User] = None
        self._chats: LinkSet[Chat] = LinkSet()
        self._store.folders.register(self)
        FOLDER_OWNER.assign(self, owner)

    def __repr__(self) -> str:
        return f"Folder(id={self.id!r}, name={self._name!r})"

    @property
    def owner(self) -> Optional["User"]:
        return self._owner

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = require_text(value, "Folder name")

    @property
    def chats(self) -> Tuple["Chat", ...]:
        return self._chats.view()

    def add_chat(self, chat: "Chat") -> bool:
        self._ensure_alive()
        require_entity(chat, "Chat", self._store)
        if FOLDER_CHATS.linked(self, chat):
            return False
        limit = self._store.limits.folder_max_chats
        if len(self._chats) >= limit:
            raise CapacityExceededError(f"A folder cannot contain more than {limit} chats.")
        return FOLDER_CHATS.link(self, chat)

    def remove_chat(self, chat: "Chat") -> bool:
        require_entity(chat, "Chat", self._store)
        return FOLDER_CHATS.unlink(self, chat)

    def delete(self) -> None:
        self._ensure_alive()
        FOLDER_CHATS.unlink_all(self)
        self._store.folders.unregister(self)
        FOLDER_OWNER.assign(self, None)
        logger.debug("Deleted folder %s", self.id)


class Stickerpack(StoredEntity):
    """Stickers collected by emoji code; a sticker lives in one pack at a time."""

    registry_name = "stickerpacks"

    def __init__(
        self,
        store: "ChatStore",
        name: str,
        *,
        manager: Optional["User"] = None,
        is_premium: bool = False,
        id: Optional[str] = None,
    ) -> None:
        super().__init__(store)
        self._name = require_text(name, "Stickerpack name")
        if manager is not None:
            require_entity(manager, "Manager", store)
        self.is_premium = is_premium
        self.id = id or uuid4().hex
        self._stickers: QualifiedCollection[str, Sticker] = QualifiedCollection(
            self,
            name="stickerpack stickers",
            attribute="_stickers",
            qualifier=attrgetter("emoji_code"),
            reverse="_pack",
            exclusive=True,
            max_size=store.limits.stickerpack_max_stickers,
            min_size=store.limits.stickerpack_min_stickers,
            on_conflict=LinkPolicy.IDEMPOTENT,
        )
        self._saved_by: LinkSet[User] = LinkSet()
        self._manager: Optional[User] = None
        store.stickerpacks.register(self)
        if manager is not None:
            PACK_MANAGER.assign(self, manager)

    def __repr__(self) -> str:
        return f"Stickerpack(id={self.id!r}, name={self._name!r})"

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = require_text(value, "Stickerpack name")

    # stickers

    @property
    def stickers(self) -> Tuple["Sticker", ...]:
        return self._stickers.values()

    @property
    def emoji_codes(self) -> Tuple[str, ...]:
        return self._stickers.keys()

    def add_sticker(self, sticker: "Sticker") -> bool:
        """Add ``sticker``, moving it out of its current pack.

        A sticker whose emoji code is already used in this pack is ignored.
        """
        self._ensure_alive()
        require_entity(sticker, "Sticker", self._store)
        return self._stickers.put(sticker)

    def remove_sticker(self, emoji_code: str) -> "Sticker":
        return self._stickers.remove(emoji_code)

    def get_sticker(self, emoji_code: str) -> Optional["Sticker"]:
        return self._stickers.get(emoji_code)

    # saved by

    @property
    def saved_by(self) -> Tuple["User", ...]:
        return self._saved_by.view()

    def add_saved_by(self, user: "User") -> bool:
        require_entity(user, "User", self._store)
        return user.save_stickerpack(self)

    def remove_saved_by(self, user: "User") -> None:
        require_entity(user, "User", self._store)
        user.unsave_stickerpack(self)

    # manager

    @property
    def manager(self) -> Optional["User"]:
        return self._manager

    def set_manager(self, user: Optional["User"]) -> bool:
        self._ensure_alive()
        if user is not None:
            require_entity(user, "Manager", self._store)
        return PACK_MANAGER.assign(self, user)

    def delete(self) -> None:
        """Delete the pack; its stickers survive without a pack."""
        self._ensure_alive()
        self._stickers.clear()
        SAVED_PACKS.unlink_all_reverse(self)
        PACK_MANAGER.assign(self, None)
        self._store.stickerpacks.unregister(self)
        logger.debug("Deleted stickerpack %s", self.id)
