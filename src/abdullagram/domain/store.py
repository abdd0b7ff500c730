from __future__ import annotations

import logging
from operator import attrgetter
from typing import Any, Dict, Optional, Tuple

from abdullagram.domain.attachments import MESSAGE_TYPES, File, Image, Sticker, Text, Video
from abdullagram.domain.chats import Chat
from abdullagram.domain.messages import Draft, Message, Sent
from abdullagram.domain.registry import Registry
from abdullagram.domain.snapshot import StoreSnapshot, build_from_snapshot, capture_snapshot
from abdullagram.domain.support import Folder, Stickerpack
from abdullagram.domain.users import User
from abdullagram.domain.value_objects import MessageKind, ModelLimits

logger = logging.getLogger(__name__)

_by_id = attrgetter("id")


class ChatStore:
    """The set of live entities, one registry per kind.

    Entities register themselves on construction and leave their registry on
    deletion; an entity absent from its registry is treated as deleted.
    """

    def __init__(self, limits: Optional[ModelLimits] = None) -> None:
        self.limits = limits or ModelLimits()
        self.users: Registry[str, User] = Registry("user", attrgetter("phone_number"))
        self.chats: Registry[str, Chat] = Registry("chat", _by_id)
        self.folders: Registry[str, Folder] = Registry("folder", _by_id)
        self.stickerpacks: Registry[str, Stickerpack] = Registry("stickerpack", _by_id)
        self.drafts: Registry[str, Draft] = Registry("draft", _by_id)
        self.sents: Registry[str, Sent] = Registry("sent part", _by_id)
        self.texts: Registry[str, Text] = Registry("text message", _by_id)
        self.images: Registry[str, Image] = Registry("image message", _by_id)
        self.stickers: Registry[str, Sticker] = Registry("sticker message", _by_id)
        self.videos: Registry[str, Video] = Registry("video message", _by_id)
        self.files: Registry[str, File] = Registry("file message", _by_id)

    def registries(self) -> Dict[str, Registry[str, Any]]:
        return {
            "users": self.users,
            "chats": self.chats,
            "folders": self.folders,
            "stickerpacks": self.stickerpacks,
            "drafts": self.drafts,
            "sents": self.sents,
            "texts": self.texts,
            "images": self.images,
            "stickers": self.stickers,
            "videos": self.videos,
            "files": self.files,
        }

    def message_registry(self, kind: MessageKind) -> Registry[str, Message]:
        return getattr(self, MESSAGE_TYPES[MessageKind(kind)].registry_name)

    def messages(self) -> Tuple[Message, ...]:
        found: Tuple[Message, ...] = ()
        for kind in MessageKind:
            found += self.message_registry(kind).all()
        return found

    def find_message(self, message_id: str, kind: Optional[MessageKind] = None) -> Optional[Message]:
        """Look a message up by id, in one payload kind or across all of them.

        Ids are unique per kind only; without ``kind`` the first match in
        MessageKind order (text, image, sticker, video, file) wins.
        """
        kinds = (kind,) if kind is not None else tuple(MessageKind)
        for candidate in kinds:
            message = self.message_registry(candidate).get(message_id)
            if message is not None:
                return message
        return None

    def clear(self) -> None:
        for registry in self.registries().values():
            registry.clear()
        logger.info("Store cleared")

    def snapshot(self) -> StoreSnapshot:
        return capture_snapshot(self)

    def restore(self, snapshot: StoreSnapshot) -> None:
        """Replace the whole content of the store with ``snapshot``.

        The snapshot is rebuilt into a separate store first; if that fails the
        error propagates and this store keeps its previous content.
        """
        staging = ChatStore(self.limits)
        build_from_snapshot(staging, snapshot)
        for name, registry in self.registries().items():
            registry.reload(getattr(staging, name).all())
        for registry in self.registries().values():
            for entity in registry:
                entity._bind(self)
        logger.info(
            "Store restored from snapshot taken at %s: %d users, %d chats, %d messages",
            snapshot.taken_at.isoformat(),
            len(self.users),
            len(self.chats),
            len(self.messages()),
        )
