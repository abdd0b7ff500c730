from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Type

from abdullagram.domain.associations import MENTIONS
from abdullagram.domain.base import require_entity
from abdullagram.domain.errors import ValidationError
from abdullagram.domain.links import LinkSet
from abdullagram.domain.messages import Message
from abdullagram.domain.validation import require_non_negative, require_text
from abdullagram.domain.value_objects import MessageKind, StickerBackground

if TYPE_CHECKING:
    from abdullagram.domain.chats import Chat
    from abdullagram.domain.store import ChatStore
    from abdullagram.domain.support import Stickerpack
    from abdullagram.domain.users import User


class Text(Message):
    kind = MessageKind.TEXT
    registry_name = "texts"

    def __init__(
        self,
        store: "ChatStore",
        sender: "User",
        chat: "Chat",
        content: str,
        *,
        contains_link: bool = False,
        id: Optional[str] = None,
        require_membership: bool = True,
    ) -> None:
        self._store = store
        self._content = self._check_content(content)
        self.contains_link = contains_link
        self._mentioned_users: LinkSet[User] = LinkSet()
        super().__init__(
            store,
            sender,
            chat,
            size_bytes=len(self._content),
            id=id,
            require_membership=require_membership,
        )

    def _check_content(self, value: str) -> str:
        if value is None:
            raise ValidationError("Text content cannot be None.")
        limit = self._store.limits.text_max_length
        if len(value) > limit:
            raise ValidationError(f"Text cannot exceed {limit} characters.")
        return value

    @property
    def content(self) -> str:
        return self._content

    @property
    def length(self) -> int:
        return len(self._content)

    def edit(self, content: Optional[str] = None) -> None:
        if content is not None:
            content = self._check_content(content)
        super().edit()
        if content is not None:
            self._content = content
            self._size_bytes = len(content)

    @property
    def mentioned_users(self) -> Tuple["User", ...]:
        return self._mentioned_users.view()

    def add_mentioned_user(self, user: "User") -> bool:
        self._ensure_alive()
        require_entity(user, "Mentioned user", self._store)
        return MENTIONS.link(self, user)

    def remove_mentioned_user(self, user: "User") -> None:
        require_entity(user, "Mentioned user", self._store)
        MENTIONS.unlink(self, user)

    def payload(self) -> Dict[str, Any]:
        return {"content": self._content, "contains_link": self.contains_link}

    def _release(self) -> None:
        MENTIONS.unlink_all(self)


class Image(Message):
    kind = MessageKind.IMAGE
    registry_name = "images"

    def __init__(
        self,
        store: "ChatStore",
        sender: "User",
        chat: "Chat",
        resolution: str,
        image_format: str,
        *,
        is_edited: bool = False,
        is_marked: bool = False,
        size_bytes: int = 0,
        id: Optional[str] = None,
        require_membership: bool = True,
    ) -> None:
        self.resolution = require_text(resolution, "Resolution")
        self.image_format = require_text(image_format, "Image format")
        self.is_edited = is_edited
        self.is_marked = is_marked
        super().__init__(store, sender, chat, size_bytes=size_bytes, id=id, require_membership=require_membership)

    def payload(self) -> Dict[str, Any]:
        return {
            "resolution": self.resolution,
            "image_format": self.image_format,
            "is_edited": self.is_edited,
            "is_marked": self.is_marked,
            "size_bytes": self._size_bytes,
        }


class Sticker(Message):
    """A sticker message; also the unit a Stickerpack collects by emoji code."""

    kind = MessageKind.STICKER
    registry_name = "stickers"

    def __init__(
        self,
        store: "ChatStore",
        sender: "User",
        chat: "Chat",
        emoji_code: str,
        background: StickerBackground = StickerBackground.TRANSPARENT,
        *,
        id: Optional[str] = None,
        require_membership: bool = True,
    ) -> None:
        self._emoji_code = require_text(emoji_code, "Emoji code")
        try:
            self.background = StickerBackground(background)
        except ValueError as exc:
            raise ValidationError(f"Unknown sticker background {background!r}.") from exc
        self._pack: Optional[Stickerpack] = None
        super().__init__(store, sender, chat, id=id, require_membership=require_membership)

    @property
    def emoji_code(self) -> str:
        return self._emoji_code

    @property
    def pack(self) -> Optional["Stickerpack"]:
        return self._pack

    def payload(self) -> Dict[str, Any]:
        return {"emoji_code": self._emoji_code, "background": self.background.value}

    def _release(self) -> None:
        if self._pack is not None:
            self._pack._stickers.detach(self)


class Video(Message):
    kind = MessageKind.VIDEO
    registry_name = "videos"

    def __init__(
        self,
        store: "ChatStore",
        sender: "User",
        chat: "Chat",
        resolution: str = "1920x1080",
        duration_sec: float = 0.0,
        *,
        is_streaming_optimized: bool = False,
        size_bytes: int = 0,
        id: Optional[str] = None,
        require_membership: bool = True,
    ) -> None:
        self.resolution = require_text(resolution, "Resolution")
        self.duration_sec = require_non_negative(duration_sec, "Duration")
        self.is_streaming_optimized = is_streaming_optimized
        super().__init__(store, sender, chat, size_bytes=size_bytes, id=id, require_membership=require_membership)

    def payload(self) -> Dict[str, Any]:
        return {
            "resolution": self.resolution,
            "duration_sec": self.duration_sec,
            "is_streaming_optimized": self.is_streaming_optimized,
            "size_bytes": self._size_bytes,
        }


class File(Message):
    kind = MessageKind.FILE
    registry_name = "files"

    def __init__(
        self,
        store: "ChatStore",
        sender: "User",
        chat: "Chat",
        file_name: str,
        file_extension: str,
        *,
        is_encrypted: bool = False,
        size_bytes: int = 0,
        id: Optional[str] = None,
        require_membership: bool = True,
    ) -> None:
        self.file_name = require_text(file_name, "File name")
        self.file_extension = require_text(file_extension, "File extension")
        self.is_encrypted = is_encrypted
        super().__init__(store, sender, chat, size_bytes=size_bytes, id=id, require_membership=require_membership)

    def payload(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "file_extension": self.file_extension,
            "is_encrypted": self.is_encrypted,
            "size_bytes": self._size_bytes,
        }


MESSAGE_TYPES: Dict[MessageKind, Type[Message]] = {
    MessageKind.TEXT: Text,
    MessageKind.IMAGE: Image,
    MessageKind.STICKER: Sticker,
    MessageKind.VIDEO: Video,
    MessageKind.FILE: File,
}
