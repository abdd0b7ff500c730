from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UserType(str, Enum):
    REGULAR = "REGULAR"
    PREMIUM = "PREMIUM"


class ChatType(str, Enum):
    GROUP = "GROUP"
    PRIVATE = "PRIVATE"


class MessageState(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"


class MessageKind(str, Enum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    STICKER = "STICKER"
    VIDEO = "VIDEO"
    FILE = "FILE"


class StickerBackground(str, Enum):
    TRANSPARENT = "TRANSPARENT"
    FILLED = "FILLED"


class LinkPolicy(str, Enum):
    """How a relationship reacts to a repeated add or a missing remove."""

    IDEMPOTENT = "IDEMPOTENT"
    STRICT = "STRICT"


@dataclass(frozen=True, slots=True)
class ModelLimits:
    regular_max_saved_stickerpacks: int = 10
    folder_max_chats: int = 100
    group_default_max_participants: int = 100
    private_max_participants: int = 2
    stickerpack_min_stickers: int = 1
    stickerpack_max_stickers: int = 50
    text_max_length: int = 2000
    message_max_size: int = 10 * 1024 * 1024 * 1024
