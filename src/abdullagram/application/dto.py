from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from abdullagram.domain.value_objects import ChatType, MessageKind


@dataclass(slots=True)
class RegisterUserInput:
    username: str
    phone_number: str
    is_online: bool = False


@dataclass(slots=True)
class UpgradeUserInput:
    phone_number: str
    start: datetime
    end: datetime


@dataclass(slots=True)
class BlockUserInput:
    phone_number: str
    blocked_phone_number: str


@dataclass(slots=True)
class CreateChatInput:
    name: str
    chat_type: ChatType = ChatType.GROUP
    description: str = ""
    max_participants: Optional[int] = None
    admin_phone_number: Optional[str] = None
    member_phone_numbers: Sequence[str] = ()


@dataclass(slots=True)
class ChatMembershipInput:
    chat_id: str
    phone_number: str


@dataclass(slots=True)
class KickMemberInput:
    chat_id: str
    actor_phone_number: str
    phone_number: str


@dataclass(slots=True)
class ComposeMessageInput:
    sender_phone_number: str
    chat_id: str
    kind: MessageKind
    payload: Dict[str, Any] = field(default_factory=dict)
    send: bool = False


@dataclass(slots=True)
class ReadMessageInput:
    message_id: str
    reader_phone_number: str
    kind: Optional[MessageKind] = None


@dataclass(slots=True)
class DeleteMessageInput:
    message_id: str
    soft: bool = False
    kind: Optional[MessageKind] = None
