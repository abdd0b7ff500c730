from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from abdullagram.domain.attachments import MESSAGE_TYPES, Text
from abdullagram.domain.chats import Chat
from abdullagram.domain.errors import NotFoundError
from abdullagram.domain.messages import Draft, Message, Sent
from abdullagram.domain.support import Folder, Stickerpack
from abdullagram.domain.users import PremiumProfile, RegularProfile, User, UserProfile
from abdullagram.domain.validation import utcnow
from abdullagram.domain.value_objects import ChatType, MessageKind, UserType

if TYPE_CHECKING:
    from abdullagram.domain.store import ChatStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProfileRecord:
    user_type: UserType
    ad_frequency: int = 0
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass(slots=True)
class UserRecord:
    username: str
    phone_number: str
    profile: ProfileRecord
    is_online: bool = False
    last_seen_at: Optional[datetime] = None
    blocked_users: List[str] = field(default_factory=list)
    saved_stickerpacks: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ChatRecord:
    id: str
    name: str
    chat_type: ChatType
    created_at: datetime
    max_participants: int
    description: Optional[str] = None
    members: List[str] = field(default_factory=list)
    admin: Optional[str] = None


@dataclass(slots=True)
class FolderRecord:
    id: str
    name: str
    owner: str
    chats: List[str] = field(default_factory=list)


@dataclass(slots=True)
class StickerpackRecord:
    id: str
    name: str
    is_premium: bool = False
    manager: Optional[str] = None
    stickers: List[str] = field(default_factory=list)


@dataclass(slots=True)
class DraftRecord:
    id: str
    last_saved_at: datetime


@dataclass(slots=True)
class SentRecord:
    id: str
    sent_at: datetime
    delivered_at: datetime
    edited_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    read_by: List[str] = field(default_factory=list)


@dataclass(slots=True)
class MessageRecord:
    id: str
    kind: MessageKind
    sender: str
    chat: str
    payload: Dict[str, Any] = field(default_factory=dict)
    draft: Optional[DraftRecord] = None
    sent: Optional[SentRecord] = None
    mentions: List[str] = field(default_factory=list)


@dataclass(slots=True)
class StoreSnapshot:
    """Every live entity and relationship of a store, referenced by key."""

    taken_at: datetime
    users: List[UserRecord] = field(default_factory=list)
    chats: List[ChatRecord] = field(default_factory=list)
    folders: List[FolderRecord] = field(default_factory=list)
    stickerpacks: List[StickerpackRecord] = field(default_factory=list)
    messages: List[MessageRecord] = field(default_factory=list)


def _profile_record(profile: UserProfile) -> ProfileRecord:
    if isinstance(profile, PremiumProfile):
        return ProfileRecord(user_type=UserType.PREMIUM, start=profile.start, end=profile.end)
    return ProfileRecord(user_type=UserType.REGULAR, ad_frequency=profile.ad_frequency)


def _message_record(message: Message) -> MessageRecord:
    record = MessageRecord(
        id=message.id,
        kind=message.kind,
        sender=message.sender.phone_number,
        chat=message.chat.id,
        payload=message.payload(),
    )
    part = message.part
    if isinstance(part, Draft):
        record.draft = DraftRecord(id=part.id, last_saved_at=part.last_saved_at)
    else:
        record.sent = SentRecord(
            id=part.id,
            sent_at=part.sent_at,
            delivered_at=part.delivered_at,
            edited_at=part.edited_at,
            deleted_at=part.deleted_at,
            read_by=[user.phone_number for user in part.read_by],
        )
    if isinstance(message, Text):
        record.mentions = [user.phone_number for user in message.mentioned_users]
    return record


def capture_snapshot(store: "ChatStore") -> StoreSnapshot:
    snap = StoreSnapshot(taken_at=utcnow())
    for user in store.users:
        snap.users.append(
            UserRecord(
                username=user.username,
                phone_number=user.phone_number,
                profile=_profile_record(user.profile),
                is_online=user.is_online,
                last_seen_at=user.last_seen_at,
                blocked_users=[other.phone_number for other in user.blocked_users],
                saved_stickerpacks=[pack.id for pack in user.saved_stickerpacks],
            )
        )
    for chat in store.chats:
        snap.chats.append(
            ChatRecord(
                id=chat.id,
                name=chat.name,
                chat_type=chat.chat_type,
                created_at=chat.created_at,
                max_participants=chat.max_participants,
                description=chat.description if chat.is_group else None,
                members=list(chat.members),
                admin=chat.admin.phone_number if chat.admin is not None else None,
            )
        )
        # history order is kept so restored chats list messages the same way
        snap.messages.extend(_message_record(message) for message in chat.history)
    for folder in store.folders:
        snap.folders.append(
            FolderRecord(
                id=folder.id,
                name=folder.name,
                owner=folder.owner.phone_number,
                chats=[chat.id for chat in folder.chats],
            )
        )
    for pack in store.stickerpacks:
        snap.stickerpacks.append(
            StickerpackRecord(
                id=pack.id,
                name=pack.name,
                is_premium=pack.is_premium,
                manager=pack.manager.phone_number if pack.manager is not None else None,
                stickers=[sticker.id for sticker in pack.stickers],
            )
        )
    logger.debug(
        "Captured snapshot: %d users, %d chats, %d messages",
        len(snap.users),
        len(snap.chats),
        len(snap.messages),
    )
    return snap


def _lookup(store: "ChatStore", registry: str, key: str) -> Any:
    entity = getattr(store, registry).get(key)
    if entity is None:
        raise NotFoundError(f"Snapshot references unknown {registry} key {key!r}.")
    return entity


def _build_profile(record: ProfileRecord) -> UserProfile:
    if record.user_type is UserType.PREMIUM:
        return PremiumProfile(start=record.start, end=record.end)
    return RegularProfile(ad_frequency=record.ad_frequency)


def _build_message(store: "ChatStore", record: MessageRecord) -> Message:
    message_type = MESSAGE_TYPES[MessageKind(record.kind)]
    message = message_type(
        store,
        _lookup(store, "users", record.sender),
        _lookup(store, "chats", record.chat),
        id=record.id,
        require_membership=False,
        **record.payload,
    )
    if record.sent is not None:
        sent = Sent(
            message,
            sent_at=record.sent.sent_at,
            delivered_at=record.sent.delivered_at,
            edited_at=record.sent.edited_at,
            deleted_at=record.sent.deleted_at,
            id=record.sent.id,
        )
        for phone_number in record.sent.read_by:
            sent.mark_as_read(_lookup(store, "users", phone_number))
        message._restore_part(sent)
    elif record.draft is not None:
        message._restore_part(Draft(message, last_saved_at=record.draft.last_saved_at, id=record.draft.id))
    return message


def build_from_snapshot(store: "ChatStore", snap: StoreSnapshot) -> None:
    """Populate an empty ``store`` from ``snap``.

    Entities go through their regular constructors and mutators, so a
    snapshot that breaks a uniqueness or multiplicity rule raises the same
    error the live operation would.
    """
    for record in snap.users:
        User(
            store,
            record.username,
            record.phone_number,
            is_online=record.is_online,
            profile=_build_profile(record.profile),
            last_seen_at=record.last_seen_at,
        )

    for record in snap.chats:
        if record.chat_type is ChatType.GROUP:
            chat = Chat.group(
                store,
                record.name,
                description=record.description or "",
                max_participants=record.max_participants,
                created_at=record.created_at,
                id=record.id,
            )
        else:
            chat = Chat.private(store, record.name, created_at=record.created_at, id=record.id)
        for phone_number in record.members:
            chat.add_member(_lookup(store, "users", phone_number))
        if record.admin is not None:
            chat.set_admin(_lookup(store, "users", record.admin))

    for record in snap.users:
        user = _lookup(store, "users", record.phone_number)
        for phone_number in record.blocked_users:
            user.block_user(_lookup(store, "users", phone_number))

    for record in snap.stickerpacks:
        manager = _lookup(store, "users", record.manager) if record.manager is not None else None
        Stickerpack(store, record.name, manager=manager, is_premium=record.is_premium, id=record.id)

    for record in snap.users:
        user = _lookup(store, "users", record.phone_number)
        for pack_id in record.saved_stickerpacks:
            user.save_stickerpack(_lookup(store, "stickerpacks", pack_id))

    for record in snap.folders:
        folder = Folder(_lookup(store, "users", record.owner), record.name, id=record.id)
        for chat_id in record.chats:
            folder.add_chat(_lookup(store, "chats", chat_id))

    for record in snap.messages:
        message = _build_message(store, record)
        if isinstance(message, Text):
            for phone_number in record.mentions:
                message.add_mentioned_user(_lookup(store, "users", phone_number))

    for record in snap.stickerpacks:
        pack = _lookup(store, "stickerpacks", record.id)
        for sticker_id in record.stickers:
            pack.add_sticker(_lookup(store, "stickers", sticker_id))
