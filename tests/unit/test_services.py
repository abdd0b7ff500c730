from __future__ import annotations

from datetime import timedelta
from typing import Dict, List, Optional, Sequence

import pytest

from abdullagram.application.dto import (
    BlockUserInput,
    ChatMembershipInput,
    ComposeMessageInput,
    CreateChatInput,
    DeleteMessageInput,
    KickMemberInput,
    ReadMessageInput,
    RegisterUserInput,
    UpgradeUserInput,
)
from abdullagram.application.services.chats import (
    CreateChatService,
    JoinChatService,
    KickMemberService,
    LeaveChatService,
)
from abdullagram.application.services.messages import (
    ComposeMessageService,
    DeleteMessageService,
    ReadMessageService,
    SendMessageService,
)
from abdullagram.application.services.snapshots import SnapshotService
from abdullagram.application.services.users import (
    BlockUserService,
    DeleteUserService,
    RegisterUserService,
    UpgradeToPremiumService,
)
from abdullagram.domain.attachments import Text
from abdullagram.domain.errors import InvalidStateError, NotFoundError, UnauthorizedError
from abdullagram.domain.interfaces import SnapshotRepository
from abdullagram.domain.snapshot import StoreSnapshot
from abdullagram.domain.store import ChatStore
from abdullagram.domain.validation import utcnow
from abdullagram.domain.value_objects import ChatType, MessageKind, MessageState


class InMemorySnapshotRepo(SnapshotRepository):
    def __init__(self) -> None:
        self._snapshots: Dict[str, StoreSnapshot] = {}
        self._order: List[str] = []

    async def save(self, label: str, snapshot: StoreSnapshot) -> None:
        if label in self._order:
            self._order.remove(label)
        self._order.append(label)
        self._snapshots[label] = snapshot

    async def get(self, label: str) -> Optional[StoreSnapshot]:
        return self._snapshots.get(label)

    async def get_latest(self) -> Optional[StoreSnapshot]:
        return self._snapshots[self._order[-1]] if self._order else None

    async def list_labels(self) -> Sequence[str]:
        return list(self._order)

    async def delete(self, label: str) -> bool:
        if label not in self._snapshots:
            return False
        del self._snapshots[label]
        self._order.remove(label)
        return True


def _register(store: ChatStore, *people: str) -> None:
    service = RegisterUserService(store)
    for index, name in enumerate(people, start=1):
        service.execute(RegisterUserInput(username=name, phone_number=f"+{index}00"))


def test_register_and_upgrade_user(store: ChatStore) -> None:
    _register(store, "alice")
    start = utcnow() - timedelta(days=1)

    profile = UpgradeToPremiumService(store).execute(
        UpgradeUserInput(phone_number="+100", start=start, end=start + timedelta(days=30))
    )

    assert store.users.get("+100").is_premium
    assert profile.end - profile.start == timedelta(days=30)
    with pytest.raises(NotFoundError):
        UpgradeToPremiumService(store).execute(UpgradeUserInput(phone_number="+999", start=start, end=start))


def test_create_chat_with_members_and_admin(store: ChatStore) -> None:
    _register(store, "alice", "bob")

    chat = CreateChatService(store).execute(
        CreateChatInput(name="team", member_phone_numbers=["+200"], admin_phone_number="+100")
    )

    assert chat.chat_type is ChatType.GROUP
    assert list(chat.members) == ["+200", "+100"]
    assert chat.admin is store.users.get("+100")


def test_create_chat_with_unknown_member_creates_nothing(store: ChatStore) -> None:
    _register(store, "alice")
    with pytest.raises(NotFoundError):
        CreateChatService(store).execute(CreateChatInput(name="team", member_phone_numbers=["+100", "+404"]))
    assert len(store.chats) == 0


def test_private_chat_with_admin_is_rolled_back(store: ChatStore) -> None:
    _register(store, "alice")
    with pytest.raises(InvalidStateError):
        CreateChatService(store).execute(
            CreateChatInput(name="dm", chat_type=ChatType.PRIVATE, admin_phone_number="+100")
        )
    assert len(store.chats) == 0
    assert store.users.get("+100").joined_chats == ()


def test_join_leave_and_kick(store: ChatStore) -> None:
    _register(store, "alice", "bob", "carol")
    chat = CreateChatService(store).execute(CreateChatInput(name="team", admin_phone_number="+100"))

    JoinChatService(store).execute(ChatMembershipInput(chat_id=chat.id, phone_number="+200"))
    JoinChatService(store).execute(ChatMembershipInput(chat_id=chat.id, phone_number="+300"))
    LeaveChatService(store).execute(ChatMembershipInput(chat_id=chat.id, phone_number="+300"))

    with pytest.raises(UnauthorizedError):
        KickMemberService(store).execute(KickMemberInput(chat_id=chat.id, actor_phone_number="+200", phone_number="+100"))
    kicked = KickMemberService(store).execute(
        KickMemberInput(chat_id=chat.id, actor_phone_number="+100", phone_number="+200")
    )

    assert kicked.username == "bob"
    assert list(chat.members) == ["+100"]


def test_compose_send_read_and_delete(store: ChatStore) -> None:
    _register(store, "alice", "bob")
    chat = CreateChatService(store).execute(CreateChatInput(name="team", member_phone_numbers=["+100", "+200"]))

    message = ComposeMessageService(store).execute(
        ComposeMessageInput(
            sender_phone_number="+100",
            chat_id=chat.id,
            kind=MessageKind.TEXT,
            payload={"content": "ping"},
        )
    )
    assert isinstance(message, Text) and message.state is MessageState.DRAFT

    SendMessageService(store).execute(message.id)
    assert ReadMessageService(store).execute(ReadMessageInput(message_id=message.id, reader_phone_number="+200"))

    DeleteMessageService(store).execute(DeleteMessageInput(message_id=message.id, soft=True))
    assert message.deleted_at is not None

    DeleteMessageService(store).execute(DeleteMessageInput(message_id=message.id))
    assert store.find_message(message.id) is None
    with pytest.raises(NotFoundError):
        SendMessageService(store).execute(message.id)


def test_message_kind_disambiguates_shared_ids(store: ChatStore) -> None:
    _register(store, "alice", "bob")
    chat = CreateChatService(store).execute(CreateChatInput(name="media", member_phone_numbers=["+100", "+200"]))
    compose = ComposeMessageService(store)
    text = compose.execute(
        ComposeMessageInput(
            sender_phone_number="+100",
            chat_id=chat.id,
            kind=MessageKind.TEXT,
            payload={"content": "look", "id": "m1"},
        )
    )
    image = compose.execute(
        ComposeMessageInput(
            sender_phone_number="+100",
            chat_id=chat.id,
            kind=MessageKind.IMAGE,
            payload={"resolution": "800x600", "image_format": "png", "id": "m1"},
        )
    )

    assert store.find_message("m1") is text
    SendMessageService(store).execute("m1", MessageKind.IMAGE)
    assert image.is_sent and not text.is_sent
    assert ReadMessageService(store).execute(
        ReadMessageInput(message_id="m1", reader_phone_number="+200", kind=MessageKind.IMAGE)
    )

    DeleteMessageService(store).execute(DeleteMessageInput(message_id="m1", kind=MessageKind.IMAGE))

    assert store.find_message("m1", MessageKind.IMAGE) is None
    assert store.find_message("m1") is text


def test_compose_and_send_in_one_step(store: ChatStore) -> None:
    _register(store, "alice")
    chat = CreateChatService(store).execute(CreateChatInput(name="notes", member_phone_numbers=["+100"]))

    message = ComposeMessageService(store).execute(
        ComposeMessageInput(
            sender_phone_number="+100",
            chat_id=chat.id,
            kind=MessageKind.FILE,
            payload={"file_name": "todo", "file_extension": "md", "size_bytes": 12},
            send=True,
        )
    )

    assert message.is_sent
    assert store.files.get(message.id) is message


def test_block_and_delete_user(store: ChatStore) -> None:
    _register(store, "alice", "bob")
    BlockUserService(store).execute(BlockUserInput(phone_number="+100", blocked_phone_number="+200"))
    assert store.users.get("+200").blocked_by == (store.users.get("+100"),)

    DeleteUserService(store).execute("+100")
    assert store.users.get("+200").blocked_by == ()
    with pytest.raises(NotFoundError):
        DeleteUserService(store).execute("+100")


@pytest.mark.asyncio
async def test_snapshot_service_save_and_load(store: ChatStore) -> None:
    _register(store, "alice", "bob")
    repo = InMemorySnapshotRepo()
    service = SnapshotService(store, repo)

    await service.save("before")
    DeleteUserService(store).execute("+200")
    await service.save("after")

    await service.load("before")
    assert store.users.get("+200") is not None
    assert await service.list_labels() == ["before", "after"]

    await service.load_latest()
    assert store.users.get("+200") is None


@pytest.mark.asyncio
async def test_snapshot_service_missing_snapshot(store: ChatStore) -> None:
    _register(store, "alice")
    service = SnapshotService(store, InMemorySnapshotRepo())

    with pytest.raises(NotFoundError):
        await service.load_latest()
    with pytest.raises(NotFoundError):
        await service.load("nope")
    assert store.users.get("+100") is not None
