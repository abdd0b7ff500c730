from __future__ import annotations

import dataclasses
from datetime import timedelta

import pytest

from abdullagram.domain.attachments import File, Sticker, Text
from abdullagram.domain.chats import Chat
from abdullagram.domain.errors import DuplicateKeyError, NotFoundError
from abdullagram.domain.snapshot import StoreSnapshot
from abdullagram.domain.store import ChatStore
from abdullagram.domain.support import Stickerpack
from abdullagram.domain.users import User
from abdullagram.domain.validation import utcnow
from abdullagram.domain.value_objects import ChatType, MessageState, UserType


def populate(store: ChatStore) -> None:
    alice = User(store, "alice", "+100", is_online=True)
    bob = User(store, "bob", "+200")
    carol = User(store, "carol", "+300")
    carol.upgrade_to_premium(utcnow() - timedelta(days=2), utcnow() + timedelta(days=28))
    alice.block_user(carol)

    group = Chat.group(store, "friends", description="plans", max_participants=10, admin=alice, id="g1")
    for user in (alice, bob, carol):
        group.add_member(user)
    dm = Chat.private(store, "dm", id="p1")
    dm.add_member(alice)
    dm.add_member(bob)

    folder = bob.create_folder("important")
    folder.add_chat(dm)
    folder.add_chat(group)

    hello = Text(store, alice, group, "hello @bob", id="t1")
    hello.add_mentioned_user(bob)
    hello.send()
    hello.mark_as_read(bob)
    hello.edit()
    Text(store, bob, dm, "draft reply", id="t2")
    File(store, bob, dm, "notes", "txt", size_bytes=42, id="f1").send()

    pack = Stickerpack(store, "cats", manager=carol, id="pack1")
    Sticker(store, carol, group, ":a:", id="s1")
    Sticker(store, carol, group, ":b:", id="s2")
    pack.add_sticker(store.stickers.get("s2"))
    pack.add_sticker(store.stickers.get("s1"))
    bob.save_stickerpack(pack)


def test_snapshot_round_trip() -> None:
    source = ChatStore()
    populate(source)
    snap = source.snapshot()

    target = ChatStore()
    target.restore(snap)

    alice, bob, carol = (target.users.get(phone) for phone in ("+100", "+200", "+300"))
    assert alice.is_online and alice.blocked_users == (carol,)
    assert carol.user_type is UserType.PREMIUM

    group = target.chats.get("g1")
    assert group.chat_type is ChatType.GROUP
    assert group.description == "plans" and group.max_participants == 10
    assert list(group.members) == ["+100", "+200", "+300"]
    assert group.admin is alice
    assert target.chats.get("p1").chat_type is ChatType.PRIVATE

    assert [folder.name for folder in bob.folders] == ["important"]
    assert [chat.id for chat in bob.folders[0].chats] == ["p1", "g1"]

    hello = target.texts.get("t1")
    assert hello.state is MessageState.SENT
    assert hello.read_by == (bob,)
    assert hello.mentioned_users == (bob,)
    assert hello.edited_at == source.texts.get("t1").edited_at
    assert target.texts.get("t2").state is MessageState.DRAFT
    assert target.files.get("f1").size_bytes == 42
    assert [message.id for message in group.history] == ["t1", "s1", "s2"]

    pack = target.stickerpacks.get("pack1")
    assert pack.emoji_codes == (":b:", ":a:")
    assert pack.manager is carol
    assert bob.saved_stickerpacks == (pack,)

    assert target.snapshot().users == snap.users
    assert target.snapshot().messages == snap.messages


def test_restore_replaces_previous_content(store: ChatStore, alice: User) -> None:
    source = ChatStore()
    populate(source)

    store.restore(source.snapshot())

    assert not alice.is_alive
    restored = store.users.get("+100")
    assert restored is not alice
    assert restored.store is store
    assert restored.joined_chats[0].store is store
    assert store.texts.get("t1").part.store is store


def test_failed_restore_leaves_store_untouched(store: ChatStore, alice: User, group: Chat) -> None:
    source = ChatStore()
    populate(source)
    snap = source.snapshot()
    snap.users.append(dataclasses.replace(snap.users[0], username="clone"))

    with pytest.raises(DuplicateKeyError):
        store.restore(snap)

    assert store.users.all() == (alice, store.users.get("+200"))
    assert alice.is_alive and group.is_alive
    assert store.texts.get("t1") is None


def test_restore_rejects_dangling_references(store: ChatStore) -> None:
    snap = StoreSnapshot(taken_at=utcnow())
    source = ChatStore()
    populate(source)
    full = source.snapshot()
    snap.users = full.users
    snap.messages = full.messages

    with pytest.raises(NotFoundError):
        store.restore(snap)
    assert len(store.users) == 0


def test_clear_empties_every_registry(store: ChatStore) -> None:
    populate(store)
    alice = store.users.get("+100")

    store.clear()

    assert all(len(registry) == 0 for registry in store.registries().values())
    assert not alice.is_alive
