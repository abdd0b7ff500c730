from __future__ import annotations

from typing import Callable

import pytest

from abdullagram.domain.attachments import Sticker
from abdullagram.domain.chats import Chat
from abdullagram.domain.errors import (
    CapacityExceededError,
    InvalidStateError,
    MinimumViolationError,
    NotFoundError,
    ValidationError,
)
from abdullagram.domain.store import ChatStore
from abdullagram.domain.support import Folder, Stickerpack
from abdullagram.domain.users import User


def test_folder_belongs_to_its_owner(store: ChatStore, alice: User) -> None:
    folder = alice.create_folder("work")

    assert folder.owner is alice
    assert alice.folders == (folder,)
    assert store.folders.get(folder.id) is folder
    with pytest.raises(ValidationError):
        Folder(alice, "  ")
    with pytest.raises(ValidationError):
        Folder(None, "orphan")


def test_folder_chats_are_idempotent(alice: User, group: Chat) -> None:
    folder = alice.create_folder("work")

    assert folder.add_chat(group) is True
    assert folder.add_chat(group) is False
    assert group.folders == (folder,)

    assert folder.remove_chat(group) is True
    assert folder.remove_chat(group) is False
    assert group.folders == ()


def test_folder_holds_at_most_one_hundred_chats(store: ChatStore, alice: User) -> None:
    folder = alice.create_folder("everything")
    for i in range(100):
        folder.add_chat(Chat.group(store, f"chat {i}"))

    extra = Chat.group(store, "one too many")
    with pytest.raises(CapacityExceededError):
        folder.add_chat(extra)
    assert len(folder.chats) == 100
    assert extra.folders == ()


def test_deleting_folder_keeps_chats(store: ChatStore, alice: User, group: Chat) -> None:
    folder = alice.create_folder("work")
    folder.add_chat(group)

    folder.delete()

    assert not folder.is_alive
    assert group.is_alive
    assert group.folders == ()
    assert alice.folders == ()
    with pytest.raises(InvalidStateError):
        folder.add_chat(group)


def test_sticker_moves_between_packs(store: ChatStore, make_sticker: Callable[..., Sticker]) -> None:
    first = Stickerpack(store, "first")
    second = Stickerpack(store, "second")
    sticker = make_sticker(":smile:", first)

    assert sticker.pack is first
    assert second.add_sticker(sticker) is True

    assert sticker.pack is second
    assert first.stickers == ()
    assert second.get_sticker(":smile:") is sticker


def test_duplicate_emoji_code_is_ignored(store: ChatStore, make_sticker: Callable[..., Sticker]) -> None:
    pack = Stickerpack(store, "pack")
    first_cat = make_sticker(":cat:", pack)
    duplicate = make_sticker(":cat:")

    assert pack.add_sticker(duplicate) is False
    assert pack.get_sticker(":cat:") is first_cat
    assert duplicate.pack is None
    assert pack.add_sticker(first_cat) is False


def test_stickerpack_bounds(store: ChatStore, make_sticker: Callable[..., Sticker]) -> None:
    pack = Stickerpack(store, "big")
    for i in range(50):
        make_sticker(f":s{i}:", pack)

    with pytest.raises(CapacityExceededError):
        pack.add_sticker(make_sticker(":s50:"))
    assert len(pack.stickers) == 50

    for i in range(49):
        pack.remove_sticker(f":s{i}:")
    with pytest.raises(MinimumViolationError):
        pack.remove_sticker(":s49:")
    with pytest.raises(NotFoundError):
        pack.remove_sticker(":s0:")
    assert pack.emoji_codes == (":s49:",)


def test_deleting_sticker_message_leaves_pack(store: ChatStore, make_sticker: Callable[..., Sticker]) -> None:
    pack = Stickerpack(store, "solo")
    sticker = make_sticker(":only:", pack)

    sticker.delete()

    assert pack.stickers == ()
    assert sticker.pack is None


def test_deleting_pack_keeps_stickers(store: ChatStore, alice: User, bob: User, make_sticker: Callable[..., Sticker]) -> None:
    pack = Stickerpack(store, "temp", manager=bob)
    sticker = make_sticker(":tmp:", pack)
    alice.save_stickerpack(pack)

    pack.delete()

    assert not pack.is_alive
    assert sticker.is_alive
    assert sticker.pack is None
    assert alice.saved_stickerpacks == ()
    assert bob.managed_stickerpacks == ()


def test_pack_manager_and_savers(store: ChatStore, alice: User, bob: User) -> None:
    pack = Stickerpack(store, "dogs", is_premium=True)
    pack.set_manager(alice)
    assert alice.managed_stickerpacks == (pack,)

    pack.set_manager(bob)
    assert alice.managed_stickerpacks == ()
    assert pack.manager is bob

    assert pack.add_saved_by(alice) is True
    assert alice.saved_stickerpacks == (pack,)
    pack.remove_saved_by(alice)
    assert pack.saved_by == ()
    with pytest.raises(NotFoundError):
        pack.remove_saved_by(alice)


def test_stickerpack_with_deleted_manager_is_not_registered(store: ChatStore, alice: User) -> None:
    alice.delete()

    with pytest.raises(InvalidStateError):
        Stickerpack(store, "half", manager=alice)
    assert len(store.stickerpacks) == 0


def test_folder_rejects_chat_from_another_store(alice: User) -> None:
    folder = alice.create_folder("mixed")
    foreign = Chat.group(ChatStore(), "elsewhere")

    with pytest.raises(ValidationError):
        folder.add_chat(foreign)
    assert folder.chats == ()
