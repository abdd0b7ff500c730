from __future__ import annotations

from typing import Callable, Optional

import pytest

from abdullagram.domain.attachments import Sticker, Text
from abdullagram.domain.chats import Chat
from abdullagram.domain.store import ChatStore
from abdullagram.domain.support import Stickerpack
from abdullagram.domain.users import User


@pytest.fixture
def store() -> ChatStore:
    return ChatStore()


@pytest.fixture
def alice(store: ChatStore) -> User:
    return User(store, "alice", "+100")


@pytest.fixture
def bob(store: ChatStore) -> User:
    return User(store, "bob", "+200")


@pytest.fixture
def carol(store: ChatStore) -> User:
    return User(store, "carol", "+300")


@pytest.fixture
def group(store: ChatStore, alice: User, bob: User) -> Chat:
    chat = Chat.group(store, "friends", description="weekend plans", admin=alice)
    chat.add_member(alice)
    chat.add_member(bob)
    return chat


@pytest.fixture
def make_sticker(store: ChatStore, alice: User, group: Chat) -> Callable[..., Sticker]:
    def factory(emoji_code: str, pack: Optional[Stickerpack] = None) -> Sticker:
        sticker = Sticker(store, alice, group, emoji_code)
        if pack is not None:
            pack.add_sticker(sticker)
        return sticker

    return factory


@pytest.fixture
def make_text(store: ChatStore, alice: User, group: Chat) -> Callable[..., Text]:
    def factory(content: str = "hello") -> Text:
        return Text(store, alice, group, content)

    return factory
