from __future__ import annotations

from typing import Optional

from abdullagram.domain.chats import Chat
from abdullagram.domain.errors import NotFoundError
from abdullagram.domain.messages import Message
from abdullagram.domain.store import ChatStore
from abdullagram.domain.users import User
from abdullagram.domain.value_objects import MessageKind


def get_user(store: ChatStore, phone_number: str) -> User:
    user = store.users.get(phone_number)
    if user is None:
        raise NotFoundError(f"User {phone_number!r} not found")
    return user


def get_chat(store: ChatStore, chat_id: str) -> Chat:
    chat = store.chats.get(chat_id)
    if chat is None:
        raise NotFoundError(f"Chat {chat_id!r} not found")
    return chat


def get_message(store: ChatStore, message_id: str, kind: Optional[MessageKind] = None) -> Message:
    message = store.find_message(message_id, kind)
    if message is None:
        raise NotFoundError(f"Message {message_id!r} not found")
    return message
