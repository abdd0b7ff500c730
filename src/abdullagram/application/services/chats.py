from __future__ import annotations

from typing import Optional

from abdullagram.application.dto import ChatMembershipInput, CreateChatInput, KickMemberInput
from abdullagram.application.lookups import get_chat, get_user
from abdullagram.domain.chats import Chat
from abdullagram.domain.store import ChatStore
from abdullagram.domain.users import User
from abdullagram.domain.value_objects import ChatType


class CreateChatService:
    """Create a chat and enrol its initial members.

    Members and the admin are resolved before the chat exists, so an unknown
    phone number leaves the store unchanged.
    """

    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, input_data: CreateChatInput) -> Chat:
        members = [get_user(self._store, phone) for phone in input_data.member_phone_numbers]
        admin: Optional[User] = None
        if input_data.admin_phone_number is not None:
            admin = get_user(self._store, input_data.admin_phone_number)

        if ChatType(input_data.chat_type) is ChatType.PRIVATE:
            chat = Chat.private(self._store, input_data.name)
        else:
            chat = Chat.group(
                self._store,
                input_data.name,
                description=input_data.description,
                max_participants=input_data.max_participants,
            )
        try:
            for member in members:
                chat.add_member(member)
            if admin is not None:
                chat.add_member(admin)
                chat.set_admin(admin)
        except Exception:
            chat.delete()
            raise
        return chat


class JoinChatService:
    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, input_data: ChatMembershipInput) -> bool:
        chat = get_chat(self._store, input_data.chat_id)
        return get_user(self._store, input_data.phone_number).join_chat(chat)


class LeaveChatService:
    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, input_data: ChatMembershipInput) -> None:
        chat = get_chat(self._store, input_data.chat_id)
        get_user(self._store, input_data.phone_number).leave_chat(chat)


class KickMemberService:
    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, input_data: KickMemberInput) -> User:
        chat = get_chat(self._store, input_data.chat_id)
        actor = get_user(self._store, input_data.actor_phone_number)
        return chat.kick_member(actor, input_data.phone_number)
