from __future__ import annotations

from typing import Optional

from abdullagram.application.dto import ComposeMessageInput, DeleteMessageInput, ReadMessageInput
from abdullagram.application.lookups import get_chat, get_message, get_user
from abdullagram.domain.attachments import MESSAGE_TYPES
from abdullagram.domain.messages import Message, Sent
from abdullagram.domain.store import ChatStore
from abdullagram.domain.value_objects import MessageKind


class ComposeMessageService:
    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, input_data: ComposeMessageInput) -> Message:
        sender = get_user(self._store, input_data.sender_phone_number)
        chat = get_chat(self._store, input_data.chat_id)
        message_type = MESSAGE_TYPES[MessageKind(input_data.kind)]
        message = message_type(self._store, sender, chat, **input_data.payload)
        if input_data.send:
            message.send()
        return message


class SendMessageService:
    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, message_id: str, kind: Optional[MessageKind] = None) -> Sent:
        return get_message(self._store, message_id, kind).send()


class ReadMessageService:
    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, input_data: ReadMessageInput) -> bool:
        message = get_message(self._store, input_data.message_id, input_data.kind)
        return message.mark_as_read(get_user(self._store, input_data.reader_phone_number))


class DeleteMessageService:
    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, input_data: DeleteMessageInput) -> None:
        message = get_message(self._store, input_data.message_id, input_data.kind)
        if input_data.soft:
            message.mark_deleted()
        else:
            message.delete()
