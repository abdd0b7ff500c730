from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional, Tuple, Union
from uuid import uuid4

from abdullagram.domain.associations import MESSAGE_CHAT, MESSAGE_SENDER, READ_BY
from abdullagram.domain.base import StoredEntity, require_entity
from abdullagram.domain.errors import (
    InvalidStateError,
    InvalidTransitionError,
    UnauthorizedError,
    ValidationError,
)
from abdullagram.domain.links import LinkSet
from abdullagram.domain.validation import (
    require_non_negative,
    require_not_before,
    require_past,
    utcnow,
)
from abdullagram.domain.value_objects import MessageKind, MessageState

if TYPE_CHECKING:
    from abdullagram.domain.chats import Chat
    from abdullagram.domain.store import ChatStore
    from abdullagram.domain.users import User

logger = logging.getLogger(__name__)


class Draft(StoredEntity):
    """Initial part of a message; replaced by a Sent part when sent."""

    registry_name = "drafts"

    def __init__(
        self,
        message: "Message",
        *,
        last_saved_at: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> None:
        super().__init__(message.store)
        self.id = id or str(uuid4())
        self._message: Optional[Message] = message
        self._last_saved_at = (
            require_past(last_saved_at, "Last save timestamp") if last_saved_at is not None else utcnow()
        )

    @property
    def message(self) -> Optional["Message"]:
        return self._message

    @property
    def last_saved_at(self) -> datetime:
        return self._last_saved_at

    @last_saved_at.setter
    def last_saved_at(self, value: datetime) -> None:
        self._last_saved_at = require_past(value, "Last save timestamp")

    def save(self) -> None:
        self._last_saved_at = utcnow()

    def send_message(self, message: "Message") -> "Sent":
        """Turn ``message`` into a Sent message, retiring this draft."""
        if message is None or self._message is not message or message._part is not self:
            raise InvalidTransitionError("This draft does not belong to the message being sent.")
        message._ensure_alive()
        now = utcnow()
        sent = Sent(message, sent_at=now, delivered_at=now)
        store = message.store
        store.sents.register(sent)
        message._part = sent
        store.drafts.unregister(self)
        self._message = None
        logger.debug("Message %s sent at %s", message.id, now.isoformat())
        return sent


class Sent(StoredEntity):
    """Terminal part of a message, carrying delivery and read state."""

    registry_name = "sents"

    def __init__(
        self,
        message: "Message",
        *,
        sent_at: datetime,
        delivered_at: Optional[datetime] = None,
        edited_at: Optional[datetime] = None,
        deleted_at: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> None:
        super().__init__(message.store)
        self.id = id or str(uuid4())
        self._message: Optional[Message] = message
        self._sent_at = require_past(sent_at, "Send timestamp")
        self._delivered_at = self._check_after_send(delivered_at or self._sent_at, "Delivered at")
        self._edited_at = self._check_optional(edited_at, "Edited at")
        self._deleted_at = self._check_optional(deleted_at, "Deleted at")
        self._read_by: LinkSet[User] = LinkSet()

    def _check_after_send(self, value: datetime, field: str) -> datetime:
        value = require_past(value, field)
        return require_not_before(value, self._sent_at, field, "send timestamp")

    def _check_optional(self, value: Optional[datetime], field: str) -> Optional[datetime]:
        if value is None:
            return None
        return self._check_after_send(value, field)

    @property
    def message(self) -> Optional["Message"]:
        return self._message

    @property
    def sent_at(self) -> datetime:
        return self._sent_at

    @property
    def delivered_at(self) -> datetime:
        return self._delivered_at

    @delivered_at.setter
    def delivered_at(self, value: datetime) -> None:
        self._delivered_at = self._check_after_send(value, "Delivered at")

    @property
    def edited_at(self) -> Optional[datetime]:
        return self._edited_at

    @edited_at.setter
    def edited_at(self, value: Optional[datetime]) -> None:
        self._edited_at = self._check_optional(value, "Edited at")

    @property
    def deleted_at(self) -> Optional[datetime]:
        return self._deleted_at

    @deleted_at.setter
    def deleted_at(self, value: Optional[datetime]) -> None:
        self._deleted_at = self._check_optional(value, "Deleted at")

    @property
    def is_deleted(self) -> bool:
        return self._deleted_at is not None

    @property
    def read_by(self) -> Tuple["User", ...]:
        return self._read_by.view()

    def mark_as_read(self, user: "User") -> bool:
        require_entity(user, "Reader", self._store)
        return READ_BY.link(self, user)

    def unmark_as_read(self, user: "User") -> None:
        READ_BY.unlink(self, user)

    def mark_delivered(self, at: Optional[datetime] = None) -> None:
        self.delivered_at = at or utcnow()

    def edit(self) -> None:
        if self.is_deleted:
            raise InvalidStateError("A deleted message cannot be edited.")
        self._edited_at = utcnow()

    def mark_deleted(self) -> None:
        if self.is_deleted:
            raise InvalidStateError("Message is already deleted.")
        self._deleted_at = utcnow()


MessagePart = Union[Draft, Sent]


class Message(StoredEntity):
    """Base of every payload kind.

    A message always owns exactly one part: a Draft until it is sent, a Sent
    afterwards. Subclasses validate their own attributes before calling this
    constructor, which registers the message and links sender and chat.
    """

    kind: ClassVar[MessageKind]

    def __init__(
        self,
        store: "ChatStore",
        sender: "User",
        chat: "Chat",
        *,
        size_bytes: int = 0,
        id: Optional[str] = None,
        require_membership: bool = True,
    ) -> None:
        super().__init__(store)
        require_entity(sender, "Sender", store)
        require_entity(chat, "Chat", self._store)
        if require_membership and not chat.is_member(sender):
            raise UnauthorizedError("Sender must be a member of the chat to send a message.")
        self.id = id or str(uuid4())
        self._registry().ensure_available(self.id)
        self._size_bytes = self._check_size(size_bytes)
        self._sender: Optional[User] = None
        self._chat: Optional[Chat] = None
        self._part: MessagePart = Draft(self)

        self._registry().register(self)
        store.drafts.register(self._part)
        MESSAGE_SENDER.assign(self, sender)
        MESSAGE_CHAT.assign(self, chat)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, state={self.state.value})"

    def _check_size(self, value: int) -> int:
        require_non_negative(value, "Message size")
        if value > self._store.limits.message_max_size:
            raise ValidationError("Message size cannot exceed 10GB.")
        return value

    @property
    def size_bytes(self) -> int:
        return self._size_bytes

    def payload(self) -> Dict[str, Any]:
        """Kind-specific attributes as plain values."""
        return {}

    def _release(self) -> None:
        """Drop kind-specific links before the message is deleted."""

    # sender and chat

    @property
    def sender(self) -> Optional["User"]:
        return self._sender

    @sender.setter
    def sender(self, user: "User") -> None:
        self._ensure_alive()
        require_entity(user, "Sender", self._store)
        if not self._chat.is_member(user):
            raise UnauthorizedError("Sender must be a member of the chat to send a message.")
        MESSAGE_SENDER.assign(self, user)

    @property
    def chat(self) -> Optional["Chat"]:
        return self._chat

    @chat.setter
    def chat(self, chat: "Chat") -> None:
        self._ensure_alive()
        require_entity(chat, "Chat", self._store)
        if not chat.is_member(self._sender):
            raise UnauthorizedError("Sender must be a member of the target chat.")
        MESSAGE_CHAT.assign(self, chat)

    # state machine

    @property
    def part(self) -> MessagePart:
        return self._part

    @property
    def state(self) -> MessageState:
        return MessageState.DRAFT if isinstance(self._part, Draft) else MessageState.SENT

    @property
    def is_draft(self) -> bool:
        return isinstance(self._part, Draft)

    @property
    def is_sent(self) -> bool:
        return isinstance(self._part, Sent)

    @property
    def draft(self) -> Optional[Draft]:
        return self._part if isinstance(self._part, Draft) else None

    @property
    def sent(self) -> Optional[Sent]:
        return self._part if isinstance(self._part, Sent) else None

    def _require_draft(self) -> Draft:
        if not isinstance(self._part, Draft):
            raise InvalidStateError("Message is not a draft.")
        return self._part

    def _require_sent(self) -> Sent:
        if not isinstance(self._part, Sent):
            raise InvalidStateError("Message has not been sent.")
        return self._part

    def send(self) -> Sent:
        if not isinstance(self._part, Draft):
            raise InvalidTransitionError("Message has already been sent.")
        return self._part.send_message(self)

    def convert_to_draft(self) -> None:
        if isinstance(self._part, Sent):
            raise InvalidTransitionError("A sent message cannot return to draft.")
        raise InvalidTransitionError("Message is already a draft.")

    def save_draft(self) -> None:
        self._require_draft().save()

    def edit(self) -> None:
        """Refresh the draft save time, or stamp the edit time once sent."""
        self._ensure_alive()
        if isinstance(self._part, Draft):
            self._part.save()
        else:
            self._part.edit()

    def mark_deleted(self) -> None:
        self._require_sent().mark_deleted()

    def mark_as_read(self, user: "User") -> bool:
        return self._require_sent().mark_as_read(user)

    def mark_delivered(self, at: Optional[datetime] = None) -> None:
        self._require_sent().mark_delivered(at)

    @property
    def last_saved_at(self) -> datetime:
        return self._require_draft().last_saved_at

    @property
    def sent_at(self) -> datetime:
        return self._require_sent().sent_at

    @property
    def delivered_at(self) -> datetime:
        return self._require_sent().delivered_at

    @property
    def edited_at(self) -> Optional[datetime]:
        return self._require_sent().edited_at

    @property
    def deleted_at(self) -> Optional[datetime]:
        return self._require_sent().deleted_at

    @property
    def read_by(self) -> Tuple["User", ...]:
        return self._require_sent().read_by

    def _restore_part(self, part: MessagePart) -> None:
        """Swap in a part rebuilt from a snapshot."""
        store = self._store
        old = self._part
        getattr(store, old.registry_name).unregister(old)
        getattr(store, part.registry_name).register(part)
        old._message = None
        self._part = part

    def delete(self) -> None:
        """Delete the message and its owned part."""
        self._ensure_alive()
        part = self._part
        if isinstance(part, Sent):
            READ_BY.unlink_all(part)
        getattr(self._store, part.registry_name).unregister(part)
        self._release()
        MESSAGE_SENDER.assign(self, None)
        MESSAGE_CHAT.assign(self, None)
        self._registry().unregister(self)
        logger.debug("Deleted %s message %s", self.kind.value, self.id)
