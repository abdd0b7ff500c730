from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from operator import attrgetter
from typing import TYPE_CHECKING, Mapping, Optional, Tuple, Union
from uuid import uuid4

from abdullagram.domain.associations import FOLDER_CHATS, GROUP_ADMIN
from abdullagram.domain.base import StoredEntity, require_entity
from abdullagram.domain.errors import (
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from abdullagram.domain.links import LinkSet
from abdullagram.domain.qualified import QualifiedCollection
from abdullagram.domain.validation import require_past, require_text, utcnow
from abdullagram.domain.value_objects import ChatType, LinkPolicy

if TYPE_CHECKING:
    from abdullagram.domain.messages import Message
    from abdullagram.domain.store import ChatStore
    from abdullagram.domain.support import Folder
    from abdullagram.domain.users import User

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GroupInfo:
    max_participants: int
    description: str = ""

    @property
    def chat_type(self) -> ChatType:
        return ChatType.GROUP


@dataclass(frozen=True, slots=True)
class PrivateInfo:
    max_participants: int = 2

    @property
    def chat_type(self) -> ChatType:
        return ChatType.PRIVATE


ChatInfo = Union[GroupInfo, PrivateInfo]


class Chat(StoredEntity):
    """A conversation whose members are keyed by phone number."""

    registry_name = "chats"

    def __init__(
        self,
        store: "ChatStore",
        name: str,
        info: ChatInfo,
        *,
        created_at: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> None:
        super().__init__(store)
        self._name = require_text(name, "Chat name")
        self._created_at = require_past(created_at, "Created at") if created_at is not None else utcnow()
        self.id = id or uuid4().hex
        store.chats.ensure_available(self.id)
        if info.max_participants <= 0:
            raise ValidationError("Max participants must be greater than zero.")
        self._info = info

        self._members: QualifiedCollection[str, User] = QualifiedCollection(
            self,
            name="chat members",
            attribute="_members",
            qualifier=attrgetter("phone_number"),
            reverse="_joined_chats",
            max_size=info.max_participants,
            on_conflict=LinkPolicy.STRICT,
        )
        self._history: LinkSet[Message] = LinkSet()
        self._folders: LinkSet[Folder] = LinkSet()
        self._admin: Optional[User] = None

        store.chats.register(self)

    @classmethod
    def group(
        cls,
        store: "ChatStore",
        name: str,
        *,
        description: str = "",
        max_participants: Optional[int] = None,
        admin: Optional["User"] = None,
        created_at: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> "Chat":
        if description is None:
            raise ValidationError("Description cannot be None.")
        if admin is not None:
            require_entity(admin, "Admin", store)
        limit = max_participants if max_participants is not None else store.limits.group_default_max_participants
        chat = cls(store, name, GroupInfo(max_participants=limit, description=description), created_at=created_at, id=id)
        if admin is not None:
            GROUP_ADMIN.assign(chat, admin)
        return chat

    @classmethod
    def private(
        cls,
        store: "ChatStore",
        name: str,
        *,
        created_at: Optional[datetime] = None,
        id: Optional[str] = None,
    ) -> "Chat":
        info = PrivateInfo(max_participants=store.limits.private_max_participants)
        return cls(store, name, info, created_at=created_at, id=id)

    def __repr__(self) -> str:
        return f"Chat(id={self.id!r}, name={self._name!r}, type={self.chat_type.value})"

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = require_text(value, "Chat name")

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @created_at.setter
    def created_at(self, value: datetime) -> None:
        self._created_at = require_past(value, "Created at")

    @property
    def chat_type(self) -> ChatType:
        return self._info.chat_type

    @property
    def is_group(self) -> bool:
        return isinstance(self._info, GroupInfo)

    def _require_group(self, what: str) -> GroupInfo:
        if not isinstance(self._info, GroupInfo):
            raise InvalidStateError(f"Private chats have no {what}.")
        return self._info

    @property
    def description(self) -> str:
        return self._require_group("description").description

    @description.setter
    def description(self, value: str) -> None:
        info = self._require_group("description")
        if value is None:
            raise ValidationError("Description cannot be None.")
        info.description = value

    @property
    def max_participants(self) -> int:
        return self._info.max_participants

    @max_participants.setter
    def max_participants(self, value: int) -> None:
        if not isinstance(self._info, GroupInfo):
            if value != self._info.max_participants:
                raise ValidationError(
                    f"Private chats must have exactly {self._info.max_participants} participants."
                )
            return
        if value <= 0:
            raise ValidationError("Max participants must be greater than zero.")
        if value < len(self._members):
            raise ValidationError("Max participants cannot be lower than the current member count.")
        self._info.max_participants = value
        self._members.max_size = value

    # membership

    @property
    def members(self) -> Mapping[str, "User"]:
        return self._members.as_mapping()

    @property
    def member_list(self) -> Tuple["User", ...]:
        return self._members.values()

    def is_member(self, user: "User") -> bool:
        return user is not None and self._members.get(user.phone_number) is user

    def get_member(self, phone_number: str) -> Optional["User"]:
        return self._members.get(phone_number)

    def add_member(self, user: "User") -> bool:
        self._ensure_alive()
        require_entity(user, "User", self._store)
        added = self._members.put(user)
        if added:
            logger.debug("User %s joined chat %s", user.phone_number, self.id)
        return added

    def remove_member(self, phone_number: str) -> "User":
        self._ensure_alive()
        return self._members.remove(phone_number)

    def update_member_phone_number(self, old_phone_number: str, new_phone_number: str) -> None:
        user = self._members.get(old_phone_number)
        if user is None:
            raise NotFoundError(f"No member with phone number {old_phone_number!r}.")
        user.phone_number = new_phone_number

    def kick_member(self, actor: "User", phone_number: str) -> "User":
        self._require_group("admin")
        require_entity(actor, "Actor", self._store)
        if self._admin is not actor:
            raise UnauthorizedError("Only the group admin can kick members.")
        if phone_number == actor.phone_number:
            raise InvalidStateError("The admin cannot kick themselves.")
        return self.remove_member(phone_number)

    # admin

    @property
    def admin(self) -> Optional["User"]:
        return self._admin

    def set_admin(self, user: "User") -> bool:
        self._require_group("admin")
        self._ensure_alive()
        require_entity(user, "Admin", self._store)
        return GROUP_ADMIN.assign(self, user)

    def clear_admin(self) -> None:
        self._require_group("admin")
        GROUP_ADMIN.clear(self)

    # history and folders

    @property
    def history(self) -> Tuple["Message", ...]:
        return self._history.view()

    @property
    def folders(self) -> Tuple["Folder", ...]:
        return self._folders.view()

    def delete(self) -> None:
        """Delete the chat and its messages; folders and members survive."""
        self._ensure_alive()
        for message in self._history:
            message.delete()
        self._members.clear()
        FOLDER_CHATS.unlink_all_reverse(self)
        GROUP_ADMIN.clear(self, strict=False)
        self._store.chats.unregister(self)
        logger.debug("Deleted chat %s", self.id)
