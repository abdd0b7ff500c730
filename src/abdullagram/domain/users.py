from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Tuple, Union

from abdullagram.domain.associations import (
    BLOCKING,
    GROUP_ADMIN,
    MENTIONS,
    PACK_MANAGER,
    READ_BY,
    SAVED_PACKS,
)
from abdullagram.domain.base import StoredEntity, require_entity
from abdullagram.domain.errors import (
    CapacityExceededError,
    DuplicateKeyError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from abdullagram.domain.links import LinkSet
from abdullagram.domain.support import Folder
from abdullagram.domain.validation import (
    as_utc,
    require_non_negative,
    require_optional_past,
    require_past,
    require_text,
    utcnow,
)
from abdullagram.domain.value_objects import UserType

if TYPE_CHECKING:
    from abdullagram.domain.chats import Chat
    from abdullagram.domain.messages import Message, Sent
    from abdullagram.domain.attachments import Text
    from abdullagram.domain.store import ChatStore
    from abdullagram.domain.support import Stickerpack

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegularProfile:
    ad_frequency: int = 0

    def __post_init__(self) -> None:
        require_non_negative(self.ad_frequency, "Ad frequency")

    @property
    def user_type(self) -> UserType:
        return UserType.REGULAR

    def upgrade(self, start: datetime, end: datetime) -> "PremiumProfile":
        return PremiumProfile(start=start, end=end)


@dataclass(frozen=True, slots=True)
class PremiumProfile:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = require_past(self.start, "Premium start date")
        end = as_utc(self.end)
        if end < start:
            raise ValidationError("Premium end date must be after start date.")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @property
    def user_type(self) -> UserType:
        return UserType.PREMIUM

    def days_until_due(self) -> int:
        return max(0, (self.end - utcnow()).days)

    def cancelled(self) -> "PremiumProfile":
        return PremiumProfile(start=self.start, end=max(utcnow(), self.start))


UserProfile = Union[RegularProfile, PremiumProfile]


class User(StoredEntity):
    registry_name = "users"

    def __init__(
        self,
        store: "ChatStore",
        username: str,
        phone_number: str,
        *,
        is_online: bool = False,
        profile: Optional[UserProfile] = None,
        last_seen_at: Optional[datetime] = None,
    ) -> None:
        super().__init__(store)
        self._username = require_text(username, "Username")
        self._phone_number = require_text(phone_number, "Phone number")
        store.users.ensure_available(self._phone_number)
        self.is_online = is_online
        self._last_seen_at = require_optional_past(last_seen_at, "Last seen at")
        self._profile: UserProfile = profile if profile is not None else RegularProfile()

        self._blocked_users: LinkSet[User] = LinkSet()
        self._blocked_by: LinkSet[User] = LinkSet()
        self._saved_stickerpacks: LinkSet[Stickerpack] = LinkSet()
        self._joined_chats: LinkSet[Chat] = LinkSet()
        self._sent_messages: LinkSet[Message] = LinkSet()
        self._mentioned_in: LinkSet[Text] = LinkSet()
        self._read_messages: LinkSet[Sent] = LinkSet()
        self._admin_of: LinkSet[Chat] = LinkSet()
        self._managed_stickerpacks: LinkSet[Stickerpack] = LinkSet()
        self._folders: LinkSet[Folder] = LinkSet()

        store.users.register(self)

    def __repr__(self) -> str:
        return f"User(username={self._username!r}, phone_number={self._phone_number!r})"

    # attributes

    @property
    def username(self) -> str:
        return self._username

    @username.setter
    def username(self, value: str) -> None:
        self._username = require_text(value, "Username")

    @property
    def phone_number(self) -> str:
        return self._phone_number

    @phone_number.setter
    def phone_number(self, value: str) -> None:
        """Change the unique key, re-keying every membership map."""
        new_phone = require_text(value, "Phone number")
        old_phone = self._phone_number
        if new_phone == old_phone:
            return
        if self.is_alive:
            self._store.users.ensure_available(new_phone, self)
            for chat in self._joined_chats:
                if chat.get_member(new_phone) not in (None, self):
                    raise DuplicateKeyError(f"Phone number {new_phone!r} is already used in chat {chat.id}.")
            self._store.users.rekey(old_phone, new_phone)
            for chat in self._joined_chats:
                chat._members.rekey(old_phone, new_phone)
        self._phone_number = new_phone
        logger.debug("User %s changed phone number to %s", old_phone, new_phone)

    @property
    def last_seen_at(self) -> Optional[datetime]:
        return self._last_seen_at

    @last_seen_at.setter
    def last_seen_at(self, value: Optional[datetime]) -> None:
        self._last_seen_at = require_optional_past(value, "Last seen at")

    @property
    def status(self) -> str:
        return "Online" if self.is_online else "Offline"

    # type variant

    @property
    def profile(self) -> UserProfile:
        return self._profile

    @property
    def user_type(self) -> UserType:
        return self._profile.user_type

    @property
    def is_premium(self) -> bool:
        return isinstance(self._profile, PremiumProfile)

    @property
    def max_saved_stickerpacks(self) -> Optional[int]:
        """Saved-pack quota; None means unlimited."""
        if self.is_premium:
            return None
        return self._store.limits.regular_max_saved_stickerpacks

    @property
    def ad_frequency(self) -> int:
        if not isinstance(self._profile, RegularProfile):
            raise InvalidStateError("Premium users have no ad frequency.")
        return self._profile.ad_frequency

    def upgrade_to_premium(self, start: datetime, end: datetime) -> PremiumProfile:
        if not isinstance(self._profile, RegularProfile):
            raise InvalidTransitionError("User is already premium.")
        self._profile = self._profile.upgrade(start, end)
        logger.info("User %s upgraded to premium", self._phone_number)
        return self._profile

    def as_premium(self) -> PremiumProfile:
        if not isinstance(self._profile, PremiumProfile):
            raise InvalidStateError("User is not premium.")
        return self._profile

    def days_until_due(self) -> int:
        return self.as_premium().days_until_due()

    def cancel_subscription(self) -> None:
        self._profile = self.as_premium().cancelled()

    # relationship views

    @property
    def blocked_users(self) -> Tuple["User", ...]:
        return self._blocked_users.view()

    @property
    def blocked_by(self) -> Tuple["User", ...]:
        return self._blocked_by.view()

    @property
    def saved_stickerpacks(self) -> Tuple["Stickerpack", ...]:
        return self._saved_stickerpacks.view()

    @property
    def joined_chats(self) -> Tuple["Chat", ...]:
        return self._joined_chats.view()

    @property
    def sent_messages(self) -> Tuple["Message", ...]:
        return self._sent_messages.view()

    @property
    def mentioned_in(self) -> Tuple["Text", ...]:
        return self._mentioned_in.view()

    @property
    def read_messages(self) -> Tuple["Sent", ...]:
        return self._read_messages.view()

    @property
    def admin_of(self) -> Tuple["Chat", ...]:
        return self._admin_of.view()

    @property
    def managed_stickerpacks(self) -> Tuple["Stickerpack", ...]:
        return self._managed_stickerpacks.view()

    @property
    def folders(self) -> Tuple[Folder, ...]:
        return self._folders.view()

    # blocking

    def block_user(self, user: "User") -> bool:
        self._ensure_alive()
        require_entity(user, "User", self._store)
        if user is self:
            raise ValidationError("Cannot block yourself.")
        return BLOCKING.link(self, user)

    def unblock_user(self, user: "User") -> bool:
        require_entity(user, "User", self._store)
        return BLOCKING.unlink(self, user)

    def is_blocking(self, user: "User") -> bool:
        return BLOCKING.linked(self, user)

    # stickerpacks

    def save_stickerpack(self, pack: "Stickerpack") -> bool:
        self._ensure_alive()
        require_entity(pack, "Stickerpack", self._store)
        if SAVED_PACKS.linked(self, pack):
            return False
        quota = self.max_saved_stickerpacks
        if quota is not None and len(self._saved_stickerpacks) >= quota:
            raise CapacityExceededError(f"Regular users can save at most {quota} stickerpacks.")
        return SAVED_PACKS.link(self, pack)

    def unsave_stickerpack(self, pack: "Stickerpack") -> None:
        require_entity(pack, "Stickerpack", self._store)
        SAVED_PACKS.unlink(self, pack)

    # chats

    def join_chat(self, chat: "Chat") -> bool:
        require_entity(chat, "Chat", self._store)
        return chat.add_member(self)

    def leave_chat(self, chat: "Chat") -> None:
        require_entity(chat, "Chat", self._store)
        if not chat.is_member(self):
            raise NotFoundError("User is not a member of this chat.")
        chat.remove_member(self._phone_number)

    # folders

    def create_folder(self, name: str) -> Folder:
        self._ensure_alive()
        return Folder(self, name)

    def delete(self) -> None:
        """Delete the user together with everything it owns."""
        self._ensure_alive()
        for folder in self._folders:
            folder.delete()
        for message in self._sent_messages:
            message.delete()
        for chat in self._joined_chats:
            chat._members.detach(self)
        GROUP_ADMIN.clear_all_reverse(self)
        PACK_MANAGER.clear_all_reverse(self)
        BLOCKING.unlink_all(self)
        BLOCKING.unlink_all_reverse(self)
        SAVED_PACKS.unlink_all(self)
        MENTIONS.unlink_all_reverse(self)
        READ_BY.unlink_all_reverse(self)
        self._store.users.unregister(self)
        logger.debug("Deleted user %s", self._phone_number)
