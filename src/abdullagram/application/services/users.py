from __future__ import annotations

import logging

from abdullagram.application.dto import BlockUserInput, RegisterUserInput, UpgradeUserInput
from abdullagram.application.lookups import get_user
from abdullagram.domain.store import ChatStore
from abdullagram.domain.users import PremiumProfile, User

logger = logging.getLogger(__name__)


class RegisterUserService:
    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, input_data: RegisterUserInput) -> User:
        user = User(self._store, input_data.username, input_data.phone_number, is_online=input_data.is_online)
        logger.info("Registered user %s", user.phone_number)
        return user


class UpgradeToPremiumService:
    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, input_data: UpgradeUserInput) -> PremiumProfile:
        user = get_user(self._store, input_data.phone_number)
        return user.upgrade_to_premium(input_data.start, input_data.end)


class BlockUserService:
    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, input_data: BlockUserInput) -> bool:
        user = get_user(self._store, input_data.phone_number)
        return user.block_user(get_user(self._store, input_data.blocked_phone_number))


class DeleteUserService:
    def __init__(self, store: ChatStore) -> None:
        self._store = store

    def execute(self, phone_number: str) -> None:
        get_user(self._store, phone_number).delete()
        logger.info("Deleted user %s", phone_number)
