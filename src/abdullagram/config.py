from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from abdullagram.domain.value_objects import ModelLimits


class AppEnv(str, Enum):
    LOCAL = "local"
    STAGING = "staging"
    PRODUCTION = "production"


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    # Application
    app_env: AppEnv = Field(AppEnv.LOCAL, alias="APP_ENV")
    log_level: LogLevel = Field("INFO", alias="LOG_LEVEL")

    # Snapshot storage
    database_url: str = Field("sqlite+aiosqlite:///./abdullagram.db", alias="DATABASE_URL")
    database_echo: bool = Field(False, alias="DATABASE_ECHO")

    # Model limits
    regular_max_saved_stickerpacks: int = Field(10, gt=0, alias="REGULAR_MAX_SAVED_STICKERPACKS")
    folder_max_chats: int = Field(100, gt=0, alias="FOLDER_MAX_CHATS")
    group_default_max_participants: int = Field(100, gt=0, alias="GROUP_DEFAULT_MAX_PARTICIPANTS")
    stickerpack_min_stickers: int = Field(1, ge=0, alias="STICKERPACK_MIN_STICKERS")
    stickerpack_max_stickers: int = Field(50, gt=0, alias="STICKERPACK_MAX_STICKERS")
    text_max_length: int = Field(2000, gt=0, alias="TEXT_MAX_LENGTH")

    def model_limits(self) -> ModelLimits:
        return ModelLimits(
            regular_max_saved_stickerpacks=self.regular_max_saved_stickerpacks,
            folder_max_chats=self.folder_max_chats,
            group_default_max_participants=self.group_default_max_participants,
            stickerpack_min_stickers=self.stickerpack_min_stickers,
            stickerpack_max_stickers=self.stickerpack_max_stickers,
            text_max_length=self.text_max_length,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()
