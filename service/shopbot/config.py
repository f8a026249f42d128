from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

from shopbot.telegram_bot.logging_config import bot_logger as logger


class Settings(BaseSettings):
    # Telegram
    telegram_bot_token: str = Field(
        validation_alias=AliasChoices("TG_TOKEN", "TELEGRAM_BOT_TOKEN")
    )
    telegram_api_base: str = "https://api.telegram.org"

    # Comma-separated Telegram user IDs; empty means everyone is allowed
    allowed_users: str = ""

    # Long polling
    poll_timeout: int = 10  # server-side wait, seconds
    poll_retry_delay: float = 1.0
    update_queue_size: int = 1

    # Storage
    db_path: str = "./shopping.db"

    # Replies
    history_limit: int = 10

    debug: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        populate_by_name = True
        extra = "ignore"

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_path}"

    @property
    def allowed_user_ids(self) -> frozenset[int]:
        return parse_allowed_users(self.allowed_users)

    @field_validator("debug", mode="before")
    @classmethod
    def _debug_if_set(cls, value):
        # Any non-empty DEBUG turns debug logging on
        if isinstance(value, str):
            return bool(value.strip())
        return value


def parse_allowed_users(raw: str) -> frozenset[int]:
    """Parse "123, 456" into a set of user IDs, skipping entries that aren't integers."""
    user_ids = set()
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            user_ids.add(int(part))
        except ValueError:
            logger.warning(f"Ignoring invalid user ID in ALLOWED_USERS: {part!r}")
    return frozenset(user_ids)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
