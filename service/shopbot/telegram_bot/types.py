"""
Telegram Bot API records the bot reads.

Only the fields the bot uses are declared; everything else in the payload
is ignored.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None


class Chat(BaseModel):
    id: int
    type: str = "private"
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None


class Message(BaseModel):
    message_id: int
    date: int = 0
    chat: Chat
    from_user: Optional[User] = Field(default=None, alias="from")
    text: Optional[str] = None


class Update(BaseModel):
    update_id: int
    message: Optional[Message] = None


class GetUpdatesResponse(BaseModel):
    """Envelope of a getUpdates reply. Updates stay raw so one bad entry can't sink the batch."""

    ok: bool
    result: list[dict[str, Any]] = Field(default_factory=list)
    description: Optional[str] = None
