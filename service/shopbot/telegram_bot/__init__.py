"""
Telegram Bot module for the shared shopping list.

ARCHITECTURE: long polling, single consumer.
- UpdateSource long-polls getUpdates and owns the offset cursor
- Bounded queue hands updates to one consumer loop
- Authorization gate drops senders outside ALLOWED_USERS silently
- dispatch_command parses the verb and runs its handler
- Handler reads/writes ListStore and SessionStore, returns one reply

List and session state lives in the database (see shopbot.services).
"""

from .auth import is_authorized
from .bot import ShoppingBot
from .dispatcher import Command, parse_command
from .handlers import CommandContext, dispatch_command
from .polling import UpdateSource
from .telegram_api import TelegramAPIError, TelegramClient

__all__ = [
    "ShoppingBot",
    "UpdateSource",
    "TelegramClient",
    "TelegramAPIError",
    "is_authorized",
    "Command",
    "parse_command",
    "CommandContext",
    "dispatch_command",
]
