"""
Command parser - turns message text into a verb and its argument.

Only the first whitespace-delimited token is the verb, matched
case-sensitively. Anything unrecognised, including plain text, maps to
Command.UNKNOWN.
"""

from dataclasses import dataclass
from enum import Enum


class Command(str, Enum):
    """Verbs the bot understands."""
    START = "/start"
    HELP = "/help"
    SET = "/set"
    ADD = "/add"
    LIST = "/list"
    BOUGHT = "/bought"
    DELETE = "/delete"
    HISTORY = "/history"
    UNKNOWN = ""


@dataclass(frozen=True)
class ParsedCommand:
    command: Command
    args: str = ""
    verb: str = ""


def parse_command(text: str) -> ParsedCommand:
    """
    Split `text` into a Command and the rest of the line.

    "/add  oat milk " -> (ADD, "oat milk"). A "/verb@BotName" token, which
    Telegram sends from group chats, is treated as "/verb".
    """
    parts = text.strip().split(maxsplit=1)
    if not parts:
        return ParsedCommand(Command.UNKNOWN)

    verb = parts[0]
    args = parts[1].strip() if len(parts) > 1 else ""

    if verb.startswith("/") and "@" in verb:
        verb = verb.split("@", 1)[0]

    try:
        command = Command(verb)
    except ValueError:
        return ParsedCommand(Command.UNKNOWN, args, verb)

    return ParsedCommand(command, args, verb)
