"""
Command handlers.

One handler per Command. Every handler is a stateless coroutine that reads
what it needs from the stores and returns exactly one reply text:

1. Resolve the sender's current list (requires_list). No list selected ->
   prompt to /set one. /set, /start and /help skip this step.
2. Run the store operation and render the reply, success or failure.

This module is the only place that turns store errors into user-facing text.

POSITIONAL NUMBERING:
=====================
"/bought 2" means "the 2nd item of /list as it looks right now". The position
is resolved against a fresh get_active_items() snapshot, then the purchase is a
conditional update on the item's ID. If two people resolve the same position
at once, both hit the same item and the second update matches zero rows; that
user gets "not found or already bought". The position -> item translation is
not locked, so this is a known gap between check and use, not a bug.
"""

import functools
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from shopbot.errors import (
    ItemNotAvailableError,
    ItemNotFoundError,
    ListNotFoundError,
    StoreError,
)
from shopbot.services import ListStore, SessionStore

from .dispatcher import Command, parse_command
from .logging_config import bot_logger as logger


@dataclass
class CommandContext:
    """Who sent the command and where the data lives."""
    user_id: int
    list_store: ListStore
    session_store: SessionStore
    history_limit: int = 10


Handler = Callable[[CommandContext, str], Awaitable[str]]


NO_LIST_SELECTED = (
    "No list selected.\n"
    "Use /set <list_id> to pick a list or create a new one."
)
UNKNOWN_COMMAND = "Unknown command. Use /help to see what I can do."
TRY_AGAIN = "❌ Something went wrong. Please try again."


def requires_list(handler):
    """Resolve the sender's current list and pass it to `handler` as `list_id`."""

    @functools.wraps(handler)
    async def wrapper(ctx: CommandContext, args: str) -> str:
        list_id = ctx.session_store.get_current_list(ctx.user_id)
        if list_id is None:
            return NO_LIST_SELECTED
        try:
            return await handler(ctx, list_id, args)
        except ListNotFoundError:
            # Session outlived its list
            logger.info(f"user_id={ctx.user_id} points at missing list {list_id!r}")
            return NO_LIST_SELECTED

    return wrapper


def _parse_position(args: str) -> Optional[int]:
    """'3' -> 3. Anything that isn't a positive integer -> None."""
    try:
        position = int(args)
    except ValueError:
        return None
    return position if position >= 1 else None


async def handle_start(ctx: CommandContext, args: str) -> str:
    return (
        "👋 Hi! I keep a shopping list you can share with others.\n\n"
        "Pick a list name (anyone who knows it can use the list):\n"
        "/set <list_id>\n\n"
        "Then add things with /add, see them with /list and tick them off "
        "with /bought.\n"
        "Use /help for all commands."
    )


async def handle_help(ctx: CommandContext, args: str) -> str:
    return (
        "📖 Commands:\n"
        "/set <list_id> - select a list (created if it doesn't exist)\n"
        "/add <item> - add an item to the current list\n"
        "/list - show items still to buy\n"
        "/bought <number> - mark item number <number> from /list as bought\n"
        "/delete <number> - remove item number <number> from /list\n"
        "/history - show recently bought items\n"
        "/help - this help"
    )


async def handle_set(ctx: CommandContext, args: str) -> str:
    list_id = args.strip()
    if not list_id:
        return "Usage: /set <list_id>"

    created = ctx.list_store.ensure_list(list_id, ctx.user_id)
    if created:
        logger.info(f"user_id={ctx.user_id} created list {list_id!r}")

    ctx.session_store.set_current_list(ctx.user_id, list_id)
    return f"Selected list: {list_id}"


@requires_list
async def handle_add(ctx: CommandContext, list_id: str, args: str) -> str:
    name = args.strip()
    if not name:
        return "Usage: /add <item>"

    ctx.list_store.add_item(list_id, name, ctx.user_id)
    return f"Added: {name}"


@requires_list
async def handle_list(ctx: CommandContext, list_id: str, args: str) -> str:
    items = ctx.list_store.get_active_items(list_id)
    if not items:
        return f"List {list_id} is empty."

    lines = [f"🛒 {list_id}:"]
    lines.extend(f"{position}. {item.name}" for position, item in enumerate(items, start=1))
    return "\n".join(lines)


@requires_list
async def handle_bought(ctx: CommandContext, list_id: str, args: str) -> str:
    position = _parse_position(args)
    if position is None:
        return "Usage: /bought <number>, where <number> is from /list"

    items = ctx.list_store.get_active_items(list_id)
    if position > len(items):
        return f"Item {position} not found or already bought."
    item = items[position - 1]

    try:
        ctx.list_store.mark_bought(item.id, list_id, ctx.user_id)
    except ItemNotAvailableError:
        logger.info(f"user_id={ctx.user_id} lost race for item_id={item.id} on {list_id!r}")
        return f"Item {position} not found or already bought."

    return f"Marked as bought: {item.name}"


@requires_list
async def handle_delete(ctx: CommandContext, list_id: str, args: str) -> str:
    position = _parse_position(args)
    if position is None:
        return "Usage: /delete <number>, where <number> is from /list"

    items = ctx.list_store.get_active_items(list_id)
    if position > len(items):
        return f"Item {position} not found."
    item = items[position - 1]

    try:
        ctx.list_store.delete_item(item.id, list_id)
    except ItemNotFoundError:
        return f"Item {position} not found."

    return f"Deleted: {item.name}"


@requires_list
async def handle_history(ctx: CommandContext, list_id: str, args: str) -> str:
    items = ctx.list_store.get_history(list_id, ctx.history_limit)
    if not items:
        return f"Nothing bought yet in {list_id}."

    lines = [f"🧾 Recently bought in {list_id}:"]
    lines.extend(
        f"{position}. {item.name} ({item.bought_at:%Y-%m-%d})"
        for position, item in enumerate(items, start=1)
    )
    return "\n".join(lines)


async def handle_unknown(ctx: CommandContext, args: str) -> str:
    return UNKNOWN_COMMAND


HANDLERS: dict[Command, Handler] = {
    Command.START: handle_start,
    Command.HELP: handle_help,
    Command.SET: handle_set,
    Command.ADD: handle_add,
    Command.LIST: handle_list,
    Command.BOUGHT: handle_bought,
    Command.DELETE: handle_delete,
    Command.HISTORY: handle_history,
    Command.UNKNOWN: handle_unknown,
}


async def dispatch_command(ctx: CommandContext, text: str) -> str:
    """Parse `text`, run its handler and return the reply."""
    parsed = parse_command(text)
    handler = HANDLERS[parsed.command]

    logger.info(f"Command {parsed.command.name} from user_id={ctx.user_id}")
    if parsed.command is Command.UNKNOWN:
        logger.debug(f"Unknown verb {parsed.verb!r} from user_id={ctx.user_id}")

    try:
        return await handler(ctx, parsed.args)
    except StoreError as e:
        logger.error(f"Command {parsed.command.name} failed ({e.operation}): {e}", exc_info=True)
        return TRY_AGAIN
