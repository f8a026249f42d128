"""
Main bot loop.

One background task long-polls Telegram and pushes updates into a bounded
queue; a single consumer takes them one at a time and handles each to
completion before taking the next. Commands are therefore never processed
concurrently, which keeps shared list state consistent without locks, at the
price of one slow command delaying everyone else's.
"""

import asyncio
from collections.abc import Collection

from shopbot.services import ListStore, SessionStore

from .auth import is_authorized
from .handlers import CommandContext, dispatch_command
from .logging_config import bot_logger as logger
from .polling import UpdateSource, run_polling
from .telegram_api import TelegramClient
from .types import Update


class ShoppingBot:
    """Routes text updates to command handlers and sends the replies."""

    def __init__(
        self,
        client: TelegramClient,
        list_store: ListStore,
        session_store: SessionStore,
        allowed_users: Collection[int] = (),
        history_limit: int = 10,
    ):
        self.client = client
        self.list_store = list_store
        self.session_store = session_store
        self.allowed_users = frozenset(allowed_users)
        self.history_limit = history_limit

    async def handle_update(self, update: Update) -> None:
        """
        Handle one update end to end.

        Unauthorized senders get no reply at all, so they can't tell the bot
        exists. A failed reply is logged and not retried.
        """
        message = update.message
        if message is None or message.text is None or message.from_user is None:
            logger.debug(f"Ignoring update_id={update.update_id}: no text message")
            return

        sender = message.from_user
        if not is_authorized(sender.id, self.allowed_users):
            logger.warning(
                f"Unauthorized access attempt: user_id={sender.id}, username={sender.username}"
            )
            return

        logger.info(
            f"Received message from user_id={sender.id}, username={sender.username}, "
            f"text_len={len(message.text)}"
        )

        ctx = CommandContext(
            user_id=sender.id,
            list_store=self.list_store,
            session_store=self.session_store,
            history_limit=self.history_limit,
        )
        reply = await dispatch_command(ctx, message.text)

        sent = await self.client.send_message(message.chat.id, reply)
        if not sent:
            logger.warning(f"Reply to chat_id={message.chat.id} was not delivered")

    async def consume(self, queue: asyncio.Queue) -> None:
        """Consumer loop: handle queued updates one at a time, forever."""
        while True:
            update = await queue.get()
            try:
                await self.handle_update(update)
            except Exception as e:
                logger.error(f"Failed to process update_id={update.update_id}: {e}", exc_info=True)
            finally:
                queue.task_done()

    async def run(self, source: UpdateSource, queue_size: int = 1) -> None:
        """
        Poll and handle updates until cancelled.

        Neither task is supposed to finish. If one does, the other is stopped
        and the failure is raised to the caller instead of leaving the bot idle.
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        producer = asyncio.create_task(run_polling(source, queue))
        consumer = asyncio.create_task(self.consume(queue))
        try:
            done, _ = await asyncio.wait({producer, consumer}, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if task.exception() is not None:
                    logger.error(f"Bot task failed: {task.exception()!r}")
                    raise task.exception()
            raise RuntimeError("Bot task stopped unexpectedly")
        finally:
            for task in (producer, consumer):
                task.cancel()
            await asyncio.gather(producer, consumer, return_exceptions=True)
            logger.info("Bot stopped")
