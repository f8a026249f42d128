"""
Update Source: turns the getUpdates long-poll feed into a stream of updates.

The offset cursor lives on the UpdateSource instance and nothing else touches
it. After the consumer takes an update, the offset moves to update_id + 1, so
the next cycle never asks for that update again. Nothing is checkpointed: an
update handed out just before a crash is lost, not redelivered.

Failed calls, malformed bodies and ok=false replies are logged and the cycle
is retried with the same offset. poll() never returns and never raises.
"""

import asyncio
from typing import AsyncIterator

from pydantic import ValidationError

from .logging_config import bot_logger as logger
from .telegram_api import TelegramClient
from .types import Update


class UpdateSource:
    """Long-polling cursor over the Bot API update feed."""

    def __init__(self, client: TelegramClient, timeout: int = 10, retry_delay: float = 1.0):
        self._client = client
        self._timeout = timeout
        self._retry_delay = retry_delay
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    def _advance(self, update_id: int) -> None:
        # Never move backwards, even if the server misorders a batch
        self._offset = max(self._offset, update_id + 1)

    async def poll(self) -> AsyncIterator[Update]:
        """Yield updates forever, in the order the server sent them."""
        while True:
            batch = await self._client.get_updates(self._offset, self._timeout)

            if batch is None:
                if self._retry_delay > 0:
                    await asyncio.sleep(self._retry_delay)
                continue

            for raw in batch:
                try:
                    update = Update.model_validate(raw)
                except ValidationError:
                    update_id = raw.get("update_id")
                    logger.warning(f"Skipping malformed update update_id={update_id}")
                    if isinstance(update_id, int):
                        self._advance(update_id)
                    continue

                if update.update_id < self._offset:
                    logger.debug(f"Skipping already seen update_id={update.update_id}")
                    continue

                yield update
                self._advance(update.update_id)


async def run_polling(source: UpdateSource, queue: asyncio.Queue) -> None:
    """Producer task: feed updates from `source` into the bounded hand-off queue."""
    logger.info("Starting polling")
    async for update in source.poll():
        await queue.put(update)
