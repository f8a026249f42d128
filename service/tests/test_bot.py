"""
Tests for update routing, the authorization gate and the consumer loop.
"""

import asyncio

import pytest

from shopbot.telegram_bot.bot import ShoppingBot
from shopbot.telegram_bot.polling import UpdateSource
from shopbot.telegram_bot.types import Update


class FakeTelegram:
    """Records replies; serves scripted getUpdates batches then blocks."""

    def __init__(self, batches=(), deliver: bool = True):
        self.batches = list(batches)
        self.sent = []
        self.deliver = deliver
        self.expected_replies = None
        self.done = asyncio.Event()

    async def get_updates(self, offset, timeout):
        if not self.batches:
            await asyncio.Event().wait()
        return self.batches.pop(0)

    async def send_message(self, chat_id, text):
        self.sent.append((chat_id, text))
        if self.expected_replies is not None and len(self.sent) >= self.expected_replies:
            self.done.set()
        return self.deliver


def text_update(update_id: int, user_id: int, text: str, chat_id: int = None) -> dict:
    return {
        "update_id": update_id,
        "message": {
            "message_id": update_id,
            "date": 1700000000,
            "chat": {"id": chat_id if chat_id is not None else user_id, "type": "private"},
            "from": {"id": user_id, "is_bot": False, "first_name": "Test", "username": f"user{user_id}"},
            "text": text,
        },
    }


@pytest.fixture
def telegram():
    return FakeTelegram()


@pytest.fixture
def make_bot(telegram, list_store, session_store):
    def _make(allowed_users=()):
        return ShoppingBot(
            client=telegram,
            list_store=list_store,
            session_store=session_store,
            allowed_users=allowed_users,
        )
    return _make


class TestHandleUpdate:
    """Tests for ShoppingBot.handle_update."""

    @pytest.mark.anyio
    async def test_reply_goes_to_origin_chat(self, make_bot, telegram):
        bot = make_bot()
        update = Update.model_validate(text_update(1, user_id=10, text="/set groceries", chat_id=-500))

        await bot.handle_update(update)

        assert telegram.sent == [(-500, "Selected list: groceries")]

    @pytest.mark.anyio
    async def test_unauthorized_sender_gets_no_reply(self, make_bot, telegram, session_store):
        bot = make_bot(allowed_users=[10])
        update = Update.model_validate(text_update(1, user_id=66, text="/set groceries"))

        await bot.handle_update(update)

        assert telegram.sent == []
        assert session_store.get_current_list(66) is None

    @pytest.mark.anyio
    async def test_authorized_sender_served(self, make_bot, telegram):
        bot = make_bot(allowed_users=[10, 11])
        await bot.handle_update(Update.model_validate(text_update(1, user_id=11, text="/help")))
        assert len(telegram.sent) == 1

    @pytest.mark.anyio
    async def test_session_follows_user_not_chat(self, make_bot, telegram):
        """Same user in a group and in private sees the same current list."""
        bot = make_bot()
        await bot.handle_update(Update.model_validate(text_update(1, 10, "/set family", chat_id=-1)))
        await bot.handle_update(Update.model_validate(text_update(2, 10, "/add tea", chat_id=10)))

        assert telegram.sent[-1] == (10, "Added: tea")

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "raw",
        [
            {"update_id": 1},
            {"update_id": 1, "edited_message": {"message_id": 1}},
            {"update_id": 1, "message": {"message_id": 1, "chat": {"id": 5}, "from": {"id": 5}}},
            {"update_id": 1, "message": {"message_id": 1, "chat": {"id": 5}, "text": "/list"}},
        ],
    )
    async def test_non_text_updates_ignored(self, make_bot, telegram, raw):
        bot = make_bot()
        await bot.handle_update(Update.model_validate(raw))
        assert telegram.sent == []

    @pytest.mark.anyio
    async def test_failed_delivery_is_not_retried(self, list_store, session_store):
        telegram = FakeTelegram(deliver=False)
        bot = ShoppingBot(telegram, list_store, session_store)

        await bot.handle_update(Update.model_validate(text_update(1, 10, "/set groceries")))

        assert len(telegram.sent) == 1
        # State change stands even though the reply was lost
        assert session_store.get_current_list(10) == "groceries"


class TestConsumer:
    """Tests for the single-consumer queue loop."""

    @pytest.mark.anyio
    async def test_survives_handler_crash(self, make_bot, telegram, monkeypatch):
        bot = make_bot()
        calls = []

        async def flaky(update):
            calls.append(update.update_id)
            if update.update_id == 1:
                raise RuntimeError("boom")

        monkeypatch.setattr(bot, "handle_update", flaky)

        queue = asyncio.Queue(maxsize=1)
        consumer = asyncio.create_task(bot.consume(queue))
        try:
            for update_id in (1, 2):
                await queue.put(Update(update_id=update_id))
            await asyncio.wait_for(queue.join(), timeout=1)
        finally:
            consumer.cancel()
            with pytest.raises(asyncio.CancelledError):
                await consumer

        assert calls == [1, 2]

    @pytest.mark.anyio
    async def test_run_processes_feed_in_order(self, list_store, session_store):
        telegram = FakeTelegram(batches=[
            [text_update(1, 10, "/set groceries"), text_update(2, 10, "/add milk")],
            [],
            [text_update(3, 20, "/set groceries"), text_update(4, 20, "/list")],
            [text_update(5, 10, "/bought 1"), text_update(6, 20, "/bought 1")],
        ])
        telegram.expected_replies = 6
        bot = ShoppingBot(telegram, list_store, session_store)
        source = UpdateSource(telegram, retry_delay=0)

        task = asyncio.create_task(bot.run(source, queue_size=1))
        try:
            await asyncio.wait_for(telegram.done.wait(), timeout=2)
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        replies = [text for _, text in telegram.sent]
        assert replies[:3] == ["Selected list: groceries", "Added: milk", "Selected list: groceries"]
        assert "1. milk" in replies[3]
        assert replies[4:] == ["Marked as bought: milk", "Item 1 not found or already bought."]
        assert len(list_store.get_history("groceries", 10)) == 1

    @pytest.mark.anyio
    async def test_run_stops_when_polling_dies(self, list_store, session_store):
        telegram = FakeTelegram()

        async def broken_feed(offset, timeout):
            raise RuntimeError("feed broke")

        telegram.get_updates = broken_feed
        bot = ShoppingBot(telegram, list_store, session_store)
        source = UpdateSource(telegram, retry_delay=0)

        with pytest.raises(RuntimeError, match="feed broke"):
            await asyncio.wait_for(bot.run(source), timeout=1)
        assert telegram.sent == []
