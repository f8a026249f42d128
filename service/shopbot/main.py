"""
Entry point: load settings, open the database, check the token, then poll.

Any failure before polling starts is fatal and exits with status 1.
"""

import asyncio
import sys

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from shopbot.config import get_settings
from shopbot.database import get_engine, init_db, make_session_factory
from shopbot.services import ListStore, SessionStore
from shopbot.telegram_bot import ShoppingBot, TelegramAPIError, TelegramClient, UpdateSource
from shopbot.telegram_bot.logging_config import bot_logger as logger, setup_logging


async def run_bot() -> int:
    try:
        settings = get_settings()
    except ValidationError as e:
        logger.critical(f"Invalid configuration (is TG_TOKEN set?): {e}")
        return 1

    setup_logging(debug=settings.debug)
    logger.info(f"[STARTUP] Opening database at {settings.db_path}")

    try:
        engine = get_engine()
        init_db(engine)
    except (SQLAlchemyError, OSError) as e:
        logger.critical(f"Database unavailable: {e}")
        return 1

    session_factory = make_session_factory(engine)
    client = TelegramClient(settings.telegram_bot_token, api_base=settings.telegram_api_base)

    try:
        # Check that the token works before serving anything
        try:
            me = await client.get_me()
        except TelegramAPIError as e:
            logger.critical(f"Unable to query Telegram API: {e}")
            return 1
        logger.info(f"[STARTUP] Logged in as @{me.get('username')}")

        allowed_users = settings.allowed_user_ids
        if allowed_users:
            logger.info(f"[STARTUP] Allow-list active: {len(allowed_users)} user(s)")
        else:
            logger.info("[STARTUP] ALLOWED_USERS is empty, every user is allowed")

        bot = ShoppingBot(
            client=client,
            list_store=ListStore(session_factory),
            session_store=SessionStore(session_factory),
            allowed_users=allowed_users,
            history_limit=settings.history_limit,
        )
        source = UpdateSource(
            client,
            timeout=settings.poll_timeout,
            retry_delay=settings.poll_retry_delay,
        )
        try:
            await bot.run(source, queue_size=settings.update_queue_size)
        except Exception as e:
            logger.critical(f"Bot crashed: {e!r}")
            return 1
    finally:
        await client.close()
        engine.dispose()

    return 0


def main() -> None:
    try:
        sys.exit(asyncio.run(run_bot()))
    except KeyboardInterrupt:
        logger.info("[SHUTDOWN] Interrupted")


if __name__ == "__main__":
    main()
