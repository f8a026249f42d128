"""
Shared fixtures: in-memory database, stores and a deterministic clock.
"""

from datetime import datetime, timedelta

import pytest

from shopbot.database import create_db_engine, init_db, make_session_factory
from shopbot.services import ListStore, SessionStore
from shopbot.telegram_bot.handlers import CommandContext


class FakeClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start: datetime = datetime(2026, 3, 14, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def list_store(session_factory, clock):
    return ListStore(session_factory, clock=clock)


@pytest.fixture
def session_store(session_factory, clock):
    return SessionStore(session_factory, clock=clock)


@pytest.fixture
def make_ctx(list_store, session_store):
    def _make(user_id: int = 100, history_limit: int = 10) -> CommandContext:
        return CommandContext(
            user_id=user_id,
            list_store=list_store,
            session_store=session_store,
            history_limit=history_limit,
        )
    return _make
