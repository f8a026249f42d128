"""
Database engine and session management.

Uses SQLAlchemy ORM over SQLite. Foreign keys are switched on for every
connection so list deletion cascades to items and clears user sessions.
"""

import os
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shopbot.errors import StoreUnavailableError


class Base(DeclarativeBase):
    pass


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for `url`.

    In-memory SQLite gets a single shared connection, otherwise every
    session would see its own empty database.
    """
    kwargs = {"echo": echo}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_url(url):
            kwargs["poolclass"] = StaticPool
        else:
            # Create database directory if it doesn't exist
            db_dir = os.path.dirname(url.replace("sqlite:///", ""))
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir, exist_ok=True)

    engine = create_engine(url, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def init_db(engine: Engine) -> None:
    """Create tables and indexes if they don't exist."""
    # Import models to ensure they're registered
    from shopbot import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@lru_cache()
def get_engine() -> Engine:
    from shopbot.config import get_settings

    settings = get_settings()
    return create_db_engine(settings.database_url)


@contextmanager
def transaction(session_factory: sessionmaker, operation: str) -> Iterator[Session]:
    """
    Run one store operation in its own transaction.

    Commits on success, rolls back on any exception. Database failures are
    wrapped as StoreUnavailableError tagged with `operation`; store errors
    raised inside the block pass through untouched.
    """
    try:
        with session_factory.begin() as session:
            yield session
    except SQLAlchemyError as e:
        raise StoreUnavailableError(operation, str(e)) from e
