"""
Database models: shopping lists, their items, and per-user sessions.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from shopbot.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, the form SQLite stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ShoppingList(Base):
    """A shared list. The ID is chosen by users and doubles as its password."""

    __tablename__ = "lists"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    created_by: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)


class Item(Base):
    """An item on a list. Active while `bought_at` is NULL."""

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    list_id: Mapped[str] = mapped_column(
        String, ForeignKey("lists.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    bought_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    added_by: Mapped[int] = mapped_column(BigInteger, nullable=False)
    bought_by: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        Index("idx_list_id", "list_id"),
        Index("idx_bought_at", "bought_at"),
        Index("idx_added_by", "added_by"),
        # Ids are never reused, so a stale id can't hit a newer item
        {"sqlite_autoincrement": True},
    )

    @property
    def is_active(self) -> bool:
        return self.bought_at is None


class UserSession(Base):
    """Which list a user is currently working with. Never owns the list."""

    __tablename__ = "user_sessions"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    current_list_id: Mapped[Optional[str]] = mapped_column(
        String, ForeignKey("lists.id", ondelete="SET NULL"), nullable=True
    )
    last_updated: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        Index("idx_current_list", "current_list_id"),
    )
