"""
List Store: shopping lists and their items.

Lists are keyed by a user-chosen ID. Items belong to exactly one list and
move one way, active -> bought. Each operation is a single short transaction;
concurrent writers are serialized by the database, not by this process.

Positional numbering shown to users comes from get_active_items() order:
position 1 is the most recently added item.
"""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from shopbot.database import transaction
from shopbot.errors import (
    DuplicateListError,
    ItemNotAvailableError,
    ItemNotFoundError,
    ListNotFoundError,
)
from shopbot.models import Item, ShoppingList, utcnow


class ListStore:
    """Persistent lists and items."""

    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime] = utcnow):
        self._session_factory = session_factory
        self._clock = clock

    # === Lists ===

    def create_list(self, list_id: str, creator: int) -> ShoppingList:
        """Create a list. Raises DuplicateListError if the ID is taken."""
        with transaction(self._session_factory, "create_list") as session:
            shopping_list = ShoppingList(id=list_id, created_by=creator, created_at=self._clock())
            session.add(shopping_list)
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateListError("create_list", f"list {list_id!r} already exists") from e
            return shopping_list

    def ensure_list(self, list_id: str, creator: int) -> bool:
        """
        Create the list if it is absent.

        Returns True if this call created it. A list created concurrently by
        someone else counts as already existing, not as an error.
        """
        if self.list_exists(list_id):
            return False
        try:
            self.create_list(list_id, creator)
        except DuplicateListError:
            return False
        return True

    def list_exists(self, list_id: str) -> bool:
        with transaction(self._session_factory, "list_exists") as session:
            count = session.scalar(
                select(func.count()).select_from(ShoppingList).where(ShoppingList.id == list_id)
            )
            return count > 0

    def get_list(self, list_id: str) -> Optional[ShoppingList]:
        with transaction(self._session_factory, "get_list") as session:
            return session.get(ShoppingList, list_id)

    def delete_list(self, list_id: str) -> None:
        """Delete a list. Its items go with it and sessions pointing at it are cleared."""
        with transaction(self._session_factory, "delete_list") as session:
            result = session.execute(delete(ShoppingList).where(ShoppingList.id == list_id))
            if result.rowcount == 0:
                raise ListNotFoundError("delete_list", f"list {list_id!r} not found")

    # === Items ===

    def add_item(self, list_id: str, name: str, added_by: int) -> Item:
        """Append a new active item. Duplicate names are kept as separate items."""
        with transaction(self._session_factory, "add_item") as session:
            item = Item(list_id=list_id, name=name, added_by=added_by, created_at=self._clock())
            session.add(item)
            try:
                session.flush()
            except IntegrityError as e:
                raise ListNotFoundError("add_item", f"list {list_id!r} not found") from e
            return item

    def get_active_items(self, list_id: str) -> list[Item]:
        """Unbought items, most recently added first."""
        with transaction(self._session_factory, "get_active_items") as session:
            query = (
                select(Item)
                .where(Item.list_id == list_id, Item.bought_at.is_(None))
                .order_by(Item.created_at.desc(), Item.id.desc())
            )
            return list(session.scalars(query))

    def mark_bought(self, item_id: int, list_id: str, bought_by: int) -> None:
        """
        Mark an active item of `list_id` as bought.

        Conditional update: raises ItemNotAvailableError when nothing matched,
        whether the item is missing, on another list, or already bought.
        The purchase time is taken here, never from the caller.
        """
        with transaction(self._session_factory, "mark_bought") as session:
            result = session.execute(
                update(Item)
                .where(Item.id == item_id, Item.list_id == list_id, Item.bought_at.is_(None))
                .values(bought_at=self._clock(), bought_by=bought_by)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise ItemNotAvailableError(
                    "mark_bought", f"item {item_id} not found on {list_id!r} or already bought"
                )

    def get_history(self, list_id: str, limit: int) -> list[Item]:
        """Bought items, most recently bought first, at most `limit` of them."""
        if limit <= 0:
            return []
        with transaction(self._session_factory, "get_history") as session:
            query = (
                select(Item)
                .where(Item.list_id == list_id, Item.bought_at.is_not(None))
                .order_by(Item.bought_at.desc(), Item.id.desc())
                .limit(limit)
            )
            return list(session.scalars(query))

    def delete_item(self, item_id: int, list_id: str) -> None:
        """Delete an item (active or bought) from `list_id`."""
        with transaction(self._session_factory, "delete_item") as session:
            result = session.execute(
                delete(Item)
                .where(Item.id == item_id, Item.list_id == list_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise ItemNotFoundError("delete_item", f"item {item_id} not found on {list_id!r}")
