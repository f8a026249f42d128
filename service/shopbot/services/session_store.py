"""
Session Store: which list each user is currently working with.
"""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from shopbot.database import transaction
from shopbot.errors import ListNotFoundError
from shopbot.models import UserSession, utcnow


class SessionStore:
    def __init__(self, session_factory: sessionmaker, clock: Callable[[], datetime] = utcnow):
        self._session_factory = session_factory
        self._clock = clock

    def set_current_list(self, user_id: int, list_id: str) -> None:
        """Bind user to list, replacing any previous binding (last writer wins)."""
        with transaction(self._session_factory, "set_current_list") as session:
            user_session = session.get(UserSession, user_id)
            if user_session is None:
                user_session = UserSession(user_id=user_id)
                session.add(user_session)
            user_session.current_list_id = list_id
            user_session.last_updated = self._clock()
            try:
                session.flush()
            except IntegrityError as e:
                raise ListNotFoundError("set_current_list", f"list {list_id!r} not found") from e

    def get_current_list(self, user_id: int) -> Optional[str]:
        """
        Return the user's current list ID.

        None when the user never selected a list and when the selected list
        has since been deleted; callers treat both the same.
        """
        with transaction(self._session_factory, "get_current_list") as session:
            user_session = session.get(UserSession, user_id)
            if user_session is None:
                return None
            return user_session.current_list_id
