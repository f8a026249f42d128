from .list_store import ListStore
from .session_store import SessionStore

__all__ = ["ListStore", "SessionStore"]
