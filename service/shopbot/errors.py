"""
Store-layer errors.

Every error carries the name of the operation that failed so the command
router can log it with context. Only the router turns these into text for
the user.
"""


class StoreError(Exception):
    """Base class for list and session store failures."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation}: {message}")


class StoreUnavailableError(StoreError):
    """Database could not be reached or the transaction failed. Safe to retry."""


class DuplicateListError(StoreError):
    """A list with this ID already exists."""


class ListNotFoundError(StoreError):
    """The referenced list does not exist."""


class ItemNotAvailableError(StoreError):
    """Conditional purchase affected zero rows: item missing, on another list, or already bought."""


class ItemNotFoundError(StoreError):
    """No item with this ID on this list."""
