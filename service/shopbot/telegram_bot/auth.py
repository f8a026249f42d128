"""
Authorization gate: static allow-list of Telegram user IDs.
"""

from collections.abc import Collection


def is_authorized(user_id: int, allow_list: Collection[int]) -> bool:
    """
    Check a sender against the allow-list.

    An empty allow-list means open mode: everyone is allowed.
    """
    if not allow_list:
        return True
    return user_id in allow_list
