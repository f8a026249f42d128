"""
Tests for the allow-list authorization gate.
"""

from shopbot.telegram_bot.auth import is_authorized


class TestIsAuthorized:
    """Tests for is_authorized function."""

    def test_empty_allow_list_allows_everyone(self):
        """Open mode: no allow-list configured."""
        for user_id in (1, 42, 987654321, -5):
            assert is_authorized(user_id, frozenset()) is True

    def test_listed_users_allowed(self):
        allow_list = frozenset({10, 20, 30})
        for user_id in allow_list:
            assert is_authorized(user_id, allow_list) is True

    def test_unlisted_users_rejected(self):
        allow_list = frozenset({10, 20, 30})
        for user_id in (0, 11, 21, 300, -10):
            assert is_authorized(user_id, allow_list) is False

    def test_accepts_plain_list(self):
        """Any collection works, not only sets."""
        assert is_authorized(7, [7]) is True
        assert is_authorized(8, [7]) is False
