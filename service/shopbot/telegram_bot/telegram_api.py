"""
Telegram Bot API client.

Long-polls getUpdates and sends text replies back to chats.
"""

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .logging_config import bot_logger as logger
from .types import GetUpdatesResponse

DEFAULT_API_BASE = "https://api.telegram.org"

# Added on top of the long-poll wait so the HTTP call outlives the server-side wait
REQUEST_TIMEOUT_MARGIN = 10.0


class TelegramAPIError(RuntimeError):
    """Raised when the Bot API rejects a call or returns something unreadable."""


class TelegramClient:
    """
    Minimal Bot API client.

    get_updates() and send_message() never raise: failures are logged and
    reported through the return value. get_me() raises, since a bad token
    should stop the bot before it starts.
    """

    def __init__(
        self,
        token: str,
        api_base: str = DEFAULT_API_BASE,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._token = token
        self._api_base = api_base.rstrip("/")
        self.client = http_client or httpx.AsyncClient(timeout=30.0)

    def _method_url(self, method: str) -> str:
        # Never log this URL, it contains the token
        return f"{self._api_base}/bot{self._token}/{method}"

    async def get_me(self) -> dict[str, Any]:
        """Check the token. Returns the bot's own user record."""
        try:
            response = await self.client.get(self._method_url("getMe"))
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise TelegramAPIError(f"getMe failed: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TelegramAPIError(f"getMe failed: {type(e).__name__}") from e
        except ValueError as e:
            raise TelegramAPIError("getMe failed: invalid JSON") from e

        if not isinstance(payload, dict) or payload.get("ok") is not True:
            raise TelegramAPIError("getMe failed: API returned ok=false")

        result = payload.get("result")
        if not isinstance(result, dict):
            raise TelegramAPIError("getMe failed: missing result")
        return result

    async def get_updates(self, offset: int, timeout: int) -> Optional[list[dict[str, Any]]]:
        """
        One long-poll cycle.

        Returns the raw updates (possibly empty), or None if the call failed,
        the body was malformed, or the API reported ok=false.
        """
        logger.debug(f"getUpdates offset={offset} timeout={timeout}")
        try:
            response = await self.client.get(
                self._method_url("getUpdates"),
                params={"offset": offset, "timeout": timeout},
                timeout=timeout + REQUEST_TIMEOUT_MARGIN,
            )
        except httpx.HTTPError as e:
            logger.warning(f"getUpdates request failed: {type(e).__name__}")
            return None

        try:
            envelope = GetUpdatesResponse.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning(
                f"getUpdates returned malformed body (HTTP {response.status_code}): "
                f"{e.error_count()} validation error(s)"
            )
            return None

        if not envelope.ok:
            logger.warning(f"getUpdates returned ok=false: {envelope.description}")
            return None

        return envelope.result

    async def send_message(self, chat_id: int, text: str) -> bool:
        """Send a text message. Returns False (and logs) on any failure."""
        try:
            response = await self.client.post(
                self._method_url("sendMessage"),
                json={"chat_id": chat_id, "text": text},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"sendMessage to chat_id={chat_id} failed: HTTP {e.response.status_code}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"sendMessage to chat_id={chat_id} failed: {type(e).__name__}")
            return False
        except ValueError:
            logger.error(f"sendMessage to chat_id={chat_id} returned invalid JSON")
            return False

        if not isinstance(payload, dict) or payload.get("ok") is not True:
            logger.error(f"sendMessage to chat_id={chat_id} returned ok=false")
            return False

        logger.debug(f"Message sent to chat_id={chat_id}")
        return True

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
