"""
Telegram Bot API adapter for outbound messages
"""
import json
import logging
import httpx
from typing import Dict, Optional, Any
from academy_support.core.config import settings
from academy_support.core.errors import ChannelDeliveryError

logger = logging.getLogger(__name__)


class TelegramClient:
    """Client for the Telegram Bot API"""

    def __init__(
        self,
        bot_token: Optional[str] = None,
        api_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        token = settings.TELEGRAM_BOT_TOKEN if bot_token is None else bot_token
        self.configured = bool(token)
        self.base_url = f"{(api_url or settings.TELEGRAM_API_URL).rstrip('/')}/bot{token}"
        self.client = httpx.AsyncClient(timeout=settings.TELEGRAM_TIMEOUT_SECONDS, transport=transport)

    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_markup: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Send an HTML-formatted message to a chat

        Returns the Telegram "result" object (contains message_id).

        Raises:
            ChannelDeliveryError: when the bot is not configured, the request
                fails or Telegram answers ok=false
        """
        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML"
        }
        if reply_markup:
            payload["reply_markup"] = json.dumps(reply_markup)

        logger.info("Sending message to chat %s: %s", chat_id, text[:100].replace("\n", " "))
        return await self._call("sendMessage", payload)

    async def answer_callback_query(self, callback_query_id: str, text: Optional[str] = None) -> Dict[str, Any]:
        """Acknowledge an inline button press"""
        payload = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        return await self._call("answerCallbackQuery", payload)

    async def _call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.configured:
            raise ChannelDeliveryError("Telegram bot token is not configured")

        try:
            response = await self.client.post(f"{self.base_url}/{method}", json=payload)
            data = response.json()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ChannelDeliveryError(f"Telegram {method} request failed: {e.__class__.__name__}") from e
        except ValueError as e:
            raise ChannelDeliveryError(f"Telegram {method} returned invalid JSON") from e

        if not data.get("ok"):
            logger.error("Telegram API error on %s: %s", method, data.get("description"))
            raise ChannelDeliveryError(
                f"Telegram {method} failed",
                details={"error_code": data.get("error_code"), "description": data.get("description")}
            )
        return data.get("result") or {}

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()


# Singleton instance
_telegram_client: Optional[TelegramClient] = None


def get_telegram_client() -> TelegramClient:
    """Get singleton Telegram client instance"""
    global _telegram_client
    if _telegram_client is None:
        _telegram_client = TelegramClient()
    return _telegram_client
