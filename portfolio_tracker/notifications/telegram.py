"""Telegram delivery for portfolio reports and alerts."""
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

API_BASE = "https://api.telegram.org"

# Bot API hard limit for a single message.
MAX_MESSAGE_LENGTH = 4096


class TelegramNotifier:
    """Alerts go through the alert bot with sound; reports through the log bot.

    The log bot defaults to the alert bot when no separate token is set.
    """

    def __init__(self, config: TelegramConfig) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token or config.alert_bot_token
        self.chat_id = config.chat_id
        self.timeout = 15

    def _configured(self, bot_token: str) -> bool:
        if bot_token and self.chat_id:
            return True
        logger.warning("Telegram credentials not configured")
        return False

    async def _deliver(self, bot_token: str, text: str, silent: bool) -> bool:
        if not self._configured(bot_token):
            return False

        if len(text) > MAX_MESSAGE_LENGTH:
            logger.debug("Truncating %d-character Telegram message", len(text))
            text = text[:MAX_MESSAGE_LENGTH]

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                f"{API_BASE}/bot{bot_token}/sendMessage",
                json={
                    "chat_id": self.chat_id,
                    "text": text,
                    "disable_notification": silent,
                },
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                delivered = response.status == 200

        if not delivered:
            logger.error("Telegram sendMessage rejected: HTTP %s", response.status)
        return delivered

    async def send_alert(self, message: str, subject: str = "") -> bool:
        text = f"{subject}\n\n{message}" if subject else message
        delivered = await self._deliver(self.alert_bot_token, text, silent=False)
        if delivered:
            logger.info("Telegram alert sent")
        return delivered

    async def send_log(self, message: str, silent: bool = True) -> bool:
        delivered = await self._deliver(self.log_bot_token, message, silent=silent)
        if delivered:
            logger.debug("Telegram report sent")
        return delivered
