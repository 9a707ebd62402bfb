"""PlantTracker Notification Service — deliver watering reminders via Telegram/log."""

import logging

import httpx

from planttracker.core.config import Settings

logger = logging.getLogger("planttracker.notification")

CHANNEL_ID = "plant_watering"


class NotificationService:
    """Local notification delivery for watering reminders.

    Permission is the user's opt-in (``notification_enabled``); it is asked
    for once per process and remembered. Telegram is used when configured,
    otherwise reminders only reach the log.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._permission: bool | None = None
        self._transport = transport

    @property
    def permission_granted(self) -> bool:
        return bool(self._permission)

    async def request_permission(self) -> bool:
        """Return True if reminders may be delivered."""
        if self._permission is None:
            self._permission = self.settings.notification_enabled
            if not self._permission:
                logger.info("Notification permission denied — reminders will not be armed")
        return self._permission

    async def send(self, title: str, message: str) -> bool:
        """Deliver one notification. Returns True if it reached at least one channel."""
        if not self.permission_granted:
            logger.debug(f"[NOTIFICATION suppressed] {title}: {message}")
            return False

        logger.info(f"[NOTIFICATION {CHANNEL_ID}] {title}: {message}")
        if self.settings.telegram_bot_token and self.settings.telegram_chat_id:
            return await self.send_telegram(f"{title}\n\n{message}")
        return True

    async def send_telegram(self, message: str) -> bool:
        """Send via Telegram Bot API."""
        try:
            url = f"https://api.telegram.org/bot{self.settings.telegram_bot_token}/sendMessage"
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                resp = await client.post(url, json={
                    "chat_id": self.settings.telegram_chat_id,
                    "text": message,
                })
                resp.raise_for_status()
                logger.info("Telegram notification sent")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Telegram notification failed: {e}")
            return False
