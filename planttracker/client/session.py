"""Client session — holds the bearer credential and fans out logout."""

import inspect
import logging
from typing import Awaitable, Callable

from planttracker.client.preferences import Preferences

logger = logging.getLogger("planttracker.session")

TOKEN_KEY = "auth_token"

LogoutListener = Callable[[], Awaitable[None] | None]


class Session:
    """Stores the bearer token obtained at login/registration.

    Logging out (explicitly or because the server answered 401) clears
    the token and notifies every listener, e.g. the Garden Cache.
    """

    def __init__(self, preferences: Preferences, fallback_token: str = ""):
        self.preferences = preferences
        self._fallback_token = fallback_token
        self._listeners: list[LogoutListener] = []
        self._expiring = False

    @property
    def token(self) -> str | None:
        return self.preferences.get(TOKEN_KEY) or self._fallback_token or None

    @property
    def is_logged_in(self) -> bool:
        return bool(self.token)

    def login(self, token: str) -> None:
        self.preferences.set(TOKEN_KEY, token)

    def on_logout(self, listener: LogoutListener) -> None:
        self._listeners.append(listener)

    async def logout(self) -> None:
        self.preferences.remove(TOKEN_KEY)
        self._fallback_token = ""
        for listener in list(self._listeners):
            try:
                result = listener()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Logout listener failed: {e}", exc_info=True)

    async def expire(self) -> None:
        """Handle a rejected credential once, even if several requests fail together."""
        if self._expiring or not self.is_logged_in:
            return
        self._expiring = True
        try:
            logger.warning("Session expired — clearing local session state")
            await self.logout()
        finally:
            self._expiring = False
