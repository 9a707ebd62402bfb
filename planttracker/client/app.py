"""PlantTracker client orchestrator — wires cache, reminders and session together."""

import asyncio
import logging

import httpx

from planttracker.client.cache import GardenCache, GardenChange
from planttracker.client.due import ReminderItem, build_reminders
from planttracker.client.notification import NotificationService
from planttracker.client.photos import PhotoGallery
from planttracker.client.preferences import Preferences
from planttracker.client.reminders import ReminderScheduler
from planttracker.client.remote import RemoteStore
from planttracker.client.session import Session
from planttracker.core.config import Settings

logger = logging.getLogger("planttracker.app")


class GardenApp:
    """Client-side composition root.

    Data flows Presentation -> GardenCache -> RemoteStore; every cache change
    is pushed to the ReminderScheduler, which re-arms or cancels alarms.
    Logging out (or a 401) clears the session, the cache and all alarms.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self.preferences = Preferences(settings.preferences_path)
        self.session = Session(self.preferences, fallback_token=settings.api_token)
        self.remote = RemoteStore(settings, self.session, transport=transport)
        self.cache = GardenCache(self.remote, settings.garden_cache_path, settings.max_photo_bytes)
        self.photos = PhotoGallery(self.remote, settings.max_photo_bytes)
        self.notification = NotificationService(settings)
        self.reminders = ReminderScheduler(self.notification, self.preferences, settings)

        self.cache.subscribe(self._on_garden_change)
        self.session.on_logout(self._on_logout)
        logger.info("PlantTracker client initialized")

    async def start(self) -> None:
        """Load the disk snapshot for instant first paint and start the alarm loop."""
        self.cache.load_snapshot()
        self.reminders.start(loop=asyncio.get_running_loop())
        if self.cache.has_snapshot:
            await self.reminders.sync(self.cache.peek())

    async def reminder_items(self) -> list[ReminderItem]:
        return build_reminders(await self.cache.get_garden())

    async def logout(self) -> None:
        await self.session.logout()

    async def aclose(self) -> None:
        await self.cache.wait_idle()
        self.reminders.stop()
        await self.remote.aclose()

    async def _on_garden_change(self, change: GardenChange) -> None:
        await self.reminders.sync(change.plants)

    async def _on_logout(self) -> None:
        await self.cache.invalidate()
        await self.reminders.sync([])
