"""PlantTracker Reminder Scheduler — one daily APScheduler alarm per plant."""

import asyncio
import concurrent.futures
import logging
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from planttracker.api.schemas import SavedPlantResponse as SavedPlant
from planttracker.client.notification import NotificationService
from planttracker.client.preferences import Preferences
from planttracker.core.config import Settings

logger = logging.getLogger("planttracker.reminders")

PREF_HOUR = "reminder_hour"
PREF_MINUTE = "reminder_minute"

REMINDER_TITLE = "🪴 Time to water!"


def job_id(plant_id: int) -> str:
    """Alarm id for a plant; one alarm per plant, so cancel/reschedule need no index."""
    return f"watering-{plant_id}"


def next_fire_time(now: datetime, time_of_day: time) -> datetime:
    """Today at time_of_day if that is still ahead, otherwise tomorrow."""
    today_at = now.replace(
        hour=time_of_day.hour, minute=time_of_day.minute, second=0, microsecond=0
    )
    return today_at if today_at > now else today_at + timedelta(days=1)


class ReminderScheduler:
    """Keeps a repeating daily notification armed for every plant with a reminder.

    All reminders fire at one process-wide time of day, stored in
    preferences so it survives restarts.
    """

    def __init__(
        self,
        notification: NotificationService,
        preferences: Preferences,
        settings: Settings,
        scheduler: BackgroundScheduler | None = None,
    ):
        self.notification = notification
        self.preferences = preferences
        self.settings = settings
        self.tz = ZoneInfo(settings.timezone)
        self.scheduler = scheduler or BackgroundScheduler(timezone=self.tz)
        self._loop: asyncio.AbstractEventLoop | None = None
        # plant_id -> (label, frequency_days, time_of_day) of the armed alarm
        self._armed: dict[int, tuple[str, int, time]] = {}

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self, loop: asyncio.AbstractEventLoop | None = None):
        """Start firing alarms; async sends are bridged onto ``loop`` when given."""
        self._loop = loop
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Reminder scheduler started")

    def stop(self):
        """Gracefully stop the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Reminder scheduler stopped")

    # ── Default time of day ───────────────────────────────────────────────────

    def get_default_time(self) -> time:
        hour = self.preferences.get(PREF_HOUR, self.settings.reminder_default_hour)
        minute = self.preferences.get(PREF_MINUTE, self.settings.reminder_default_minute)
        try:
            return time(int(hour), int(minute))
        except (TypeError, ValueError):
            logger.warning(f"Invalid stored reminder time {hour!r}:{minute!r} — using default")
            return time(self.settings.reminder_default_hour, self.settings.reminder_default_minute)

    def set_default_time(self, time_of_day: time) -> None:
        self.preferences.set(PREF_HOUR, time_of_day.hour)
        self.preferences.set(PREF_MINUTE, time_of_day.minute)

    # ── Alarms ────────────────────────────────────────────────────────────────

    async def schedule(
        self,
        plant_id: int,
        plant_label: str,
        frequency_days: int,
        time_of_day: time | None = None,
        now: datetime | None = None,
    ) -> None:
        """(Re)arm the daily reminder for a plant."""
        self.cancel(plant_id)

        if not await self.notification.request_permission():
            return

        time_of_day = time_of_day or self.get_default_time()
        fire_at = next_fire_time(now or datetime.now(self.tz), time_of_day)
        self.scheduler.add_job(
            self._fire,
            IntervalTrigger(days=1, start_date=fire_at, timezone=self.tz),
            args=[plant_id, plant_label],
            id=job_id(plant_id),
            name=f"Water {plant_label}",
            replace_existing=True,
        )
        self._armed[plant_id] = (plant_label, frequency_days, time_of_day)
        logger.info(f"Reminder for {plant_label!r} armed daily from {fire_at.isoformat()}")

    def cancel(self, plant_id: int) -> None:
        """Remove the plant's alarm if one is armed."""
        self._armed.pop(plant_id, None)
        try:
            self.scheduler.remove_job(job_id(plant_id))
            logger.info(f"Reminder for plant {plant_id} cancelled")
        except JobLookupError:
            pass

    def is_armed(self, plant_id: int) -> bool:
        return self.scheduler.get_job(job_id(plant_id)) is not None

    async def sync(self, plants: list[SavedPlant]) -> None:
        """Arm reminders for eligible plants and cancel the rest."""
        time_of_day = self.get_default_time()
        wanted = {
            p.id: (p.display_name, p.watering_frequency_days, time_of_day)
            for p in plants
            if p.watering_reminder_enabled and p.watering_frequency_days
        }
        for plant_id in list(self._armed):
            if plant_id not in wanted:
                self.cancel(plant_id)
        for plant_id, armed in wanted.items():
            if self._armed.get(plant_id) != armed or not self.is_armed(plant_id):
                label, frequency_days, _ = armed
                await self.schedule(plant_id, label, frequency_days, time_of_day)

    # ── Firing ────────────────────────────────────────────────────────────────

    def _fire(self, plant_id: int, plant_label: str):
        """Deliver a reminder from the scheduler thread."""
        coro = self.notification.send(REMINDER_TITLE, f"{plant_label} needs watering today.")
        try:
            if self._loop and self._loop.is_running():
                future = asyncio.run_coroutine_threadsafe(coro, self._loop)
                future.add_done_callback(lambda f: self._report(plant_id, f))
            else:
                asyncio.run(coro)
        except Exception as e:
            logger.error(f"Reminder for plant {plant_id} failed: {e}", exc_info=True)

    def _report(self, plant_id: int, future: concurrent.futures.Future):
        if future.cancelled():
            logger.warning(f"Reminder for plant {plant_id} was cancelled before delivery")
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Reminder for plant {plant_id} failed: {error}", exc_info=error)
