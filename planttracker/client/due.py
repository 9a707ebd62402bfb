"""Watering due-date math for the reminders list. Pure functions, never cached."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from planttracker.api.schemas import SavedPlantResponse as SavedPlant


def _today() -> date:
    return datetime.now(timezone.utc).date()


def days_until_due(plant: SavedPlant, today: date | None = None) -> int | None:
    """Days until the next watering; negative means overdue, None without a frequency."""
    if not plant.watering_frequency_days:
        return None
    baseline = plant.last_watered_at or plant.added_at
    due_date = (baseline + timedelta(days=plant.watering_frequency_days)).date()
    return (due_date - (today or _today())).days


@dataclass(frozen=True)
class ReminderItem:
    """A saved plant seen through its watering schedule on a given day."""

    plant: SavedPlant
    today: date

    @property
    def days_until_due(self) -> int:
        days = days_until_due(self.plant, self.today)
        return days if days is not None else 0

    @property
    def is_overdue(self) -> bool:
        return self.days_until_due < 0

    @property
    def status_text(self) -> str:
        days = self.days_until_due
        if days < 0:
            overdue = -days
            return f"Overdue by {overdue} day{'' if overdue == 1 else 's'}!"
        if days == 0:
            return "Due today!"
        if days == 1:
            return "Due tomorrow"
        return f"Due in {days} days"

    @property
    def frequency_text(self) -> str:
        freq = self.plant.watering_frequency_days
        if not freq:
            return ""
        return f"Every {freq} day{'' if freq == 1 else 's'}"


def build_reminders(plants: list[SavedPlant], today: date | None = None) -> list[ReminderItem]:
    """Plants with an active reminder, most overdue first."""
    today = today or _today()
    items = [
        ReminderItem(plant, today)
        for plant in plants
        if plant.watering_reminder_enabled and plant.watering_frequency_days
    ]
    return sorted(items, key=lambda item: item.days_until_due)
