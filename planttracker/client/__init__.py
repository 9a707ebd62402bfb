"""PlantTracker client — Garden Cache, Reminder Scheduler and their collaborators."""

from planttracker.client.app import GardenApp
from planttracker.client.cache import GardenCache, GardenChange, SavedPlant, reconcile
from planttracker.client.errors import (
    ConflictError,
    GardenError,
    MutationResult,
    NetworkError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from planttracker.client.reminders import ReminderScheduler

__all__ = [
    "GardenApp",
    "GardenCache",
    "GardenChange",
    "SavedPlant",
    "reconcile",
    "ReminderScheduler",
    "GardenError",
    "ConflictError",
    "NotFoundError",
    "UnauthorizedError",
    "NetworkError",
    "ValidationError",
    "MutationResult",
]
