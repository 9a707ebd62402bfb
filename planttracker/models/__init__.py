"""Models package — imports all models so metadata sees every table."""

from planttracker.models.base import Base, create_session_factory
from planttracker.models.user import User
from planttracker.models.garden import PlantPhoto, SavedPlant
from planttracker.models.zone import ZoneCache

__all__ = ["Base", "create_session_factory", "User", "SavedPlant", "PlantPhoto", "ZoneCache"]
