"""PlantTracker Store — database operations for the Remote Store."""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from planttracker.models.garden import PlantPhoto, SavedPlant
from planttracker.models.user import User
from planttracker.models.zone import ZoneCache

logger = logging.getLogger("planttracker.store")

# Always editable, regardless of catalog backing
COMMON_FIELDS = {
    "nickname",
    "notes",
    "watering_reminder_enabled",
    "watering_frequency_days",
    "last_watered_at",
    "thumbnail_url",
}

# Editable only when plant_id == 0
CUSTOM_FIELDS = {
    "common_name",
    "scientific_name",
    "watering",
    "sunlight",
    "cycle",
    "care_level",
}


class DuplicatePlantError(Exception):
    """A catalog plant is already in this user's garden."""


class CatalogPlantEditError(Exception):
    """Name or care fields were sent for a catalog-backed plant."""


class GardenStore:
    """Database operations for PlantTracker.

    All persistence goes through this class. Every query is scoped to
    the owning user, so a foreign id behaves exactly like a missing one.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _session(self) -> Session:
        return self.session_factory()

    # ── User operations ───────────────────────────────────────────────────────

    def create_user(self, email: str, display_name: str = "", zip_code: str = "") -> User:
        with self._session() as session:
            user = User(
                email=email.strip().lower(),
                display_name=display_name,
                zip_code=zip_code,
                api_token=secrets.token_urlsafe(32),
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            logger.info(f"Created user: {user.id} ({user.email})")
            return user

    def get_user_by_token(self, token: str) -> User | None:
        if not token:
            return None
        with self._session() as session:
            user = session.query(User).filter(User.api_token == token).first()
            if user:
                session.expunge(user)
            return user

    def update_user(
        self, user_id: int, display_name: str | None = None, zip_code: str | None = None
    ) -> User | None:
        """Update profile fields; blank or missing values leave the stored ones alone."""
        with self._session() as session:
            user = session.get(User, user_id)
            if not user:
                return None
            if display_name and display_name.strip():
                user.display_name = display_name.strip()
            if zip_code and zip_code.strip():
                user.zip_code = zip_code.strip()
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user

    # ── Garden operations ─────────────────────────────────────────────────────

    def list_plants(self, user_id: int) -> list[SavedPlant]:
        with self._session() as session:
            plants = (
                session.query(SavedPlant)
                .filter(SavedPlant.user_id == user_id)
                .order_by(SavedPlant.common_name, SavedPlant.id)
                .all()
            )
            for p in plants:
                session.expunge(p)
            return plants

    def get_plant(self, user_id: int, plant_id: int) -> SavedPlant | None:
        with self._session() as session:
            plant = self._find_plant(session, user_id, plant_id)
            if plant:
                session.expunge(plant)
            return plant

    def has_catalog_plant(self, user_id: int, catalog_id: int) -> bool:
        if catalog_id == 0:
            return False
        with self._session() as session:
            return (
                session.query(SavedPlant.id)
                .filter(SavedPlant.user_id == user_id, SavedPlant.plant_id == catalog_id)
                .first()
                is not None
            )

    def add_plant(self, user_id: int, data: dict) -> SavedPlant:
        """Insert a plant. Raises DuplicatePlantError for a repeated catalog id."""
        if self.has_catalog_plant(user_id, data.get("plant_id", 0)):
            raise DuplicatePlantError(data.get("plant_id"))
        with self._session() as session:
            plant = SavedPlant(user_id=user_id, **data)
            session.add(plant)
            try:
                session.commit()
            except IntegrityError as e:
                # Lost a race against a concurrent insert of the same catalog plant
                session.rollback()
                raise DuplicatePlantError(data.get("plant_id")) from e
            session.refresh(plant)
            session.expunge(plant)
            logger.info(f"Added plant {plant.id} ({plant.common_name}) for user {user_id}")
            return plant

    def update_plant(self, user_id: int, plant_id: int, changes: dict) -> SavedPlant | None:
        """Apply a partial update. Returns None when the plant does not exist."""
        with self._session() as session:
            plant = self._find_plant(session, user_id, plant_id)
            if not plant:
                return None

            custom_changes = set(changes) & CUSTOM_FIELDS
            if custom_changes and not plant.is_custom:
                raise CatalogPlantEditError(sorted(custom_changes))

            for key, value in changes.items():
                if key not in COMMON_FIELDS and key not in CUSTOM_FIELDS:
                    continue
                if key == "common_name" and value is None:
                    continue
                if key == "scientific_name" and value is None:
                    value = ""
                if key == "watering_reminder_enabled" and value is None:
                    continue
                setattr(plant, key, value)
            session.commit()
            session.refresh(plant)
            session.expunge(plant)
            return plant

    def mark_watered(self, user_id: int, plant_id: int) -> SavedPlant | None:
        return self.update_plant(user_id, plant_id, {"last_watered_at": datetime.now(timezone.utc)})

    def delete_plant(self, user_id: int, plant_id: int) -> bool:
        with self._session() as session:
            plant = self._find_plant(session, user_id, plant_id)
            if not plant:
                return False
            session.delete(plant)
            session.commit()
            logger.info(f"Removed plant {plant_id} for user {user_id}")
            return True

    # ── Photo operations ──────────────────────────────────────────────────────

    def list_photos(self, user_id: int, plant_id: int) -> list[PlantPhoto]:
        with self._session() as session:
            photos = (
                session.query(PlantPhoto)
                .filter(PlantPhoto.saved_plant_id == plant_id, PlantPhoto.user_id == user_id)
                .order_by(PlantPhoto.taken_at.desc(), PlantPhoto.id.desc())
                .all()
            )
            for p in photos:
                session.expunge(p)
            return photos

    def add_photo(self, user_id: int, plant_id: int, image_data: str, caption: str | None) -> PlantPhoto:
        with self._session() as session:
            photo = PlantPhoto(
                saved_plant_id=plant_id,
                user_id=user_id,
                image_data=image_data,
                caption=caption,
            )
            session.add(photo)
            session.commit()
            session.refresh(photo)
            session.expunge(photo)
            return photo

    def delete_photo(self, user_id: int, plant_id: int, photo_id: int) -> bool:
        with self._session() as session:
            photo = (
                session.query(PlantPhoto)
                .filter(
                    PlantPhoto.id == photo_id,
                    PlantPhoto.saved_plant_id == plant_id,
                    PlantPhoto.user_id == user_id,
                )
                .first()
            )
            if not photo:
                return False
            session.delete(photo)
            session.commit()
            return True

    # ── Zone cache operations ─────────────────────────────────────────────────

    def cache_zone(self, zip_code: str, zone: int | None, raw_zone: str | None) -> ZoneCache:
        with self._session() as session:
            entry = session.get(ZoneCache, zip_code)
            if entry is None:
                entry = ZoneCache(zip_code=zip_code)
                session.add(entry)
            entry.zone = zone
            entry.raw_zone = raw_zone
            entry.fetched_at = datetime.now(timezone.utc)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
            return entry

    def get_cached_zone(self, zip_code: str, max_age: timedelta) -> ZoneCache | None:
        with self._session() as session:
            entry = session.get(ZoneCache, zip_code)
            if entry is None:
                return None
            fetched = entry.fetched_at
            if fetched.tzinfo is None:
                fetched = fetched.replace(tzinfo=timezone.utc)
            if datetime.now(timezone.utc) - fetched > max_age:
                return None
            session.expunge(entry)
            return entry

    # ── Utilities ─────────────────────────────────────────────────────────────

    @staticmethod
    def _find_plant(session: Session, user_id: int, plant_id: int) -> SavedPlant | None:
        return (
            session.query(SavedPlant)
            .filter(SavedPlant.id == plant_id, SavedPlant.user_id == user_id)
            .first()
        )
