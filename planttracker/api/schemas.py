"""PlantTracker API — Pydantic request/response schemas.

Shared by the FastAPI server and the client-side Garden Cache.
"""

from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything stored is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _require_text(value: str | None) -> str | None:
    if value is not None:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
    return value


# ── Garden schemas ────────────────────────────────────────────────────────────

class SavedPlantCreate(BaseModel):
    plant_id: int = Field(0, ge=0, description="Catalog id; 0 for a custom plant")
    common_name: str = Field(..., max_length=200)
    scientific_name: str = Field("", max_length=200)
    nickname: str | None = Field(None, max_length=100)
    thumbnail_url: str | None = None
    notes: str | None = None
    watering_reminder_enabled: bool = False
    watering_frequency_days: int | None = Field(None, ge=1)
    watering: str | None = None
    sunlight: str | None = None
    cycle: str | None = None
    care_level: str | None = None

    @field_validator("common_name")
    @classmethod
    def check_name(cls, value):
        return _require_text(value)

    @property
    def is_custom(self) -> bool:
        return self.plant_id == 0


class CatalogPlantUpdate(BaseModel):
    """Fields any saved plant accepts, catalog-backed or custom.

    Unknown fields are an error, so a name or care edit can never ride
    along on a catalog update and be dropped.
    """

    model_config = {"extra": "forbid"}

    kind: Literal["catalog"] = "catalog"
    nickname: str | None = Field(None, max_length=100)
    notes: str | None = None
    watering_reminder_enabled: bool = False
    watering_frequency_days: int | None = Field(None, ge=1)
    last_watered_at: datetime | None = None
    thumbnail_url: str | None = None

    def to_payload(self) -> dict:
        """Serialize only the fields the caller set, plus the variant tag."""
        data = self.model_dump(mode="json", exclude_unset=True)
        data["kind"] = self.kind
        return data

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"kind"})


class CustomPlantUpdate(CatalogPlantUpdate):
    """Adds the descriptive and care fields only custom plants may change."""

    kind: Literal["custom"] = "custom"
    common_name: str | None = Field(None, max_length=200)
    scientific_name: str | None = Field(None, max_length=200)
    watering: str | None = None
    sunlight: str | None = None
    cycle: str | None = None
    care_level: str | None = None

    @field_validator("common_name")
    @classmethod
    def check_name(cls, value):
        return _require_text(value)


PlantUpdate = Annotated[CatalogPlantUpdate | CustomPlantUpdate, Field(discriminator="kind")]


class SavedPlantResponse(BaseModel):
    id: int
    plant_id: int
    common_name: str
    scientific_name: str = ""
    nickname: str | None = None
    thumbnail_url: str | None = None
    notes: str | None = None
    watering_reminder_enabled: bool = False
    watering_frequency_days: int | None = None
    last_watered_at: datetime | None = None
    added_at: datetime
    watering: str | None = None
    sunlight: str | None = None
    cycle: str | None = None
    care_level: str | None = None

    model_config = {"from_attributes": True}

    @field_validator("last_watered_at", "added_at")
    @classmethod
    def ensure_utc(cls, value):
        return _as_utc(value)

    @property
    def is_custom(self) -> bool:
        return self.plant_id == 0

    @property
    def display_name(self) -> str:
        return self.nickname or self.common_name


# ── Photo schemas ─────────────────────────────────────────────────────────────

class PhotoCreate(BaseModel):
    image_data: str = Field(..., description="Base64 data URI")
    caption: str | None = Field(None, max_length=500)


class PhotoResponse(BaseModel):
    id: int
    saved_plant_id: int
    image_data: str
    caption: str | None
    taken_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("taken_at")
    @classmethod
    def ensure_utc(cls, value):
        return _as_utc(value)


# ── Zone schemas ──────────────────────────────────────────────────────────────

class ZoneResponse(BaseModel):
    zip_code: str
    zone: int | None


# ── Profile schemas ───────────────────────────────────────────────────────────

class UserResponse(BaseModel):
    id: int
    email: str
    display_name: str
    zip_code: str

    model_config = {"from_attributes": True}


class UserUpdate(BaseModel):
    """Blank or missing fields keep their current value."""

    display_name: str | None = Field(None, max_length=100)
    zip_code: str | None = Field(None, max_length=10)
