"""SQLAlchemy models — SavedPlant and PlantPhoto."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from planttracker.models.base import Base


class SavedPlant(Base):
    __tablename__ = "saved_plants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # External catalog id; 0 marks a user-authored custom plant
    plant_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Denormalized for fast list rendering without extra catalog calls
    common_name: Mapped[str] = mapped_column(String(200), nullable=False)
    scientific_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    nickname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    watering_reminder_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    watering_frequency_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_watered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Care attributes, editable for custom plants only
    watering: Mapped[str | None] = mapped_column(String(50), nullable=True)
    sunlight: Mapped[str | None] = mapped_column(String(50), nullable=True)
    cycle: Mapped[str | None] = mapped_column(String(50), nullable=True)
    care_level: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="plants")  # noqa: F821
    photos: Mapped[list["PlantPhoto"]] = relationship(
        "PlantPhoto", back_populates="plant", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index(
            "uq_saved_plant_user_catalog",
            "user_id",
            "plant_id",
            unique=True,
            sqlite_where=text("plant_id != 0"),
            postgresql_where=text("plant_id != 0"),
        ),
    )

    @property
    def is_custom(self) -> bool:
        return self.plant_id == 0

    def __repr__(self) -> str:
        return f"<SavedPlant {self.id} {self.common_name!r} catalog={self.plant_id}>"


class PlantPhoto(Base):
    __tablename__ = "plant_photos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    saved_plant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("saved_plants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    # Full base64 data URI, e.g. "data:image/jpeg;base64,/9j/4AAQ..."
    image_data: Mapped[str] = mapped_column(Text, nullable=False)
    caption: Mapped[str | None] = mapped_column(String(500), nullable=True)
    taken_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    plant: Mapped["SavedPlant"] = relationship("SavedPlant", back_populates="photos")

    def __repr__(self) -> str:
        return f"<PlantPhoto {self.id} for plant={self.saved_plant_id}>"
