"""SQLAlchemy models — ZoneCache."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from planttracker.models.base import Base


class ZoneCache(Base):
    __tablename__ = "zone_cache"

    zip_code: Mapped[str] = mapped_column(String(10), primary_key=True)
    zone: Mapped[int | None] = mapped_column(Integer, nullable=True)
    raw_zone: Mapped[str | None] = mapped_column(String(10), nullable=True)
    fetched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
