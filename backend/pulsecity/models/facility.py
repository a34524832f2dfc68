"""Health facility model."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, CheckConstraint, DateTime, Float, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from pulsecity.database import Base, utc_now
from pulsecity.services.intelligence import FacilitySnapshot, load_percentage, round_half_up


class Facility(Base):
    """A health facility with a location and a current patient load."""

    __tablename__ = "facilities"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_facilities_capacity_positive"),
        CheckConstraint("current_load >= 0", name="ck_facilities_load_non_negative"),
    )

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    facility_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # WGS84 degrees
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)

    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    current_load: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(30), default="Active")
    services: Mapped[list] = mapped_column(JSON, default=list)

    # Timestamps
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
    )

    def load_percentage(self) -> int:
        """Load as a whole percentage of capacity (display value)."""
        return round_half_up(load_percentage(self.capacity, self.current_load, self.id))

    def to_snapshot(self) -> FacilitySnapshot:
        """Engine view of this facility."""
        return FacilitySnapshot(
            id=str(self.id),
            name=self.name,
            longitude=self.longitude,
            latitude=self.latitude,
            capacity=self.capacity,
            current_load=self.current_load,
        )
