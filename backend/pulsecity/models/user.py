"""User model with alert threshold preferences."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from pulsecity.config import get_settings
from pulsecity.database import Base, utc_now
from pulsecity.schemas.intelligence import AlertThresholds
from pulsecity.services.intelligence import ThresholdConfig

VALID_ROLES = ("admin", "analyst", "viewer")


def default_preferences() -> dict:
    """Preferences for a newly created user, seeded from settings."""
    settings = get_settings()
    return {
        "theme": "light",
        "default_view": "3d",
        "alert_thresholds": {
            "overcapacity": settings.default_overcapacity_threshold,
            "critical": settings.default_critical_threshold,
            "underserved_radius_km": settings.default_underserved_radius_km,
        },
    }


class User(Base):
    """An application user."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)

    # Permissions
    role: Mapped[str] = mapped_column(String(20), default="viewer")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    preferences: Mapped[dict] = mapped_column(JSON, default=default_preferences)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
    )

    def has_role(self, *roles: str) -> bool:
        """Check if the user holds any of the given roles."""
        return self.role in roles

    def alert_thresholds(self) -> ThresholdConfig:
        """Validated thresholds from this user's preferences.

        Raises pydantic.ValidationError when stored values are missing or out
        of range.
        """
        stored = (self.preferences or {}).get("alert_thresholds") or {}
        return AlertThresholds.model_validate(stored).to_config()
