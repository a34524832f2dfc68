"""SQLAlchemy ORM models."""

from pulsecity.models.alert import Alert
from pulsecity.models.facility import Facility
from pulsecity.models.user import User

__all__ = [
    "Alert",
    "Facility",
    "User",
]
