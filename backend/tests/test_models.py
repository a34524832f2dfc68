"""Tests for ORM model behavior."""

import pytest
from factories import make_facility, make_user
from pydantic import ValidationError

from pulsecity.errors import InvalidFacilityDataError
from pulsecity.models import User
from pulsecity.models.user import default_preferences
from pulsecity.services.intelligence import FacilitySnapshot, ThresholdConfig


class TestUserModel:
    """Tests for User roles and thresholds."""

    def test_has_role(self):
        """has_role matches any of the given roles."""
        user = User(role="analyst")
        assert user.has_role("admin", "analyst") is True
        assert user.has_role("admin") is False

    def test_default_preferences(self):
        """New users get the configured default thresholds."""
        prefs = default_preferences()
        assert prefs["alert_thresholds"] == {
            "overcapacity": 85,
            "critical": 95,
            "underserved_radius_km": 5,
        }
        assert prefs["theme"] == "light"
        assert prefs["default_view"] == "3d"

    def test_default_preferences_not_shared(self):
        """Each call returns an independent dict."""
        first = default_preferences()
        first["alert_thresholds"]["critical"] = 50
        assert default_preferences()["alert_thresholds"]["critical"] == 95

    def test_alert_thresholds_from_preferences(self):
        """Stored preferences become a ThresholdConfig."""
        user = make_user(overcapacity=70, critical=80, underserved_radius_km=2.5)
        assert user.alert_thresholds() == ThresholdConfig(70, 80, 2.5)

    def test_alert_thresholds_out_of_range_rejected(self):
        """Stored thresholds outside 0..100 or a non-positive radius are rejected."""
        user = make_user(overcapacity=150, critical=-10, underserved_radius_km=-1)
        with pytest.raises(ValidationError) as exc_info:
            user.alert_thresholds()
        assert exc_info.value.error_count() == 3

    def test_alert_thresholds_missing_rejected(self):
        """Preferences without thresholds are rejected rather than raising KeyError."""
        user = User(name="No Prefs", email="none@example.com", preferences={"theme": "dark"})
        with pytest.raises(ValidationError):
            user.alert_thresholds()


class TestFacilityModel:
    """Tests for Facility helpers."""

    def test_load_percentage_rounded(self):
        """load_percentage rounds half up."""
        assert make_facility("A", 8, 7).load_percentage() == 88

    def test_load_percentage_over_capacity(self):
        """Load above capacity is not clamped."""
        assert make_facility("A", 100, 130).load_percentage() == 130

    def test_load_percentage_invalid_capacity(self):
        """Zero capacity raises InvalidFacilityDataError."""
        with pytest.raises(InvalidFacilityDataError):
            make_facility("A", 0, 10).load_percentage()

    def test_to_snapshot(self):
        """to_snapshot copies the engine-relevant fields."""
        facility = make_facility("A", 100, 40, lng=3.38, lat=6.52)
        facility.id = "f-1"
        assert facility.to_snapshot() == FacilitySnapshot(
            id="f-1", name="A", longitude=3.38, latitude=6.52, capacity=100, current_load=40
        )
