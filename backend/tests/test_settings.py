"""Tests for application settings."""

import pytest

from pulsecity.config import Settings


class TestSettingsDefaults:
    """Test default values for settings."""

    def test_threshold_defaults(self):
        """Alert threshold defaults are 85 / 95 / 5km."""
        s = Settings(database_url="sqlite+aiosqlite:///test.db")
        assert s.default_overcapacity_threshold == 85
        assert s.default_critical_threshold == 95
        assert s.default_underserved_radius_km == 5

    def test_alert_limit_default(self):
        """Alert listing defaults to 50 entries."""
        s = Settings(database_url="sqlite+aiosqlite:///test.db")
        assert s.default_alert_limit == 50

    def test_threshold_out_of_range_rejected(self):
        """Thresholds above 100 are rejected."""
        with pytest.raises(Exception):
            Settings(
                database_url="sqlite+aiosqlite:///test.db",
                default_overcapacity_threshold=150,
            )

    def test_radius_must_be_positive(self):
        """A zero radius is rejected."""
        with pytest.raises(Exception):
            Settings(
                database_url="sqlite+aiosqlite:///test.db",
                default_underserved_radius_km=0,
            )

    def test_cors_origins_comma_separated(self):
        """CORS origins accept a comma-separated string."""
        s = Settings(
            database_url="sqlite+aiosqlite:///test.db",
            cors_origins="http://a.example, http://b.example",
        )
        assert s.cors_origins == ["http://a.example", "http://b.example"]

    def test_log_level_normalized(self):
        """Log level is upper-cased."""
        s = Settings(database_url="sqlite+aiosqlite:///test.db", log_level="debug")
        assert s.log_level == "DEBUG"
