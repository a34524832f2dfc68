"""Tests for init_db() migration logic."""

from unittest.mock import patch

import pytest


@pytest.mark.asyncio
async def test_init_db_upgrades_to_head():
    """init_db runs alembic upgrade to head against the bundled migrations."""
    with patch("alembic.command.upgrade") as mock_upgrade:
        from pulsecity.database import init_db

        await init_db()

        mock_upgrade.assert_called_once()
        cfg, target = mock_upgrade.call_args[0]
        assert target == "head"
        assert cfg.get_main_option("script_location").endswith("migrations")


@pytest.mark.asyncio
async def test_init_db_migration_failure_raises():
    """Migration failure should log and re-raise the exception."""
    with patch("alembic.command.upgrade", side_effect=RuntimeError("migration failed")):
        from pulsecity.database import init_db

        with pytest.raises(RuntimeError, match="migration failed"):
            await init_db()


@pytest.mark.asyncio
async def test_init_db_missing_alembic_ini():
    """Missing alembic.ini should raise FileNotFoundError."""
    with patch("pathlib.Path.exists", return_value=False):
        from pulsecity.database import init_db

        with pytest.raises(FileNotFoundError, match="alembic.ini"):
            await init_db()
