"""Tests for session authentication dependencies."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from pulsecity.auth.middleware import get_current_user, get_current_user_optional, require_role
from pulsecity.models import User


def _db_returning(user):
    db = AsyncMock()
    result_mock = MagicMock()
    result_mock.scalar.return_value = user
    db.execute = AsyncMock(return_value=result_mock)
    return db


class TestGetCurrentUser:
    """Tests for session user resolution."""

    @pytest.mark.asyncio
    async def test_no_session_user(self):
        """Without user_id in the session there is no user."""
        request = MagicMock()
        request.session = {}
        db = _db_returning(None)

        assert await get_current_user_optional(request, db) is None
        db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_active_session_user(self):
        """An active user is returned."""
        user = User(id="user-1", role="viewer", is_active=True)
        request = MagicMock()
        request.session = {"user_id": "user-1"}

        assert await get_current_user_optional(request, _db_returning(user)) is user

    @pytest.mark.asyncio
    async def test_inactive_user_ignored(self):
        """Inactive users are treated as unauthenticated."""
        user = User(id="user-1", role="viewer", is_active=False)
        request = MagicMock()
        request.session = {"user_id": "user-1"}

        assert await get_current_user_optional(request, _db_returning(user)) is None

    @pytest.mark.asyncio
    async def test_missing_user_raises_401(self):
        """get_current_user raises 401 without a user."""
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(None)
        assert exc_info.value.status_code == 401


class TestRequireRole:
    """Tests for the role gate."""

    @pytest.mark.asyncio
    async def test_allowed_role(self):
        """Users holding a listed role pass through."""
        check = require_role("admin", "analyst")
        user = User(role="analyst")
        assert await check(user) is user

    @pytest.mark.asyncio
    async def test_denied_role(self):
        """Other roles get 403."""
        check = require_role("admin", "analyst")
        with pytest.raises(HTTPException) as exc_info:
            await check(User(role="viewer"))
        assert exc_info.value.status_code == 403
