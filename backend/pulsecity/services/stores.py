"""Persistence collaborators for the intelligence engine.

Both wrap an AsyncSession. Any SQLAlchemy error is re-raised as
StorageFailureError; nothing is retried here.
"""

import logging
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pulsecity.errors import StorageFailureError
from pulsecity.models import Alert, Facility
from pulsecity.services.intelligence import FacilitySnapshot

logger = logging.getLogger(__name__)


class FacilitySource:
    """Reads facility snapshots."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def list_all_facilities(self) -> list[FacilitySnapshot]:
        try:
            result = await self._db.execute(select(Facility))
        except SQLAlchemyError as e:
            logger.exception("Failed to load facilities")
            raise StorageFailureError("Failed to load facilities") from e
        return [facility.to_snapshot() for facility in result.scalars().all()]


class AlertStore:
    """Reads and writes alert records."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def find_unacknowledged(self, facility_id: str, kind: str) -> Alert | None:
        """First unacknowledged alert of a kind for a facility, if any."""
        query = (
            select(Alert)
            .where(Alert.facility_id == facility_id)
            .where(Alert.kind == kind)
            .where(Alert.acknowledged.is_(False))
            .limit(1)
        )
        try:
            result = await self._db.execute(query)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to query {kind} alerts for facility {facility_id}")
            raise StorageFailureError("Failed to query alerts") from e
        return result.scalar()

    async def create_alert(
        self,
        kind: str,
        message: str,
        severity: str,
        facility_id: str | None,
        metadata: dict,
    ) -> Alert:
        """Insert and commit a single alert."""
        alert = Alert(
            kind=kind,
            message=message,
            severity=severity,
            facility_id=facility_id,
            details=metadata,
            acknowledged=False,
        )
        try:
            self._db.add(alert)
            await self._db.commit()
            await self._db.refresh(alert)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to create {kind} alert")
            await self._db.rollback()
            raise StorageFailureError("Failed to create alert") from e
        return alert

    async def find_by_id(self, alert_id: str) -> Alert | None:
        try:
            result = await self._db.execute(select(Alert).where(Alert.id == alert_id))
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load alert {alert_id}")
            raise StorageFailureError("Failed to load alert") from e
        return result.scalar()

    async def update_acknowledgment(
        self, alert_id: str, user_id: str, timestamp: datetime
    ) -> Alert:
        """Set all acknowledgment fields in one UPDATE and return the row."""
        stmt = (
            update(Alert)
            .where(Alert.id == alert_id)
            .values(acknowledged=True, acknowledged_by=user_id, acknowledged_at=timestamp)
            .execution_options(synchronize_session=False)
        )
        try:
            await self._db.execute(stmt)
            await self._db.commit()
            result = await self._db.execute(
                select(Alert)
                .options(selectinload(Alert.facility))
                .where(Alert.id == alert_id)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            logger.exception(f"Failed to acknowledge alert {alert_id}")
            await self._db.rollback()
            raise StorageFailureError("Failed to acknowledge alert") from e
        return result.scalar_one()

    async def list_recent(self, limit: int) -> list[Alert]:
        """Alerts newest first, with their facility loaded."""
        query = (
            select(Alert)
            .options(selectinload(Alert.facility))
            .order_by(Alert.created_at.desc())
            .limit(limit)
        )
        try:
            result = await self._db.execute(query)
        except SQLAlchemyError as e:
            logger.exception("Failed to list alerts")
            raise StorageFailureError("Failed to list alerts") from e
        return list(result.scalars().all())

    async def count_unacknowledged(self) -> dict[str, int]:
        """Unacknowledged alert counts keyed by kind."""
        query = (
            select(Alert.kind, func.count(Alert.id))
            .where(Alert.acknowledged.is_(False))
            .group_by(Alert.kind)
        )
        try:
            result = await self._db.execute(query)
        except SQLAlchemyError as e:
            logger.exception("Failed to count alerts")
            raise StorageFailureError("Failed to count alerts") from e
        return {kind: count for kind, count in result.all()}
