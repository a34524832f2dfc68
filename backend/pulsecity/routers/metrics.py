"""Prometheus metrics endpoint."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pulsecity.database import get_db
from pulsecity.errors import StorageFailureError
from pulsecity.models import Alert, Facility
from pulsecity.services.intelligence import SEVERITY_BY_KIND
from pulsecity.services.stores import AlertStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["metrics"])


async def collect_metrics(db: AsyncSession) -> bytes:
    """Collect all metrics and return Prometheus format.

    Raises StorageFailureError when the database cannot be read.
    """
    registry = CollectorRegistry()

    facility_load = Gauge(
        "pulsecity_facility_load_percentage",
        "Facility current load as a percentage of capacity",
        ["facility_id", "name", "type"],
        registry=registry,
    )
    facility_capacity = Gauge(
        "pulsecity_facility_capacity",
        "Facility capacity",
        ["facility_id", "name", "type"],
        registry=registry,
    )
    unacknowledged_alerts = Gauge(
        "pulsecity_alerts_unacknowledged",
        "Unacknowledged alerts by kind",
        ["kind"],
        registry=registry,
    )
    db_rows = Gauge(
        "pulsecity_db_rows_total",
        "Database row counts",
        ["table"],
        registry=registry,
    )

    try:
        facilities_result = await db.execute(select(Facility).where(Facility.capacity > 0))
        facilities = facilities_result.scalars().all()

        row_counts = {}
        for table_name, model in [("facilities", Facility), ("alerts", Alert)]:
            count_result = await db.execute(select(func.count()).select_from(model))
            row_counts[table_name] = count_result.scalar() or 0
    except SQLAlchemyError as e:
        logger.exception("Failed to read metrics")
        raise StorageFailureError("Failed to read metrics") from e

    for facility in facilities:
        labels = {
            "facility_id": str(facility.id),
            "name": facility.name,
            "type": facility.facility_type,
        }
        facility_load.labels(**labels).set(facility.load_percentage())
        facility_capacity.labels(**labels).set(facility.capacity)

    counts = await AlertStore(db).count_unacknowledged()
    for kind in SEVERITY_BY_KIND:
        unacknowledged_alerts.labels(kind=kind).set(counts.get(kind, 0))

    for table_name, count in row_counts.items():
        db_rows.labels(table=table_name).set(count)

    return generate_latest(registry)


@router.get("/metrics", response_class=PlainTextResponse)
async def prometheus_metrics(db: AsyncSession = Depends(get_db)) -> PlainTextResponse:
    """Prometheus metrics endpoint."""
    try:
        metrics_data = await collect_metrics(db)
    except StorageFailureError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    return PlainTextResponse(content=metrics_data, media_type=CONTENT_TYPE_LATEST)
