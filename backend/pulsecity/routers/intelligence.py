"""Coverage analysis and alert API endpoints."""

import asyncio
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from pulsecity.auth.middleware import get_current_user, require_role
from pulsecity.config import get_settings
from pulsecity.database import get_db
from pulsecity.errors import InvalidFacilityDataError, NotFoundError, StorageFailureError
from pulsecity.models import User
from pulsecity.schemas.intelligence import (
    AlertListResponse,
    AlertResponse,
    CoverageAnalysisResponse,
    GenerateAlertsResponse,
)
from pulsecity.services.intelligence import (
    CoverageAnalysis,
    acknowledge_alert,
    analyze_coverage,
    generate_alerts,
    list_recent_alerts,
)
from pulsecity.services.stores import AlertStore, FacilitySource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/intelligence", tags=["intelligence"])

settings = get_settings()


def _storage_unavailable(e: StorageFailureError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


async def _run_analysis(db: AsyncSession, user: User) -> CoverageAnalysis:
    """Load facilities and analyze them against the user's thresholds."""
    try:
        thresholds = user.alert_thresholds()
    except ValidationError as e:
        logger.error(f"Invalid alert thresholds for user {user.id}: {e.error_count()} errors")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid alert thresholds in user preferences",
        ) from e

    facilities = await FacilitySource(db).list_all_facilities()
    try:
        # The grid sweep is CPU-bound
        return await asyncio.to_thread(analyze_coverage, facilities, thresholds)
    except InvalidFacilityDataError as e:
        logger.error(f"Coverage analysis aborted: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e


@router.get("/coverage", response_model=CoverageAnalysisResponse)
async def get_coverage(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> CoverageAnalysisResponse:
    """Analyze facility load and coverage for the current user's thresholds."""
    try:
        analysis = await _run_analysis(db, user)
    except StorageFailureError as e:
        raise _storage_unavailable(e) from e
    return CoverageAnalysisResponse.from_analysis(analysis)


@router.get("/alerts", response_model=AlertListResponse)
async def get_alerts(
    limit: int | None = Query(default=None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> AlertListResponse:
    """List recent alerts, newest first."""
    try:
        alerts = await list_recent_alerts(AlertStore(db), limit or settings.default_alert_limit)
    except StorageFailureError as e:
        raise _storage_unavailable(e) from e
    return AlertListResponse(
        results=len(alerts),
        alerts=[AlertResponse.model_validate(a) for a in alerts],
    )


@router.put("/alerts/{alert_id}/acknowledge", response_model=AlertResponse)
async def acknowledge(
    alert_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> AlertResponse:
    """Acknowledge an alert as the current user."""
    try:
        UUID(alert_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alert not found")

    try:
        alert = await acknowledge_alert(AlertStore(db), alert_id, user.id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alert not found")
    except StorageFailureError as e:
        raise _storage_unavailable(e) from e

    logger.info(f"Alert {alert_id} acknowledged by {user.id}")
    return AlertResponse.model_validate(alert)


@router.post("/alerts/generate", response_model=GenerateAlertsResponse)
async def generate(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_role("admin", "analyst")),
) -> GenerateAlertsResponse:
    """Run coverage analysis and persist the resulting alerts."""
    try:
        analysis = await _run_analysis(db, user)
        created = await generate_alerts(analysis, AlertStore(db))
    except StorageFailureError as e:
        raise _storage_unavailable(e) from e

    return GenerateAlertsResponse(
        success=True,
        created=created,
        message=f"Generated {created} alerts",
    )
