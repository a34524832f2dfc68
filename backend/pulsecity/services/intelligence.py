"""Coverage analysis and alert generation.

The engine works on plain facility snapshots and an explicit threshold
configuration. Analysis is pure and CPU-bound; only alert generation and
acknowledgment talk to the alert store.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from pulsecity.database import utc_now
from pulsecity.errors import InvalidFacilityDataError, NotFoundError
from pulsecity.geo import haversine_km

if TYPE_CHECKING:
    from pulsecity.models.alert import Alert
    from pulsecity.services.stores import AlertStore

logger = logging.getLogger(__name__)

# Grid step for underserved zone sampling (degrees)
GRID_STEP_DEGREES = 0.1

# Underserved alerts created per generation run
UNDERSERVED_ALERT_LIMIT = 10

KIND_OVERCAPACITY = "overcapacity"
KIND_CRITICAL = "critical"
KIND_UNDERSERVED = "underserved"

SEVERITY_BY_KIND = {
    KIND_UNDERSERVED: "medium",
    KIND_OVERCAPACITY: "high",
    KIND_CRITICAL: "critical",
}


@dataclass(frozen=True)
class FacilitySnapshot:
    """Read-only view of a facility as the engine sees it."""

    id: str
    name: str
    longitude: float
    latitude: float
    capacity: int
    current_load: int


@dataclass(frozen=True)
class ThresholdConfig:
    """Per-user alert thresholds."""

    overcapacity: float  # percent
    critical: float  # percent, expected >= overcapacity
    underserved_radius_km: float


@dataclass(frozen=True)
class FacilityLoad:
    """A facility flagged by the classifier."""

    facility_id: str
    name: str
    load_percentage: int


@dataclass(frozen=True)
class UnderservedZone:
    """A sampled grid point with no facility inside the radius."""

    location: tuple[float, float]  # (longitude, latitude)
    radius: float
    nearby_facilities: int = 0


@dataclass
class CoverageAnalysis:
    """Result of a coverage analysis run."""

    underserved_zones: list[UnderservedZone] = field(default_factory=list)
    overcapacity_facilities: list[FacilityLoad] = field(default_factory=list)
    critical_facilities: list[FacilityLoad] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.underserved_zones or self.overcapacity_facilities or self.critical_facilities
        )


def load_percentage(capacity: int, current_load: int, facility_id: str = "") -> float:
    """Return current load as a percentage of capacity, unclamped."""
    if capacity <= 0:
        raise InvalidFacilityDataError(facility_id, capacity)
    return current_load / capacity * 100


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding towards +infinity."""
    return math.floor(value + 0.5)


def classify_facilities(
    facilities: list[FacilitySnapshot], thresholds: ThresholdConfig
) -> tuple[list[FacilityLoad], list[FacilityLoad]]:
    """Split facilities into (overcapacity, critical) lists.

    The critical check runs first, so a facility at or above the critical
    threshold never shows up as overcapacity.
    """
    overcapacity: list[FacilityLoad] = []
    critical: list[FacilityLoad] = []

    for facility in facilities:
        pct = load_percentage(facility.capacity, facility.current_load, facility.id)
        if pct >= thresholds.critical:
            critical.append(FacilityLoad(facility.id, facility.name, round_half_up(pct)))
        elif pct >= thresholds.overcapacity:
            overcapacity.append(FacilityLoad(facility.id, facility.name, round_half_up(pct)))

    return overcapacity, critical


def nearest_facility_km(
    lat: float, lng: float, facilities: list[FacilitySnapshot]
) -> float | None:
    """Distance to the closest facility, or None when there are none."""
    if not facilities:
        return None
    return min(haversine_km(lat, lng, f.latitude, f.longitude) for f in facilities)


def detect_underserved_zones(
    facilities: list[FacilitySnapshot], radius_km: float
) -> list[UnderservedZone]:
    """Grid-sample the facilities' bounding box for points out of reach.

    The step is accumulated (lat += step) and the upper bound is inclusive,
    so the last row and column follow floating point drift rather than a
    snapped grid.
    """
    if not facilities:
        return []

    lats = [f.latitude for f in facilities]
    lngs = [f.longitude for f in facilities]
    min_lat, max_lat = min(lats), max(lats)
    min_lng, max_lng = min(lngs), max(lngs)

    zones: list[UnderservedZone] = []
    lat = min_lat
    while lat <= max_lat:
        lng = min_lng
        while lng <= max_lng:
            if nearest_facility_km(lat, lng, facilities) > radius_km:
                zones.append(UnderservedZone(location=(lng, lat), radius=radius_km))
            lng += GRID_STEP_DEGREES
        lat += GRID_STEP_DEGREES

    return zones


def analyze_coverage(
    facilities: list[FacilitySnapshot], thresholds: ThresholdConfig
) -> CoverageAnalysis:
    """Classify facility load and detect underserved zones."""
    if not facilities:
        return CoverageAnalysis()

    overcapacity, critical = classify_facilities(facilities, thresholds)
    zones = detect_underserved_zones(facilities, thresholds.underserved_radius_km)

    logger.debug(
        f"Coverage analysis over {len(facilities)} facilities: "
        f"{len(critical)} critical, {len(overcapacity)} overcapacity, {len(zones)} underserved zones"
    )
    return CoverageAnalysis(
        underserved_zones=zones,
        overcapacity_facilities=overcapacity,
        critical_facilities=critical,
    )


def format_overcapacity_message(facility: FacilityLoad) -> str:
    return f"{facility.name} is at {facility.load_percentage}% capacity"


def format_critical_message(facility: FacilityLoad) -> str:
    return f"{facility.name} is at CRITICAL capacity ({facility.load_percentage}%)"


def format_underserved_message(zone: UnderservedZone) -> str:
    lng, lat = zone.location
    return f"Underserved zone detected at [{lat:.2f}, {lng:.2f}]"


async def _create_facility_alerts(
    store: AlertStore, facilities: list[FacilityLoad], kind: str, formatter
) -> int:
    created = 0
    for facility in facilities:
        existing = await store.find_unacknowledged(facility.facility_id, kind)
        if existing is not None:
            logger.debug(f"Skipping {kind} alert for {facility.facility_id}: unacknowledged alert exists")
            continue

        await store.create_alert(
            kind=kind,
            message=formatter(facility),
            severity=SEVERITY_BY_KIND[kind],
            facility_id=facility.facility_id,
            # Stored metadata keys are camelCase to match existing alert rows
            metadata={"loadPercentage": facility.load_percentage},
        )
        created += 1
    return created


async def generate_alerts(analysis: CoverageAnalysis, store: AlertStore) -> int:
    """Persist alerts for an analysis result. Returns the number created.

    Overcapacity and critical alerts are skipped while an unacknowledged alert
    of the same kind exists for the facility. Underserved zones are not
    deduplicated; only the first UNDERSERVED_ALERT_LIMIT are turned into
    alerts. Store errors propagate immediately and alerts created earlier in
    the run are kept.
    """
    if analysis.is_empty:
        return 0

    created = await _create_facility_alerts(
        store, analysis.overcapacity_facilities, KIND_OVERCAPACITY, format_overcapacity_message
    )
    created += await _create_facility_alerts(
        store, analysis.critical_facilities, KIND_CRITICAL, format_critical_message
    )

    for zone in analysis.underserved_zones[:UNDERSERVED_ALERT_LIMIT]:
        await store.create_alert(
            kind=KIND_UNDERSERVED,
            message=format_underserved_message(zone),
            severity=SEVERITY_BY_KIND[KIND_UNDERSERVED],
            facility_id=None,
            metadata={"nearbyFacilities": zone.nearby_facilities, "radius": zone.radius},
        )
        created += 1

    logger.info(f"Generated {created} alerts")
    return created


async def acknowledge_alert(
    store: AlertStore, alert_id: str, user_id: str, now: datetime | None = None
) -> Alert:
    """Mark an alert acknowledged by a user.

    Acknowledging an already acknowledged alert overwrites who and when.
    """
    alert = await store.find_by_id(alert_id)
    if alert is None:
        raise NotFoundError(f"Alert {alert_id} not found")

    return await store.update_acknowledgment(alert_id, user_id, now or utc_now())


async def list_recent_alerts(store: AlertStore, limit: int = 50) -> list[Alert]:
    """Most recent alerts first."""
    return await store.list_recent(limit)
