"""Schemas for coverage analysis and alerts."""

from datetime import datetime

from pydantic import BaseModel, Field

from pulsecity.services.intelligence import CoverageAnalysis, ThresholdConfig


class AlertThresholds(BaseModel):
    """User-configurable alert thresholds.

    critical is expected to be >= overcapacity but this is not enforced.
    """

    overcapacity: float = Field(..., ge=0, le=100)
    critical: float = Field(..., ge=0, le=100)
    underserved_radius_km: float = Field(..., gt=0)

    def to_config(self) -> ThresholdConfig:
        return ThresholdConfig(
            overcapacity=self.overcapacity,
            critical=self.critical,
            underserved_radius_km=self.underserved_radius_km,
        )


class UnderservedZoneResponse(BaseModel):
    """An underserved grid point; location is [longitude, latitude]."""

    location: tuple[float, float]
    nearby_facilities: int = 0
    radius: float


class FacilityLoadResponse(BaseModel):
    """A facility over one of the load thresholds."""

    facility_id: str
    name: str
    load_percentage: int

    model_config = {"from_attributes": True}


class CoverageAnalysisResponse(BaseModel):
    """Response schema for coverage analysis."""

    underserved_zones: list[UnderservedZoneResponse]
    overcapacity_facilities: list[FacilityLoadResponse]
    critical_facilities: list[FacilityLoadResponse]

    @classmethod
    def from_analysis(cls, analysis: CoverageAnalysis) -> "CoverageAnalysisResponse":
        return cls(
            underserved_zones=[
                UnderservedZoneResponse(
                    location=zone.location,
                    nearby_facilities=zone.nearby_facilities,
                    radius=zone.radius,
                )
                for zone in analysis.underserved_zones
            ],
            overcapacity_facilities=[
                FacilityLoadResponse.model_validate(f) for f in analysis.overcapacity_facilities
            ],
            critical_facilities=[
                FacilityLoadResponse.model_validate(f) for f in analysis.critical_facilities
            ],
        )


class AlertFacility(BaseModel):
    """Facility summary embedded in an alert."""

    id: str
    name: str
    facility_type: str

    model_config = {"from_attributes": True}


class AlertResponse(BaseModel):
    """Response schema for an alert."""

    id: str
    kind: str
    message: str
    severity: str
    facility_id: str | None = None
    facility: AlertFacility | None = None
    metadata: dict = Field(default_factory=dict, validation_alias="details")
    created_at: datetime
    acknowledged: bool = False
    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None

    model_config = {"from_attributes": True, "populate_by_name": True}


class AlertListResponse(BaseModel):
    """Response schema for a list of alerts."""

    results: int
    alerts: list[AlertResponse]


class GenerateAlertsResponse(BaseModel):
    """Response schema for the generate action."""

    success: bool
    created: int
    message: str
