"""Errors raised by the coverage and alerting engine."""


class IntelligenceError(Exception):
    """Base class for engine errors."""


class InvalidFacilityDataError(IntelligenceError):
    """A facility snapshot cannot be analyzed (non-positive capacity)."""

    def __init__(self, facility_id: str, capacity: int):
        self.facility_id = facility_id
        self.capacity = capacity
        super().__init__(
            f"Facility {facility_id} has invalid capacity {capacity}; capacity must be positive"
        )


class NotFoundError(IntelligenceError):
    """A requested record does not exist."""


class StorageFailureError(IntelligenceError):
    """The persistence layer failed while reading or writing."""
