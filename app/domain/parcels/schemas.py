"""Parcel domain schemas - Pydantic models for parcels, edits and diffs"""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ExistingParcel(BaseModel):
    """An existing future parcel as seen by reconciliation"""

    id: str
    location_id: str
    earliest: datetime
    latest: datetime


class DesiredNewParcel(BaseModel):
    """
    A parcel the household should get that does not exist yet.

    Carries no id: unknown keys are rejected so a client-generated identifier
    can never make a new parcel look like an existing one.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    pickup_earliest_time: datetime = Field(alias="pickupEarliestTime")
    pickup_latest_time: datetime = Field(alias="pickupLatestTime")


class DesiredExistingParcel(BaseModel):
    """A desired parcel the client believes already exists (id from the server)"""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str
    pickup_earliest_time: datetime = Field(alias="pickupEarliestTime")
    pickup_latest_time: datetime = Field(alias="pickupLatestTime")


# Matching is by location + local day, never by id
DesiredParcel = Union[DesiredExistingParcel, DesiredNewParcel]


class ParcelCreate(BaseModel):
    id: str
    household_id: str
    pickup_location_id: str
    pickup_date_time_earliest: datetime
    pickup_date_time_latest: datetime
    is_picked_up: bool = False


class ParcelUpdate(BaseModel):
    id: str
    pickup_date_time_earliest: datetime
    pickup_date_time_latest: datetime


class ParcelOperations(BaseModel):
    """Minimal create/update/delete diff for a household's future parcels"""

    to_create: list[ParcelCreate] = []
    to_update: list[ParcelUpdate] = []
    to_delete: list[str] = []

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete)


class CapacityResult(BaseModel):
    is_available: bool
    current_count: int
    max_count: Optional[int] = None
    message: str


class CapacityRange(BaseModel):
    has_limit: bool
    max_per_day: Optional[int] = None
    # Dates with no parcels are absent; treat a missing key as zero
    date_capacities: dict[str, int] = {}


class ParcelWarning(BaseModel):
    should_warn: bool
    parcel_count: int
    threshold: Optional[int] = None


# ============================================================================
# API SCHEMAS
# ============================================================================


class HouseholdParcelsUpdate(BaseModel):
    """Schema for replacing a household's future parcel plan"""

    locationId: str
    parcels: list[DesiredParcel]


class ParcelOperationsResponse(BaseModel):
    created: list[str]
    updated: list[str]
    deleted: list[str]


class ValidationErrorResponse(BaseModel):
    field: str
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


class CapacityResponse(BaseModel):
    isAvailable: bool
    currentCount: int
    maxCount: Optional[int] = None
    message: str


class CapacityRangeResponse(BaseModel):
    hasLimit: bool
    maxPerDay: Optional[int] = None
    dateCapacities: dict[str, int]


class SoftDeleteResponse(BaseModel):
    parcelId: str
    deletedAt: datetime


class ParcelWarningResponse(BaseModel):
    shouldWarn: bool
    parcelCount: int
    threshold: Optional[int] = None


class ThresholdUpdate(BaseModel):
    threshold: Optional[int] = None
