"""Parcel router - FastAPI endpoints for capacity, household parcels and soft delete"""

import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...database import get_db
from ..scheduling.router import get_now
from .schemas import (
    CapacityRangeResponse,
    CapacityResponse,
    HouseholdParcelsUpdate,
    ParcelOperationsResponse,
    ParcelWarningResponse,
    SoftDeleteResponse,
    ThresholdUpdate,
)
from .service import ParcelService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Parcels"])


def get_parcel_service(db: Session = Depends(get_db)) -> ParcelService:
    """Dependency injection for ParcelService"""
    return ParcelService(db)


# ============================================================================
# CAPACITY
# ============================================================================


@router.get("/locations/{location_id}/capacity", response_model=CapacityResponse)
async def get_location_capacity(
    location_id: str,
    day: date = Query(..., alias="date"),
    exclude_household_id: Optional[str] = Query(None, alias="excludeHouseholdId"),
    service: ParcelService = Depends(get_parcel_service),
):
    """Check whether a location can take one more parcel on a date"""
    result = service.check_pickup_location_capacity(location_id, day, exclude_household_id)
    return CapacityResponse(
        isAvailable=result.is_available,
        currentCount=result.current_count,
        maxCount=result.max_count,
        message=result.message,
    )


@router.get("/locations/{location_id}/capacity/range", response_model=CapacityRangeResponse)
async def get_location_capacity_range(
    location_id: str,
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    service: ParcelService = Depends(get_parcel_service),
):
    """Parcel counts per local date; dates without parcels are omitted"""
    try:
        result = service.get_pickup_location_capacity_for_range(location_id, start_date, end_date)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return CapacityRangeResponse(
        hasLimit=result.has_limit,
        maxPerDay=result.max_per_day,
        dateCapacities=result.date_capacities,
    )


# ============================================================================
# HOUSEHOLD PARCELS
# ============================================================================


@router.put("/households/{household_id}/parcels", response_model=ParcelOperationsResponse)
async def update_household_parcels(
    household_id: str,
    data: HouseholdParcelsUpdate,
    x_user_id: Optional[str] = Header(None),
    service: ParcelService = Depends(get_parcel_service),
    now: datetime = Depends(get_now),
):
    """Replace a household's future parcels with the submitted plan"""
    operations, errors = service.update_household_parcels(
        household_id, data.locationId, data.parcels, now, user_id=x_user_id
    )
    if errors:
        return JSONResponse(
            status_code=422,
            content={"errors": [e.model_dump() for e in errors]},
        )

    return ParcelOperationsResponse(
        created=[p.id for p in operations.to_create],
        updated=[p.id for p in operations.to_update],
        deleted=list(operations.to_delete),
    )


@router.delete("/parcels/{parcel_id}", response_model=SoftDeleteResponse)
async def delete_parcel(
    parcel_id: str,
    x_user_id: Optional[str] = Header(None),
    service: ParcelService = Depends(get_parcel_service),
    now: datetime = Depends(get_now),
):
    """Cancel a parcel (soft delete)"""
    parcel = service.soft_delete_parcel(parcel_id, x_user_id, now)
    return SoftDeleteResponse(parcelId=parcel.id, deletedAt=parcel.deleted_at)


# ============================================================================
# PARCEL COUNT WARNING
# ============================================================================


@router.get("/households/{household_id}/parcel-warning", response_model=ParcelWarningResponse)
async def get_parcel_warning(
    household_id: str,
    service: ParcelService = Depends(get_parcel_service),
):
    warning = service.get_parcel_warning(household_id)
    return ParcelWarningResponse(
        shouldWarn=warning.should_warn,
        parcelCount=warning.parcel_count,
        threshold=warning.threshold,
    )


@router.get("/settings/parcel-warning-threshold")
async def get_parcel_warning_threshold(service: ParcelService = Depends(get_parcel_service)):
    return {"threshold": service.get_parcel_warning_threshold()}


@router.put("/settings/parcel-warning-threshold")
async def set_parcel_warning_threshold(
    data: ThresholdUpdate,
    service: ParcelService = Depends(get_parcel_service),
):
    try:
        threshold = service.set_parcel_warning_threshold(data.threshold)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return {"threshold": threshold}
