"""Scheduling router - FastAPI endpoints for schedules and availability"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import PickupLocationSchedule
from .schedule_validation import ScheduleOverlapError
from .schemas import (
    AvailabilityResponse,
    ScheduleCreate,
    ScheduleDayInput,
    ScheduleImpactResponse,
    ScheduleResponse,
    TimeRangeResponse,
    WeekRangeResponse,
)
from .service import ScheduleService
from .time_calculator import week_date_range

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Schedules"])


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    """Dependency injection for ScheduleService"""
    return ScheduleService(db)


def get_now() -> datetime:
    """Request clock; overridden in tests"""
    return datetime.now(timezone.utc)


def _schedule_response(schedule: PickupLocationSchedule) -> ScheduleResponse:
    return ScheduleResponse(
        id=schedule.id,
        locationId=schedule.pickup_location_id,
        name=schedule.name,
        startDate=schedule.start_date,
        endDate=schedule.end_date,
        days=[
            ScheduleDayInput(
                weekday=d.weekday,
                isOpen=d.is_open,
                openingTime=d.opening_time,
                closingTime=d.closing_time,
            )
            for d in schedule.days
        ],
    )


# ============================================================================
# AVAILABILITY
# ============================================================================


@router.get("/locations/{location_id}/availability", response_model=AvailabilityResponse)
async def get_location_availability(
    location_id: str,
    day: date = Query(..., alias="date"),
    time: Optional[str] = Query(None),
    service: ScheduleService = Depends(get_schedule_service),
    now: datetime = Depends(get_now),
):
    """Check whether a location is open on a date, optionally at an HH:MM time"""
    if time is None:
        result = service.check_date_availability(location_id, day, now)
        return AvailabilityResponse(
            isAvailable=result.is_available,
            reason=result.reason,
            openingTime=result.opening_time,
            closingTime=result.closing_time,
        )

    try:
        result = service.check_time_availability(location_id, day, time, now)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return AvailabilityResponse(isAvailable=result.is_available, reason=result.reason)


@router.get("/locations/{location_id}/time-range", response_model=TimeRangeResponse)
async def get_location_time_range(
    location_id: str,
    day: date = Query(..., alias="date"),
    service: ScheduleService = Depends(get_schedule_service),
    now: datetime = Depends(get_now),
):
    """Widest opening range across all schedules covering a date"""
    result = service.get_time_range(location_id, day, now)
    return TimeRangeResponse(earliestTime=result.earliest_time, latestTime=result.latest_time)


@router.get("/locations/{location_id}/outside-hours-parcels")
async def get_outside_hours_parcels(
    location_id: str,
    service: ScheduleService = Depends(get_schedule_service),
    now: datetime = Depends(get_now),
):
    """Active parcels booked outside the location's current opening hours"""
    parcels = service.get_outside_hours_parcels_for_location(location_id, now)
    return [
        {
            "id": p.id,
            "householdId": p.household_id,
            "pickupEarliestTime": p.pickup_date_time_earliest,
            "pickupLatestTime": p.pickup_date_time_latest,
        }
        for p in parcels
    ]


@router.get("/weeks/{year}/{week}", response_model=WeekRangeResponse)
async def get_week_range(year: int, week: int):
    """Monday-Sunday local date range of an ISO week"""
    try:
        week_range = week_date_range(year, week)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return WeekRangeResponse(
        year=year, week=week, startDate=week_range.start_date, endDate=week_range.end_date
    )


# ============================================================================
# SCHEDULE CRUD
# ============================================================================


@router.post("/locations/{location_id}/schedules", response_model=ScheduleResponse)
async def create_schedule(
    location_id: str,
    data: ScheduleCreate,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Create a schedule window (rejected if it overlaps another window)"""
    try:
        schedule = service.create_schedule(location_id, data.to_window())
    except ScheduleOverlapError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return _schedule_response(schedule)


@router.put("/schedules/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    schedule_id: str,
    data: ScheduleCreate,
    service: ScheduleService = Depends(get_schedule_service),
):
    try:
        schedule = service.update_schedule(schedule_id, data.to_window(schedule_id))
    except ScheduleOverlapError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return _schedule_response(schedule)


@router.delete("/schedules/{schedule_id}")
async def delete_schedule(
    schedule_id: str,
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.delete_schedule(schedule_id)


@router.post("/locations/{location_id}/schedules/impact", response_model=ScheduleImpactResponse)
async def check_schedule_change_impact(
    location_id: str,
    data: ScheduleCreate,
    schedule_id: Optional[str] = Query(None, alias="scheduleId"),
    service: ScheduleService = Depends(get_schedule_service),
    now: datetime = Depends(get_now),
):
    """Count booked parcels that a proposed schedule (new or edited) would leave outside hours"""
    count = service.count_parcels_affected_by_schedule_change(
        location_id, data.to_window(schedule_id), now, edited_schedule_id=schedule_id
    )
    return ScheduleImpactResponse(affectedParcels=count)


@router.get("/schedules/{schedule_id}/deletion-impact", response_model=ScheduleImpactResponse)
async def check_schedule_deletion_impact(
    schedule_id: str,
    service: ScheduleService = Depends(get_schedule_service),
    now: datetime = Depends(get_now),
):
    count = service.count_parcels_affected_by_schedule_deletion(schedule_id, now)
    return ScheduleImpactResponse(affectedParcels=count)
