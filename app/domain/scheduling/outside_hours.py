"""
Filtering parcels that fall outside a location's opening hours.

Pure functions with no database access. ``now`` is always passed in by the
caller so results are reproducible.
"""

import logging
from datetime import datetime
from typing import Iterable

from .availability_service import is_time_available
from .schemas import LocationScheduleSet, ParcelTimeInfo
from .time_calculator import as_utc, local_time_string

logger = logging.getLogger(__name__)


def is_future_parcel(parcel: ParcelTimeInfo, now: datetime) -> bool:
    """A parcel is future if its earliest pickup time is strictly after now"""
    return as_utc(parcel.pickup_earliest_time) > as_utc(now)


def is_active_parcel(parcel: ParcelTimeInfo, now: datetime) -> bool:
    """Not picked up and in the future"""
    return not parcel.is_picked_up and is_future_parcel(parcel, now)


def is_parcel_outside_opening_hours(
    parcel: ParcelTimeInfo, schedule_set: LocationScheduleSet
) -> bool:
    """
    True if either end of the parcel's pickup window is outside opening hours.

    If the availability check itself fails, the parcel is reported as outside
    hours so it shows up on the review list instead of silently passing.
    """
    try:
        start = is_time_available(
            parcel.pickup_earliest_time,
            local_time_string(parcel.pickup_earliest_time),
            schedule_set,
        )
        end = is_time_available(
            parcel.pickup_latest_time,
            local_time_string(parcel.pickup_latest_time),
            schedule_set,
        )
    except Exception as e:
        logger.error(f"❌ Error checking time availability for parcel {parcel.id}: {e}")
        return True

    return not (start.is_available and end.is_available)


def filter_active_parcels(
    parcels: Iterable[ParcelTimeInfo], now: datetime
) -> list[ParcelTimeInfo]:
    return [p for p in parcels if is_active_parcel(p, now)]


def filter_outside_hours_parcels(
    parcels: Iterable[ParcelTimeInfo], schedule_set: LocationScheduleSet, now: datetime
) -> list[ParcelTimeInfo]:
    """Active parcels whose pickup window is outside opening hours"""
    return [
        p
        for p in parcels
        if is_active_parcel(p, now) and is_parcel_outside_opening_hours(p, schedule_set)
    ]


def count_outside_hours_parcels(
    parcels: Iterable[ParcelTimeInfo], schedule_set: LocationScheduleSet, now: datetime
) -> int:
    return len(filter_outside_hours_parcels(parcels, schedule_set, now))


def is_parcel_affected_by_schedule_change(
    parcel: ParcelTimeInfo,
    current_schedule_set: LocationScheduleSet,
    proposed_schedule_set: LocationScheduleSet,
    now: datetime,
) -> bool:
    """An active parcel is affected when it moves from within hours to outside hours"""
    if not is_active_parcel(parcel, now):
        return False

    currently_outside = is_parcel_outside_opening_hours(parcel, current_schedule_set)
    if currently_outside:
        return False
    return is_parcel_outside_opening_hours(parcel, proposed_schedule_set)


def count_parcels_affected_by_schedule_change(
    parcels: Iterable[ParcelTimeInfo],
    current_schedule_set: LocationScheduleSet,
    proposed_schedule_set: LocationScheduleSet,
    now: datetime,
) -> int:
    return sum(
        1
        for p in parcels
        if is_parcel_affected_by_schedule_change(
            p, current_schedule_set, proposed_schedule_set, now
        )
    )
