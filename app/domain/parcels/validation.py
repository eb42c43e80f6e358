"""
Structured validation of a desired parcel plan.

Problems are collected as ParcelValidationError entries and returned to the
caller; they are expected user-input outcomes, not exceptions. Nothing is
written while any error is present.
"""

from collections import Counter
from datetime import datetime
from typing import Any, Optional, Sequence

from pydantic import BaseModel

from ..scheduling.availability_service import is_time_available
from ..scheduling.schemas import LocationScheduleSet
from ..scheduling.time_calculator import as_utc, local_date_key, local_time_string
from .schemas import DesiredExistingParcel, DesiredParcel


class ValidationErrorCodes:
    PARCEL_NOT_FOUND = "PARCEL_NOT_FOUND"
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    MAX_DAILY_CAPACITY_REACHED = "MAX_DAILY_CAPACITY_REACHED"
    OUTSIDE_OPERATING_HOURS = "OUTSIDE_OPERATING_HOURS"
    PAST_TIME_SLOT = "PAST_TIME_SLOT"
    HOUSEHOLD_DOUBLE_BOOKING = "HOUSEHOLD_DOUBLE_BOOKING"
    INVALID_TIME_SLOT = "INVALID_TIME_SLOT"


class ParcelValidationError(BaseModel):
    field: str
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


def validate_desired_parcels(
    desired: Sequence[DesiredParcel],
    location_id: str,
    schedule_set: LocationScheduleSet,
    now: datetime,
    max_per_day: Optional[int] = None,
    other_household_counts: Optional[dict[str, int]] = None,
    known_parcel_ids: Optional[set[str]] = None,
) -> list[ParcelValidationError]:
    """
    Validate a household's desired parcels before reconciliation.

    Args:
        desired: Desired parcels in submission order
        location_id: Pickup location all desired parcels are booked at
        schedule_set: The location's opening schedules
        now: Current instant; parcels must start strictly after it
        max_per_day: Location's daily limit (None = unlimited)
        other_household_counts: Non-deleted parcels of *other* households at
            the location, keyed by local YYYY-MM-DD
        known_parcel_ids: Ids of this household's existing future parcels;
            a desired parcel referencing any other id is rejected

    Returns:
        List of validation errors (empty when the plan is valid)
    """
    errors: list[ParcelValidationError] = []
    other_household_counts = other_household_counts or {}
    known_parcel_ids = known_parcel_ids or set()

    day_keys = [local_date_key(p.pickup_earliest_time) for p in desired]
    per_day = Counter(day_keys)

    for index, parcel in enumerate(desired):
        field = f"parcels[{index}]"
        earliest = as_utc(parcel.pickup_earliest_time)
        latest = as_utc(parcel.pickup_latest_time)
        day_key = day_keys[index]

        if isinstance(parcel, DesiredExistingParcel) and parcel.id not in known_parcel_ids:
            errors.append(
                ParcelValidationError(
                    field=f"{field}.id",
                    code=ValidationErrorCodes.PARCEL_NOT_FOUND,
                    message="Parcel does not belong to this household's upcoming parcels",
                    details={"parcelId": parcel.id},
                )
            )

        if per_day[day_key] > 1 and day_keys.index(day_key) != index:
            errors.append(
                ParcelValidationError(
                    field=field,
                    code=ValidationErrorCodes.HOUSEHOLD_DOUBLE_BOOKING,
                    message="Household already has a parcel scheduled for this date",
                    details={"date": day_key},
                )
            )

        if latest < earliest:
            errors.append(
                ParcelValidationError(
                    field=f"{field}.pickupLatestTime",
                    code=ValidationErrorCodes.INVALID_TIME_SLOT,
                    message="Latest pickup time is before earliest pickup time",
                    details={"date": day_key},
                )
            )
            continue

        if earliest <= as_utc(now):
            errors.append(
                ParcelValidationError(
                    field=f"{field}.pickupEarliestTime",
                    code=ValidationErrorCodes.PAST_TIME_SLOT,
                    message="Cannot schedule pickup in the past",
                    details={
                        "requestedTime": earliest.isoformat(),
                        "currentTime": as_utc(now).isoformat(),
                    },
                )
            )

        for when, attr in ((earliest, "pickupEarliestTime"), (latest, "pickupLatestTime")):
            availability = is_time_available(when, local_time_string(when), schedule_set)
            if not availability.is_available:
                errors.append(
                    ParcelValidationError(
                        field=f"{field}.{attr}",
                        code=ValidationErrorCodes.OUTSIDE_OPERATING_HOURS,
                        message=availability.reason or "The selected time is outside operating hours",
                        details={
                            "date": day_key,
                            "timeSlot": local_time_string(when),
                            "locationId": location_id,
                            "reason": availability.reason,
                        },
                    )
                )
                break

    if max_per_day is not None:
        for day_key, count in per_day.items():
            current = other_household_counts.get(day_key, 0)
            if current + count > max_per_day:
                errors.append(
                    ParcelValidationError(
                        field="capacity",
                        code=ValidationErrorCodes.MAX_DAILY_CAPACITY_REACHED,
                        message=f"Maximum daily capacity ({max_per_day}) reached for {day_key}",
                        details={
                            "current": current,
                            "maximum": max_per_day,
                            "date": day_key,
                            "locationId": location_id,
                        },
                    )
                )

    return errors


def format_validation_error(
    error: ParcelValidationError, location_name: Optional[str] = None
) -> str:
    """User-facing text for a validation error"""
    details = error.details or {}

    if error.code == ValidationErrorCodes.MAX_DAILY_CAPACITY_REACHED:
        return (
            f"{location_name or 'This location'} has reached its maximum capacity of "
            f"{details.get('maximum')} parcels for {details.get('date')}"
        )
    if error.code == ValidationErrorCodes.HOUSEHOLD_DOUBLE_BOOKING:
        return f"This household already has a parcel scheduled for {details.get('date')}"
    if error.code == ValidationErrorCodes.OUTSIDE_OPERATING_HOURS:
        return details.get("reason") or "The selected time is outside operating hours"
    if error.code == ValidationErrorCodes.PAST_TIME_SLOT:
        return "Cannot schedule pickup in the past"
    return error.message
